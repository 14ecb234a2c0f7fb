# copy_trading/services/copy_service.py
import logging
from datetime import timedelta

from celery import group
from django.conf import settings
from django.db import DatabaseError, transaction
from django.db.models import F
from django.utils import timezone

from copy_trading.models import CopiedTrade, CopyRelation, SettlementFailure
from copy_trading.services.notification_service import LedgerNotificationService
from copy_trading.services.registry import CopyRelationRegistry
from core import tasks
from core.exceptions import CopyTradeError, SettlementFailed
from trading.models import Trade
from trading.services.pnl import calculate_pnl, ledger_amount
from users.models import User

logger = logging.getLogger(__name__)


class ReplicationEngine:
    """
    Fan a trader's trade events out to followers.

    Each follower is handled by its own task and its own transaction, so one
    follower's failure is recorded for retry without holding up the others.
    """

    def __init__(self, registry=None, notifications=None):
        self.registry = registry or CopyRelationRegistry()
        self.notifications = notifications or LedgerNotificationService()

    # Fan-out

    def on_trade_opened(self, trade):
        """Create one copied trade per relation active right now"""
        relations = self.registry.active_relations_for(
            trade.trader_id, created_before=trade.created_at
        )
        if relations:
            group(
                tasks.copy_trade_for_relation.s(str(trade.pk), str(relation.pk))
                for relation in relations
            ).apply_async()
            logger.info(f"Trade {trade.pk} fanned out to {len(relations)} followers")

        Trade.objects.filter(pk=trade.pk).update(copies_dispatched_at=timezone.now())
        return len(relations)

    def on_trade_closed(self, trade):
        """Settle every open copy of ``trade``, whatever its relation's state"""
        copy_ids = list(
            CopiedTrade.objects.filter(
                original_trade_id=trade.pk,
                status=CopiedTrade.STATUS_OPEN
            ).values_list('pk', flat=True)
        )
        if not copy_ids:
            return 0

        group(
            tasks.settle_copied_trade.s(str(copy_id)) for copy_id in copy_ids
        ).apply_async()

        logger.info(f"Trade {trade.pk} close fanned out to {len(copy_ids)} copies")
        return len(copy_ids)

    # Per-follower units

    def copy_for_relation(self, trade_id, relation_id):
        """Create (or find) the copy of a trade for one relation"""
        try:
            copied, created = self._create_copy(trade_id, relation_id)
        except (Trade.DoesNotExist, CopyRelation.DoesNotExist):
            logger.warning(f"Skipping copy of trade {trade_id} for relation {relation_id}: no longer exists")
            return None
        except (CopyTradeError, DatabaseError) as e:
            self._record_failure(SettlementFailure.PHASE_OPEN, trade_id, relation_id, error=e)
            return None
        except Exception as e:
            logger.error(f"Unexpected error copying trade {trade_id} for relation {relation_id}", exc_info=True)
            self._record_failure(SettlementFailure.PHASE_OPEN, trade_id, relation_id, error=e)
            return None

        self._resolve_failures(SettlementFailure.PHASE_OPEN, trade_id, relation_id)
        if copied is None:
            return None

        if created:
            logger.info(
                f"Copied trade {copied.id} opened for follower {copied.follower_id}: "
                f"{copied.quantity} of trade {trade_id}"
            )
            self.notifications.copied_trade_updated(copied)

        # The original may have closed before this copy existed
        if Trade.objects.filter(pk=copied.original_trade_id, status=Trade.STATUS_CLOSED).exists():
            return self.settle_copied_trade(copied.pk) or copied
        return copied

    def _create_copy(self, trade_id, relation_id):
        with transaction.atomic():
            trade = Trade.objects.get(pk=trade_id)
            relation = CopyRelation.objects.get(pk=relation_id)
            if relation.trader_id != trade.trader_id:
                raise SettlementFailed(
                    f"Relation {relation_id} does not follow the owner of trade {trade_id}"
                )

            quantity = ledger_amount(
                trade.quantity * relation.copy_ratio, SettlementFailed, 'Copy quantity'
            )
            if quantity <= 0:
                logger.warning(
                    f"Copy of trade {trade_id} for relation {relation_id} rounds to zero quantity, skipped"
                )
                return None, False

            return CopiedTrade.objects.get_or_create(
                original_trade=trade,
                relation=relation,
                defaults={
                    'follower_id': relation.follower_id,
                    'quantity': quantity,
                    'status': CopiedTrade.STATUS_OPEN,
                }
            )

    def settle_copied_trade(self, copied_trade_id):
        """Close one copy at its original's exit price and credit the follower"""
        try:
            settled = self._settle(copied_trade_id)
        except CopiedTrade.DoesNotExist:
            logger.warning(f"Copied trade {copied_trade_id} not found, nothing to settle")
            return None
        except Exception as e:
            if not isinstance(e, (CopyTradeError, DatabaseError)):
                logger.error(f"Unexpected error settling copied trade {copied_trade_id}", exc_info=True)
            copied = CopiedTrade.objects.get(pk=copied_trade_id)
            self._record_failure(
                SettlementFailure.PHASE_CLOSE,
                copied.original_trade_id,
                copied.relation_id,
                copied_trade=copied,
                error=e,
            )
            return None

        if settled is not None:
            copied = settled
            logger.info(f"Copied trade {copied.id} settled for follower {copied.follower_id}, PnL {copied.pnl}")
            self.notifications.copied_trade_updated(copied)
        else:
            copied = CopiedTrade.objects.get(pk=copied_trade_id)

        if copied.status == CopiedTrade.STATUS_CLOSED:
            self._resolve_failures(
                SettlementFailure.PHASE_CLOSE, copied.original_trade_id, copied.relation_id
            )
        return settled

    def _settle(self, copied_trade_id):
        with transaction.atomic():
            copied = CopiedTrade.objects.select_related('original_trade').get(pk=copied_trade_id)
            trade = copied.original_trade
            if trade.status != Trade.STATUS_CLOSED or copied.status != CopiedTrade.STATUS_OPEN:
                return None

            pnl = ledger_amount(
                calculate_pnl(trade.direction, trade.entry_price, trade.exit_price, copied.quantity),
                SettlementFailed,
                'Copied trade PnL',
            )

            updated = CopiedTrade.objects.filter(
                pk=copied.pk,
                status=CopiedTrade.STATUS_OPEN
            ).update(
                status=CopiedTrade.STATUS_CLOSED,
                pnl=pnl,
                closed_at=timezone.now(),
            )
            if not updated:
                return None

            credited = User.objects.filter(pk=copied.follower_id).update(
                balance=F('balance') + pnl,
                total_pnl=F('total_pnl') + pnl,
            )
            if not credited:
                # Rolls back the close above
                raise SettlementFailed(f"Follower {copied.follower_id} not found")

        copied.refresh_from_db()
        return copied

    # Failure bookkeeping

    def _record_failure(self, phase, trade_id, relation_id, copied_trade=None, error=None):
        relation = CopyRelation.objects.filter(pk=relation_id).first()
        if relation is None:
            logger.error(f"Fan-out {phase} failed on trade {trade_id}, relation {relation_id} is gone: {error}")
            return None
        follower_id = copied_trade.follower_id if copied_trade else relation.follower_id

        with transaction.atomic():
            failure, created = SettlementFailure.objects.get_or_create(
                phase=phase,
                trade_id=trade_id,
                relation_id=relation_id,
                resolved_at__isnull=True,
                defaults={
                    'copied_trade': copied_trade,
                    'follower_id': follower_id,
                    'error': str(error),
                }
            )
            if not created:
                changes = {
                    'attempts': F('attempts') + 1,
                    'error': str(error),
                    'updated_at': timezone.now(),
                }
                if copied_trade is not None:
                    changes['copied_trade'] = copied_trade
                SettlementFailure.objects.filter(pk=failure.pk).update(**changes)

        logger.warning(
            f"Fan-out {phase} failed for follower {follower_id} on trade {trade_id}: {error}"
        )
        return failure

    def _resolve_failures(self, phase, trade_id, relation_id):
        return SettlementFailure.objects.filter(
            phase=phase,
            trade_id=trade_id,
            relation_id=relation_id,
            resolved_at__isnull=True,
        ).update(resolved_at=timezone.now())

    # Repair

    def retry_failed_settlements(self):
        """Re-run unresolved fan-out steps that still have attempts left"""
        max_attempts = getattr(settings, 'COPYTRADE_MAX_SETTLEMENT_ATTEMPTS', 10)
        pending = SettlementFailure.objects.filter(
            resolved_at__isnull=True,
            attempts__lt=max_attempts
        )

        retried = 0
        for failure in pending:
            retried += 1
            if failure.phase == SettlementFailure.PHASE_OPEN:
                self.copy_for_relation(failure.trade_id, failure.relation_id)
            elif failure.copied_trade_id:
                self.settle_copied_trade(failure.copied_trade_id)

        if retried:
            logger.info(f"Retried {retried} failed fan-out steps")
        return retried

    def repair_unsettled_copies(self):
        """Settle open copies whose original trade is already closed"""
        stale_ids = list(
            CopiedTrade.objects.filter(
                status=CopiedTrade.STATUS_OPEN,
                original_trade__status=Trade.STATUS_CLOSED
            ).values_list('pk', flat=True)
        )

        repaired = 0
        for copied_trade_id in stale_ids:
            if self.settle_copied_trade(copied_trade_id) is not None:
                repaired += 1

        if stale_ids:
            logger.info(f"Repair pass settled {repaired} of {len(stale_ids)} unsettled copies")
        return repaired

    def repair_missed_fanouts(self):
        """Fan out trades whose copy creation was never handed to the workers"""
        grace = getattr(settings, 'COPYTRADE_FANOUT_GRACE', 30)
        missed = Trade.objects.filter(
            copies_dispatched_at__isnull=True,
            created_at__lte=timezone.now() - timedelta(seconds=grace)
        ).order_by('created_at')

        repaired = 0
        for trade in missed:
            self.on_trade_opened(trade)
            repaired += 1

        if repaired:
            logger.info(f"Repair pass fanned out {repaired} trades missed at open")
        return repaired
