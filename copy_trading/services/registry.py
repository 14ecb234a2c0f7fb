# copy_trading/services/registry.py
import logging
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction

from copy_trading.models import CopyRelation
from core.exceptions import (
    AlreadyCopying, InvalidRatio, InvalidUser, RelationNotFound, SelfCopy
)
from trading.services.pnl import to_decimal
from users.services.account_service import AccountService

logger = logging.getLogger(__name__)

RATIO_QUANTUM = Decimal('0.000001')
MAX_COPY_RATIO = Decimal('1000000')


class CopyRelationRegistry:
    """
    Follower -> trader subscriptions.

    Nothing here is cached: every call reads the ledger, so fan-out always
    sees relations as of the moment it asks.
    """

    def __init__(self):
        self.accounts = AccountService()

    def create_relation(self, follower_id, trader_id, ratio):
        ratio = to_decimal(ratio, InvalidRatio)
        if ratio <= 0:
            raise InvalidRatio("Copy ratio must be greater than zero")
        if ratio >= MAX_COPY_RATIO:
            raise InvalidRatio(f"Copy ratio must be below {MAX_COPY_RATIO}")
        ratio = ratio.quantize(RATIO_QUANTUM)
        if ratio == 0:
            raise InvalidRatio(f"Copy ratio must be at least {RATIO_QUANTUM}")
        if str(follower_id) == str(trader_id):
            raise SelfCopy("Cannot copy your own trades")

        trader = self.accounts.get_trader(trader_id)
        try:
            follower = self.accounts.get_user(follower_id)
        except InvalidUser:
            raise InvalidUser(f"Follower {follower_id} not found")

        if CopyRelation.objects.filter(follower=follower, trader=trader, active=True).exists():
            raise AlreadyCopying(f"{follower.username} is already copying {trader.username}")

        try:
            with transaction.atomic():
                relation = CopyRelation.objects.create(
                    follower=follower,
                    trader=trader,
                    copy_ratio=ratio,
                    active=True,
                )
        except IntegrityError:
            raise AlreadyCopying(f"{follower.username} is already copying {trader.username}")

        logger.info(
            f"{follower.username} now copying {trader.username} at ratio {ratio} "
            f"(relation {relation.id})"
        )
        return relation

    def get_relation(self, relation_id):
        try:
            return CopyRelation.objects.get(pk=relation_id)
        except (CopyRelation.DoesNotExist, ValidationError, ValueError, TypeError):
            raise RelationNotFound(f"Copy relation {relation_id} not found")

    def deactivate(self, relation_id):
        """Stop future copies. Already-open copied trades are left alone."""
        relation = self.get_relation(relation_id)
        updated = CopyRelation.objects.filter(pk=relation.pk, active=True).update(active=False)
        if updated:
            logger.info(f"Copy relation {relation.id} deactivated")
        relation.refresh_from_db()
        return relation

    def active_relations_for(self, trader_id, created_before=None):
        """Relations copying ``trader_id`` right now, optionally only those older than ``created_before``"""
        relations = CopyRelation.objects.filter(trader_id=trader_id, active=True)
        if created_before is not None:
            relations = relations.filter(created_at__lte=created_before)
        return list(relations.order_by('created_at'))

    def relations_for_follower(self, follower_id):
        return CopyRelation.objects.filter(follower_id=follower_id, active=True)
