# trading/services/trade_service.py
import logging
from functools import partial

from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import F
from django.utils import timezone

from copy_trading.services.copy_service import ReplicationEngine
from copy_trading.services.notification_service import LedgerNotificationService
from core.exceptions import AlreadyClosed, InvalidPrice, InvalidQuantity, TradeNotFound
from trading.models import Trade
from trading.services.pnl import LONG, SHORT, calculate_pnl, ledger_amount, to_amount
from users.models import User
from users.services.account_service import AccountService

logger = logging.getLogger(__name__)


class TradeLifecycleService:
    """Open and close a trader's original trades"""

    def __init__(self, replication=None, notifications=None):
        self.accounts = AccountService()
        self.replication = replication or ReplicationEngine()
        self.notifications = notifications or LedgerNotificationService()

    def get_trade(self, trade_id):
        try:
            return Trade.objects.get(pk=trade_id)
        except (Trade.DoesNotExist, ValidationError, ValueError, TypeError):
            raise TradeNotFound(f"Trade {trade_id} not found")

    def open_trade(self, trader_id, symbol, direction, entry_price, quantity):
        """Record a new open trade and fan it out to the trader's followers"""
        trader = self.accounts.get_trader(trader_id)

        quantity = to_amount(quantity, InvalidQuantity)
        if quantity <= 0:
            raise InvalidQuantity("Quantity must be greater than zero")

        entry_price = to_amount(entry_price)
        if entry_price <= 0:
            raise InvalidPrice("Entry price must be greater than zero")

        direction = str(direction).lower()
        if direction not in (LONG, SHORT):
            raise ValueError(f"Unknown trade direction: {direction}")

        with transaction.atomic():
            trade = Trade.objects.create(
                trader=trader,
                symbol=symbol,
                direction=direction,
                entry_price=entry_price,
                quantity=quantity,
                status=Trade.STATUS_OPEN,
            )
            transaction.on_commit(partial(self._after_open, trade.pk))

        logger.info(
            f"Trade {trade.id} opened: {trader.username} {direction} "
            f"{quantity} {trade.symbol} @ {entry_price}"
        )
        return trade

    def close_trade(self, trade_id, exit_price):
        """
        Close an open trade at ``exit_price``.

        The open -> closed transition is a single conditional UPDATE guarded
        on status, so of several concurrent closes exactly one wins and the
        rest get ``AlreadyClosed``. Exit price, PnL and closed_at are written
        in that same statement, together with the trader's balance credit
        inside one transaction.
        """
        exit_price = to_amount(exit_price)
        if exit_price <= 0:
            raise InvalidPrice("Exit price must be greater than zero")

        trade = self.get_trade(trade_id)
        if not trade.is_open:
            raise AlreadyClosed(f"Trade {trade.id} is already closed")

        pnl = ledger_amount(
            calculate_pnl(trade.direction, trade.entry_price, exit_price, trade.quantity),
            InvalidPrice,
            "PnL at this exit price",
        )

        with transaction.atomic():
            updated = Trade.objects.filter(
                pk=trade.pk,
                status=Trade.STATUS_OPEN
            ).update(
                status=Trade.STATUS_CLOSED,
                exit_price=exit_price,
                pnl=pnl,
                closed_at=timezone.now(),
            )
            if not updated:
                raise AlreadyClosed(f"Trade {trade.id} is already closed")

            User.objects.filter(pk=trade.trader_id).update(
                balance=F('balance') + pnl,
                total_pnl=F('total_pnl') + pnl,
            )
            transaction.on_commit(partial(self._after_close, trade.pk))

        trade.refresh_from_db()
        logger.info(f"Trade {trade.id} closed @ {exit_price}, PnL {pnl}")
        return trade

    # Run after commit. Dispatch errors are logged; the repair passes pick the trade up.

    def _after_open(self, trade_id):
        trade = Trade.objects.get(pk=trade_id)
        self.notifications.trade_updated(trade)
        try:
            self.replication.on_trade_opened(trade)
        except Exception as e:
            logger.error(f"Copy fan-out for trade {trade_id} not dispatched: {e}", exc_info=True)

    def _after_close(self, trade_id):
        trade = Trade.objects.get(pk=trade_id)
        self.notifications.trade_updated(trade)
        try:
            self.replication.on_trade_closed(trade)
        except Exception as e:
            logger.error(f"Settlement fan-out for trade {trade_id} not dispatched: {e}", exc_info=True)
