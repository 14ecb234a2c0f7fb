# copy_trading/services/notification_service.py
import logging

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer

logger = logging.getLogger(__name__)


def _decimal(value):
    return None if value is None else str(value)


def _isoformat(value):
    return None if value is None else value.isoformat()


class LedgerNotificationService:
    """Push ledger changes to the owning user's WebSocket group"""

    def trade_updated(self, trade):
        self._send(
            trade.trader_id,
            'trade_update',
            {
                'id': str(trade.id),
                'traderId': str(trade.trader_id),
                'symbol': trade.symbol,
                'direction': trade.direction.upper(),
                'entryPrice': _decimal(trade.entry_price),
                'exitPrice': _decimal(trade.exit_price),
                'quantity': _decimal(trade.quantity),
                'pnl': _decimal(trade.pnl),
                'status': trade.status.upper(),
                'createdAt': _isoformat(trade.created_at),
                'closedAt': _isoformat(trade.closed_at),
            }
        )

    def copied_trade_updated(self, copied_trade):
        self._send(
            copied_trade.follower_id,
            'copied_trade_update',
            {
                'id': str(copied_trade.id),
                'originalTradeId': str(copied_trade.original_trade_id),
                'followerId': str(copied_trade.follower_id),
                'quantity': _decimal(copied_trade.quantity),
                'pnl': _decimal(copied_trade.pnl),
                'status': copied_trade.status.upper(),
            }
        )

    def _send(self, user_id, event_type, data):
        """Best effort: a push failure never fails the ledger write"""
        channel_layer = get_channel_layer()
        if channel_layer is None:
            return
        try:
            async_to_sync(channel_layer.group_send)(
                f'user_{user_id}',
                {
                    'type': event_type,
                    'data': data,
                }
            )
        except Exception as e:
            logger.warning(f"Failed to push {event_type} to user {user_id}: {e}")
