"""WebSocket push of ledger updates."""
import uuid
from datetime import datetime, timezone

from asgiref.sync import async_to_sync, sync_to_async
from channels.routing import URLRouter
from channels.testing import WebsocketCommunicator

from copy_trading.services.notification_service import LedgerNotificationService
from realtime.routing import websocket_urlpatterns


class StubTrade:
    def __init__(self, trader_id):
        self.id = uuid.uuid4()
        self.trader_id = trader_id
        self.symbol = 'BTC/USD'
        self.direction = 'long'
        self.entry_price = '100.00000000'
        self.exit_price = None
        self.quantity = '10.00000000'
        self.pnl = None
        self.status = 'open'
        self.created_at = datetime(2026, 1, 1, tzinfo=timezone.utc)
        self.closed_at = None


class StubCopiedTrade:
    def __init__(self, follower_id):
        self.id = uuid.uuid4()
        self.original_trade_id = uuid.uuid4()
        self.follower_id = follower_id
        self.quantity = '5.00000000'
        self.pnl = '50.00000000'
        self.status = 'closed'


def receive_push(user_id, publish):
    """Connect as ``user_id``, run ``publish`` and return the first frame"""
    async def scenario():
        communicator = WebsocketCommunicator(
            URLRouter(websocket_urlpatterns), f'/ws/trading/{user_id}/'
        )
        connected, _ = await communicator.connect()
        assert connected

        await sync_to_async(publish)()
        message = await communicator.receive_json_from(timeout=2)
        await communicator.disconnect()
        return message

    return async_to_sync(scenario)()


def test_trader_receives_trade_update():
    trader_id = uuid.uuid4()
    trade = StubTrade(trader_id)

    message = receive_push(trader_id, lambda: LedgerNotificationService().trade_updated(trade))

    assert message['type'] == 'trade_update'
    assert message['data']['id'] == str(trade.id)
    assert message['data']['direction'] == 'LONG'
    assert message['data']['status'] == 'OPEN'
    assert message['data']['closedAt'] is None


def test_follower_receives_copied_trade_update():
    follower_id = uuid.uuid4()
    copied = StubCopiedTrade(follower_id)

    message = receive_push(follower_id, lambda: LedgerNotificationService().copied_trade_updated(copied))

    assert message['type'] == 'copied_trade_update'
    assert message['data']['followerId'] == str(follower_id)
    assert message['data']['status'] == 'CLOSED'
    assert message['data']['pnl'] == '50.00000000'
