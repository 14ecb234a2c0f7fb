"""Celery task wrappers around the replication engine."""
import uuid
from decimal import Decimal

import pytest

from copy_trading.models import CopiedTrade, SettlementFailure
from core import tasks


@pytest.mark.django_db
class TestTasks:

    @pytest.fixture(autouse=True)
    def setup(self, lifecycle, registry, trader, follower):
        self.relation = registry.create_relation(follower.id, trader.id, '0.5')
        self.trade = lifecycle.open_trade(trader.id, 'X', 'long', '100', '10')
        self.lifecycle = lifecycle

    def test_copy_trade_for_relation(self):
        result = tasks.copy_trade_for_relation.delay(str(self.trade.id), str(self.relation.id))

        copied = CopiedTrade.objects.get()
        assert result.get() == str(copied.id)
        assert copied.quantity == Decimal('5')

    def test_copy_for_vanished_trade_returns_none(self):
        result = tasks.copy_trade_for_relation.delay(str(uuid.uuid4()), str(self.relation.id))
        assert result.get() is None
        assert not SettlementFailure.objects.exists()

    def test_settle_copied_trade(self, follower):
        tasks.copy_trade_for_relation.delay(str(self.trade.id), str(self.relation.id))
        copied = CopiedTrade.objects.get()
        self.lifecycle.close_trade(self.trade.id, '110')

        result = tasks.settle_copied_trade.delay(str(copied.id))

        assert Decimal(result.get()) == Decimal('50')
        follower.refresh_from_db()
        assert follower.balance == Decimal('10050')

    def test_repair_and_retry_tasks(self):
        tasks.copy_trade_for_relation.delay(str(self.trade.id), str(self.relation.id))
        self.lifecycle.close_trade(self.trade.id, '110')

        assert tasks.retry_failed_settlements.delay().get() == 0
        assert tasks.repair_unsettled_copies.delay().get() == 1
        assert CopiedTrade.objects.get().status == CopiedTrade.STATUS_CLOSED

    def test_repair_missed_fanouts(self, settings):
        settings.COPYTRADE_FANOUT_GRACE = 0

        assert tasks.repair_missed_fanouts.delay().get() == 1
        assert CopiedTrade.objects.get().quantity == Decimal('5')
        assert tasks.repair_missed_fanouts.delay().get() == 0
