"""Account registration and derived statistics."""
from decimal import Decimal
from io import StringIO

import pytest
from django.core.management import call_command

from copy_trading.models import CopiedTrade, CopyRelation
from core.exceptions import InvalidUser
from trading.models import Trade
from users.models import User
from users.services.account_service import AccountService


@pytest.mark.django_db
class TestRegistration:

    @pytest.fixture(autouse=True)
    def setup(self):
        self.service = AccountService()

    def test_register_uses_starting_balance(self, settings):
        settings.COPYTRADE_STARTING_BALANCE = '2500.50'

        user = self.service.register_user('alice', True)

        assert user.balance == Decimal('2500.50')
        assert user.total_pnl == Decimal('0')
        assert user.is_trader is True
        assert user.created_at is not None

    def test_register_defaults_to_ten_thousand(self):
        user = self.service.register_user('bob', False)
        assert user.balance == Decimal('10000')
        assert user.is_trader is False

    def test_duplicate_username_is_rejected(self):
        self.service.register_user('carol', False)
        with pytest.raises(InvalidUser):
            self.service.register_user('carol', True)
        assert User.objects.filter(username='carol').count() == 1

    def test_blank_username_is_rejected(self):
        with pytest.raises(InvalidUser):
            self.service.register_user('   ', False)

    def test_get_trader_requires_trader_flag(self, make_user):
        regular = make_user(is_trader=False)
        with pytest.raises(InvalidUser):
            self.service.get_trader(regular.id)

    def test_get_user_with_malformed_id(self):
        with pytest.raises(InvalidUser):
            self.service.get_user('not-a-uuid')


@pytest.mark.django_db
class TestDerivedStats:

    def _closed_trade(self, trader, pnl):
        return Trade.objects.create(
            trader=trader, symbol='X', direction='long',
            entry_price=Decimal('100'), exit_price=Decimal('100') + pnl,
            quantity=Decimal('1'), pnl=pnl, status='closed',
            closed_at=trader.created_at,
        )

    def test_new_user_has_no_followers_and_zero_win_rate(self, trader):
        assert trader.followers_count == 0
        assert trader.win_rate == 0.0

    def test_followers_count_counts_active_relations_only(self, trader, make_user):
        for i in range(3):
            CopyRelation.objects.create(
                follower=make_user(), trader=trader,
                copy_ratio=Decimal('1'), active=(i != 0),
            )

        assert trader.followers_count == 2
        annotated = User.objects.with_stats().get(pk=trader.pk)
        assert annotated.followers_count == 2

    def test_win_rate_counts_trades_and_copies(self, trader, follower):
        self._closed_trade(trader, Decimal('10'))
        self._closed_trade(trader, Decimal('-5'))
        self._closed_trade(trader, Decimal('3'))
        Trade.objects.create(
            trader=trader, symbol='X', direction='long',
            entry_price=Decimal('1'), quantity=Decimal('1'),
        )

        assert trader.win_rate == pytest.approx(2 / 3)

        relation = CopyRelation.objects.create(
            follower=follower, trader=trader, copy_ratio=Decimal('1')
        )
        for trade in Trade.objects.filter(status='closed'):
            CopiedTrade.objects.create(
                original_trade=trade, relation=relation, follower=follower,
                quantity=Decimal('1'), pnl=trade.pnl, status='closed',
                closed_at=trade.closed_at,
            )

        assert follower.win_rate == pytest.approx(2 / 3)
        assert follower.followers_count == 0


@pytest.mark.django_db
def test_seed_demo_data_is_idempotent():
    call_command('seed_demo_data', stdout=StringIO())
    call_command('seed_demo_data', stdout=StringIO())

    assert set(User.objects.values_list('username', flat=True)) == {
        'AlphaTrader', 'CryptoKing', 'NewInvestor'
    }
    assert set(User.objects.traders().values_list('username', flat=True)) == {
        'AlphaTrader', 'CryptoKing'
    }
    assert Trade.objects.filter(status=Trade.STATUS_OPEN).count() == 1
    assert Trade.objects.filter(status=Trade.STATUS_CLOSED).count() == 1
