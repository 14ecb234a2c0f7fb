# users/management/commands/seed_demo_data.py
from decimal import Decimal

from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone

from trading.models import Trade
from users.models import User

DEMO_USERS = [
    {'username': 'AlphaTrader', 'balance': '100000', 'total_pnl': '15420.50', 'is_trader': True},
    {'username': 'CryptoKing', 'balance': '250000', 'total_pnl': '42350', 'is_trader': True},
    {'username': 'NewInvestor', 'balance': '10000', 'total_pnl': '520', 'is_trader': False},
]


class Command(BaseCommand):
    help = 'Load demo traders, a follower and sample trades'

    @transaction.atomic
    def handle(self, *args, **options):
        users = {}
        for data in DEMO_USERS:
            user, created = User.objects.get_or_create(
                username=data['username'],
                defaults={
                    'balance': Decimal(data['balance']),
                    'total_pnl': Decimal(data['total_pnl']),
                    'is_trader': data['is_trader'],
                }
            )
            users[user.username] = user
            if created:
                self.stdout.write(f"Created {user.username}")

        alpha = users['AlphaTrader']
        if not alpha.trades.exists():
            Trade.objects.create(
                trader=alpha,
                symbol='BTC/USD',
                direction=Trade.DIRECTION_LONG,
                entry_price=Decimal('42500'),
                quantity=Decimal('0.5'),
            )

        king = users['CryptoKing']
        if not king.trades.exists():
            Trade.objects.create(
                trader=king,
                symbol='ETH/USD',
                direction=Trade.DIRECTION_LONG,
                entry_price=Decimal('2250'),
                exit_price=Decimal('2380'),
                quantity=Decimal('5'),
                pnl=Decimal('650'),
                status=Trade.STATUS_CLOSED,
                closed_at=timezone.now(),
            )

        self.stdout.write(self.style.SUCCESS('✅ Demo data loaded successfully!'))
