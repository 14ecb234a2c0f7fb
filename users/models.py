# users/models.py
import uuid
from decimal import Decimal

from django.db import models
from django.db.models import Count, IntegerField, OuterRef, Subquery, Value
from django.db.models.functions import Coalesce


def _count_subquery(queryset, group_field):
    """Scalar subquery counting rows of ``queryset`` per ``group_field``"""
    counted = (
        queryset.order_by()
        .values(group_field)
        .annotate(c=Count('pk'))
        .values('c')
    )
    return Coalesce(Subquery(counted, output_field=IntegerField()), Value(0))


class UserQuerySet(models.QuerySet):
    def traders(self):
        return self.filter(is_trader=True)

    def with_stats(self):
        """Annotate follower count and settled/winning position counts"""
        from trading.models import Trade
        from copy_trading.models import CopyRelation, CopiedTrade

        closed_trades = Trade.objects.filter(
            trader=OuterRef('pk'), status=Trade.STATUS_CLOSED
        )
        closed_copies = CopiedTrade.objects.filter(
            follower=OuterRef('pk'), status=CopiedTrade.STATUS_CLOSED
        )
        active_followers = CopyRelation.objects.filter(
            trader=OuterRef('pk'), active=True
        )

        return self.annotate(
            stat_followers=_count_subquery(active_followers, 'trader'),
            stat_closed_trades=_count_subquery(closed_trades, 'trader'),
            stat_winning_trades=_count_subquery(
                closed_trades.filter(pnl__gt=0), 'trader'
            ),
            stat_closed_copies=_count_subquery(closed_copies, 'follower'),
            stat_winning_copies=_count_subquery(
                closed_copies.filter(pnl__gt=0), 'follower'
            ),
        )


class User(models.Model):
    """
    Ledger account. ``is_trader`` gates whether others may copy the account.

    Balance and total PnL only move through trade settlement; follower count
    and win rate are derived from the ledger on read.
    """
    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
        unique=True
    )
    username = models.CharField(max_length=150, unique=True)
    balance = models.DecimalField(
        max_digits=24,
        decimal_places=8,
        default=Decimal('0')
    )
    total_pnl = models.DecimalField(
        max_digits=24,
        decimal_places=8,
        default=Decimal('0')
    )
    is_trader = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    objects = UserQuerySet.as_manager()

    class Meta:
        ordering = ['created_at']

    def __str__(self):
        return self.username

    def _stats(self):
        if hasattr(self, 'stat_followers'):
            return self
        return User.objects.with_stats().get(pk=self.pk)

    @property
    def followers_count(self):
        return self._stats().stat_followers

    @property
    def win_rate(self):
        stats = self._stats()
        settled = stats.stat_closed_trades + stats.stat_closed_copies
        if not settled:
            return 0.0
        wins = stats.stat_winning_trades + stats.stat_winning_copies
        return wins / settled
