# copy_trading/models.py
import uuid

from django.db import models
from django.db.models import Q


class CopyRelation(models.Model):
    """A follower's subscription to a trader's trades"""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    follower = models.ForeignKey(
        'users.User',
        on_delete=models.CASCADE,
        related_name='following'
    )
    trader = models.ForeignKey(
        'users.User',
        on_delete=models.CASCADE,
        related_name='followers'
    )
    copy_ratio = models.DecimalField(max_digits=12, decimal_places=6)  # 0.5 = half size
    active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['trader', 'active']),
            models.Index(fields=['follower', 'active']),
        ]
        constraints = [
            # history may repeat a pair, but only one of them is live
            models.UniqueConstraint(
                fields=['follower', 'trader'],
                condition=Q(active=True),
                name='one_active_relation_per_pair',
            ),
        ]

    def __str__(self):
        return f"{self.follower_id} -> {self.trader_id} x{self.copy_ratio}"


class CopiedTrade(models.Model):
    """
    A follower's scaled copy of an original trade.

    Quantity is fixed when the copy is created. Open/close follows the
    original trade only.
    """
    STATUS_OPEN = 'open'
    STATUS_CLOSED = 'closed'
    STATUS_CHOICES = [
        (STATUS_OPEN, 'Open'),
        (STATUS_CLOSED, 'Closed')
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    original_trade = models.ForeignKey(
        'trading.Trade',
        on_delete=models.CASCADE,
        related_name='copies'
    )
    relation = models.ForeignKey(
        CopyRelation,
        on_delete=models.PROTECT,
        related_name='copied_trades'
    )
    # No FK constraint: a missing follower must surface as a settlement
    # failure, not cascade away the position.
    follower = models.ForeignKey(
        'users.User',
        on_delete=models.DO_NOTHING,
        db_constraint=False,
        related_name='copied_trades'
    )
    quantity = models.DecimalField(max_digits=24, decimal_places=8)
    pnl = models.DecimalField(max_digits=24, decimal_places=8, null=True, blank=True)
    status = models.CharField(max_length=6, choices=STATUS_CHOICES, default=STATUS_OPEN)
    created_at = models.DateTimeField(auto_now_add=True)
    closed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['original_trade', 'status']),
            models.Index(fields=['follower', 'status']),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=['original_trade', 'relation'],
                name='one_copy_per_trade_and_relation',
            ),
            models.CheckConstraint(
                condition=(
                    Q(status='open', pnl__isnull=True, closed_at__isnull=True)
                    | Q(status='closed', pnl__isnull=False, closed_at__isnull=False)
                ),
                name='copied_trade_close_fields_match_status',
            ),
        ]

    def __str__(self):
        return f"Copy of {self.original_trade_id} for {self.follower_id} ({self.status})"


class SettlementFailure(models.Model):
    """A per-follower fan-out step that failed and is waiting to be retried"""
    PHASE_OPEN = 'open'  # creating the copied trade
    PHASE_CLOSE = 'close'  # settling the copied trade
    PHASE_CHOICES = [
        (PHASE_OPEN, 'Copy on open'),
        (PHASE_CLOSE, 'Settle on close')
    ]

    phase = models.CharField(max_length=5, choices=PHASE_CHOICES)
    trade = models.ForeignKey(
        'trading.Trade',
        on_delete=models.CASCADE,
        related_name='settlement_failures'
    )
    relation = models.ForeignKey(
        CopyRelation,
        on_delete=models.CASCADE,
        related_name='settlement_failures'
    )
    copied_trade = models.ForeignKey(
        CopiedTrade,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='settlement_failures'
    )
    follower_id = models.UUIDField()
    error = models.TextField(blank=True)
    attempts = models.IntegerField(default=1)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    resolved_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ['created_at']
        constraints = [
            models.UniqueConstraint(
                fields=['phase', 'trade', 'relation'],
                condition=Q(resolved_at__isnull=True),
                name='one_pending_failure_per_step',
            ),
        ]

    def __str__(self):
        return f"{self.phase} failure for trade {self.trade_id} / relation {self.relation_id}"
