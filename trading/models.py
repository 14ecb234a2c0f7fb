# trading/models.py
import uuid

from django.db import models
from django.db.models import Q


class Trade(models.Model):
    """Original trade opened by a trader account"""
    DIRECTION_LONG = 'long'
    DIRECTION_SHORT = 'short'
    DIRECTION_CHOICES = [
        (DIRECTION_LONG, 'Long'),
        (DIRECTION_SHORT, 'Short')
    ]

    STATUS_OPEN = 'open'
    STATUS_CLOSED = 'closed'
    STATUS_CHOICES = [
        (STATUS_OPEN, 'Open'),
        (STATUS_CLOSED, 'Closed')
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    trader = models.ForeignKey(
        'users.User',
        on_delete=models.CASCADE,
        related_name='trades'
    )
    symbol = models.CharField(max_length=20)  # BTC/USD, ETH/USD, AAPL
    direction = models.CharField(max_length=5, choices=DIRECTION_CHOICES)
    entry_price = models.DecimalField(max_digits=24, decimal_places=8)
    exit_price = models.DecimalField(max_digits=24, decimal_places=8, null=True, blank=True)
    quantity = models.DecimalField(max_digits=24, decimal_places=8)
    pnl = models.DecimalField(max_digits=24, decimal_places=8, null=True, blank=True)
    status = models.CharField(max_length=6, choices=STATUS_CHOICES, default=STATUS_OPEN)
    created_at = models.DateTimeField(auto_now_add=True)
    closed_at = models.DateTimeField(null=True, blank=True)
    # Set once copy creation for the trade has been handed to the workers
    copies_dispatched_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['trader', 'status']),
            models.Index(fields=['status']),
            models.Index(fields=['copies_dispatched_at']),
        ]
        constraints = [
            # exit price, pnl and closed_at are set together, and only once closed
            models.CheckConstraint(
                condition=(
                    Q(status='open', exit_price__isnull=True,
                      pnl__isnull=True, closed_at__isnull=True)
                    | Q(status='closed', exit_price__isnull=False,
                        pnl__isnull=False, closed_at__isnull=False)
                ),
                name='trade_close_fields_match_status',
            ),
        ]

    def __str__(self):
        return f"{self.direction} {self.quantity} {self.symbol} @ {self.entry_price} ({self.status})"

    @property
    def is_open(self):
        return self.status == self.STATUS_OPEN
