# trading/admin.py
from django.contrib import admin
from trading.models import Trade


@admin.register(Trade)
class TradeAdmin(admin.ModelAdmin):
    list_display = ['id', 'trader', 'symbol', 'direction', 'quantity',
                    'entry_price', 'exit_price', 'pnl', 'status', 'created_at']
    list_filter = ['status', 'direction', 'symbol']
    search_fields = ['trader__username', 'symbol']
    readonly_fields = ['id', 'exit_price', 'pnl', 'status', 'created_at', 'closed_at']
