# copy_trading/admin.py
from django.contrib import admin
from copy_trading.models import CopyRelation, CopiedTrade, SettlementFailure


@admin.register(CopyRelation)
class CopyRelationAdmin(admin.ModelAdmin):
    list_display = ['id', 'follower', 'trader', 'copy_ratio', 'active', 'created_at']
    list_filter = ['active', 'created_at']
    search_fields = ['follower__username', 'trader__username']
    readonly_fields = ['created_at']


@admin.register(CopiedTrade)
class CopiedTradeAdmin(admin.ModelAdmin):
    list_display = ['id', 'original_trade', 'follower_id', 'quantity', 'pnl',
                    'status', 'created_at']
    list_filter = ['status', 'created_at']
    readonly_fields = ['quantity', 'pnl', 'status', 'created_at', 'closed_at']


@admin.register(SettlementFailure)
class SettlementFailureAdmin(admin.ModelAdmin):
    list_display = ['id', 'phase', 'trade', 'follower_id', 'attempts',
                    'updated_at', 'resolved_at']
    list_filter = ['phase', 'resolved_at']
    readonly_fields = ['created_at', 'updated_at']
