# users/admin.py
from django.contrib import admin
from users.models import User


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ['username', 'is_trader', 'balance', 'total_pnl', 'created_at']
    list_filter = ['is_trader']
    search_fields = ['username']
    ordering = ['-created_at']
    # Balance and PnL only move through settlement
    readonly_fields = ['id', 'balance', 'total_pnl', 'created_at']
