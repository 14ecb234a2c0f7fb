# users/services/account_service.py
import logging
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction

from core.exceptions import InvalidUser
from users.models import User

logger = logging.getLogger(__name__)


class AccountService:
    """Registration and lookups for ledger accounts"""

    def register_user(self, username, is_trader):
        """Create an account funded with the configured starting balance"""
        username = (username or '').strip()
        if not username:
            raise InvalidUser("Username is required")

        starting_balance = Decimal(
            str(getattr(settings, 'COPYTRADE_STARTING_BALANCE', '10000'))
        )

        try:
            with transaction.atomic():
                user = User.objects.create(
                    username=username,
                    is_trader=bool(is_trader),
                    balance=starting_balance,
                    total_pnl=Decimal('0'),
                )
        except IntegrityError:
            raise InvalidUser(f"Username '{username}' is already taken")

        logger.info(f"Registered user {user.username} (ID: {user.id}, trader={user.is_trader})")
        return user

    def get_user(self, user_id):
        try:
            return User.objects.with_stats().get(pk=user_id)
        except (User.DoesNotExist, ValidationError, ValueError, TypeError):
            raise InvalidUser(f"User {user_id} not found")

    def get_trader(self, trader_id):
        """Fetch an account that others are allowed to copy"""
        user = self.get_user(trader_id)
        if not user.is_trader:
            raise InvalidUser(f"User {trader_id} is not a trader")
        return user
