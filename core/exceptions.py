# core/exceptions.py
"""
Error taxonomy for the copy trading engine.

Services raise these; the DRF exception handler below turns them into
``{"error": ..., "code": ...}`` responses with the status each class carries.
"""
import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class CopyTradeError(Exception):
    """Base class for engine errors"""
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = 'Copy trading error'

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)

    @property
    def code(self):
        return type(self).__name__


class InvalidUser(CopyTradeError):
    default_message = 'Invalid user'


class InvalidQuantity(CopyTradeError):
    default_message = 'Invalid quantity'


class InvalidPrice(CopyTradeError):
    default_message = 'Invalid price'


class InvalidRatio(CopyTradeError):
    default_message = 'Invalid copy ratio'


class SelfCopy(CopyTradeError):
    default_message = 'Cannot copy your own trades'


class TradeNotFound(CopyTradeError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = 'Trade not found'


class RelationNotFound(CopyTradeError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = 'Copy relation not found'


class AlreadyClosed(CopyTradeError):
    status_code = status.HTTP_409_CONFLICT
    default_message = 'Trade is already closed'


class AlreadyCopying(CopyTradeError):
    status_code = status.HTTP_409_CONFLICT
    default_message = 'Already copying this trader'


class SettlementFailed(CopyTradeError):
    """Per-follower fan-out failure. Recorded and retried, never returned to a caller."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = 'Settlement failed'


def copytrade_exception_handler(exc, context):
    """Render engine errors; defer everything else to DRF"""
    if isinstance(exc, CopyTradeError):
        if exc.status_code >= 500:
            logger.error(f"{exc.code}: {exc.message}", exc_info=True)
        return Response(
            {'error': exc.message, 'code': exc.code},
            status=exc.status_code
        )

    return exception_handler(exc, context)
