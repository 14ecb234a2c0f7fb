# core/urls.py
import logging

from django.contrib import admin
from django.core.cache import cache
from django.db import connection
from django.http import JsonResponse
from django.urls import include, path
from drf_spectacular.views import (
    SpectacularAPIView,
    SpectacularRedocView,
    SpectacularSwaggerView,
)
from rest_framework.routers import DefaultRouter

from copy_trading.views import CopiedTradeViewSet, CopyRelationViewSet
from trading.views import TradeViewSet
from users.views import TraderViewSet, UserViewSet

logger = logging.getLogger(__name__)


def health_check(request):
    """Health check endpoint for monitoring"""
    try:
        # Check database
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")

        # Check cache
        cache.set('health_check', 'ok', 10)
        cache.get('health_check')

        return JsonResponse({
            'status': 'healthy',
            'database': 'ok',
            'cache': 'ok',
        })
    except Exception as e:
        logger.error(f"Health check failed: {e}", exc_info=True)
        return JsonResponse({
            'status': 'unhealthy',
            'error': str(e)
        }, status=500)


# Create router
router = DefaultRouter()

# Accounts
router.register(r'users', UserViewSet, basename='user')
router.register(r'traders', TraderViewSet, basename='trader')

# Trades
router.register(r'trades', TradeViewSet, basename='trade')

# Copy Trading
router.register(r'copy-relations', CopyRelationViewSet, basename='copy-relation')
router.register(r'copied-trades', CopiedTradeViewSet, basename='copied-trade')

urlpatterns = [
    # Admin
    path('admin/', admin.site.urls),
    path('health/', health_check, name='health_check'),

    # API Documentation
    path('api/schema/', SpectacularAPIView.as_view(), name='schema'),
    path('api/docs/', SpectacularSwaggerView.as_view(url_name='schema'),
         name='swagger-ui'),
    path('api/redoc/', SpectacularRedocView.as_view(url_name='schema'),
         name='redoc'),

    # API Routes
    path('api/v1/', include(router.urls)),
]
