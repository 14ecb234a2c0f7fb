# realtime/routing.py
from django.urls import path
from .consumers import TradingConsumer

websocket_urlpatterns = [
    path('ws/trading/<uuid:user_id>/', TradingConsumer.as_asgi()),
]
