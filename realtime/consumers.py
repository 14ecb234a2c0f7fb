import json
from channels.generic.websocket import AsyncWebsocketConsumer


class TradingConsumer(AsyncWebsocketConsumer):
    """WebSocket consumer for a user's trade and copied trade updates"""

    async def connect(self):
        self.user_id = self.scope['url_route']['kwargs']['user_id']
        self.user_group_name = f'user_{self.user_id}'

        # Join user group
        await self.channel_layer.group_add(
            self.user_group_name,
            self.channel_name
        )

        await self.accept()

    async def disconnect(self, close_code):
        # Leave user group
        await self.channel_layer.group_discard(
            self.user_group_name,
            self.channel_name
        )

    async def trade_update(self, event):
        """Send an original trade update to WebSocket"""
        await self.send(text_data=json.dumps({
            'type': 'trade_update',
            'data': event['data']
        }))

    async def copied_trade_update(self, event):
        """Send a copied trade update to WebSocket"""
        await self.send(text_data=json.dumps({
            'type': 'copied_trade_update',
            'data': event['data']
        }))
