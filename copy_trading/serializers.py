# copy_trading/serializers.py
from rest_framework import serializers
from copy_trading.models import CopyRelation, CopiedTrade
from trading.serializers import UpperCaseChoiceField


class CopyRelationSerializer(serializers.ModelSerializer):
    followerId = serializers.UUIDField(source='follower_id', read_only=True)
    traderId = serializers.UUIDField(source='trader_id', read_only=True)
    copyRatio = serializers.DecimalField(
        source='copy_ratio', max_digits=12, decimal_places=6, read_only=True
    )
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)

    class Meta:
        model = CopyRelation
        fields = ['id', 'followerId', 'traderId', 'copyRatio', 'active', 'createdAt']
        read_only_fields = fields


class CopyTraderInputSerializer(serializers.Serializer):
    """Input of copyTrader(input: CopyTraderInput)"""
    followerId = serializers.CharField()
    traderId = serializers.CharField()
    copyRatio = serializers.DecimalField(max_digits=None, decimal_places=None)


class CopiedTradeSerializer(serializers.ModelSerializer):
    originalTradeId = serializers.UUIDField(source='original_trade_id', read_only=True)
    followerId = serializers.UUIDField(source='follower_id', read_only=True)
    status = UpperCaseChoiceField(choices=CopiedTrade.STATUS_CHOICES, read_only=True)

    class Meta:
        model = CopiedTrade
        fields = ['id', 'originalTradeId', 'followerId', 'quantity', 'pnl', 'status']
        read_only_fields = fields
