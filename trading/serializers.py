# trading/serializers.py
from rest_framework import serializers
from trading.models import Trade


class UpperCaseChoiceField(serializers.ChoiceField):
    """Choice stored lower-case, rendered upper-case, accepted in either case"""

    def to_internal_value(self, data):
        if isinstance(data, str):
            data = data.lower()
        return super().to_internal_value(data)

    def to_representation(self, value):
        value = super().to_representation(value)
        return value.upper() if value else value


def ledger_decimal(source, **kwargs):
    return serializers.DecimalField(
        source=source, max_digits=24, decimal_places=8, read_only=True, **kwargs
    )


class TradeSerializer(serializers.ModelSerializer):
    traderId = serializers.UUIDField(source='trader_id', read_only=True)
    direction = UpperCaseChoiceField(choices=Trade.DIRECTION_CHOICES, read_only=True)
    entryPrice = ledger_decimal('entry_price')
    exitPrice = ledger_decimal('exit_price', allow_null=True)
    status = UpperCaseChoiceField(choices=Trade.STATUS_CHOICES, read_only=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)
    closedAt = serializers.DateTimeField(source='closed_at', read_only=True, allow_null=True)

    class Meta:
        model = Trade
        fields = ['id', 'traderId', 'symbol', 'direction', 'entryPrice', 'exitPrice',
                  'quantity', 'pnl', 'status', 'createdAt', 'closedAt']
        read_only_fields = fields


class CreateTradeInputSerializer(serializers.Serializer):
    """Input of createTrade(input: CreateTradeInput)"""
    traderId = serializers.CharField()
    symbol = serializers.CharField(max_length=20)
    direction = UpperCaseChoiceField(choices=Trade.DIRECTION_CHOICES)
    entryPrice = serializers.DecimalField(max_digits=None, decimal_places=None)
    quantity = serializers.DecimalField(max_digits=None, decimal_places=None)


class CloseTradeInputSerializer(serializers.Serializer):
    exitPrice = serializers.DecimalField(max_digits=None, decimal_places=None)
