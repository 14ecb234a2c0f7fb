# trading/filters.py
import django_filters
from trading.models import Trade


class TradeFilter(django_filters.FilterSet):
    traderId = django_filters.UUIDFilter(field_name='trader_id')

    class Meta:
        model = Trade
        fields = ['traderId']
