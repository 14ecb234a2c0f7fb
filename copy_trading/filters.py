# copy_trading/filters.py
import django_filters
from copy_trading.models import CopyRelation, CopiedTrade


class CopyRelationFilter(django_filters.FilterSet):
    followerId = django_filters.UUIDFilter(field_name='follower_id', required=True)

    class Meta:
        model = CopyRelation
        fields = ['followerId']


class CopiedTradeFilter(django_filters.FilterSet):
    followerId = django_filters.UUIDFilter(field_name='follower_id', required=True)

    class Meta:
        model = CopiedTrade
        fields = ['followerId']
