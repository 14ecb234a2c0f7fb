# copy_trading/views.py
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from copy_trading.filters import CopiedTradeFilter, CopyRelationFilter
from copy_trading.models import CopiedTrade, CopyRelation
from copy_trading.serializers import (
    CopiedTradeSerializer, CopyRelationSerializer, CopyTraderInputSerializer
)
from copy_trading.services.registry import CopyRelationRegistry


class CopyRelationViewSet(mixins.ListModelMixin, viewsets.GenericViewSet):
    """myCopyRelations, copyTrader and stopCopying"""
    serializer_class = CopyRelationSerializer
    filterset_class = CopyRelationFilter

    def get_queryset(self):
        if self.action == 'list':
            return CopyRelation.objects.filter(active=True)
        return CopyRelation.objects.all()

    def create(self, request):
        """Start copying a trader"""
        serializer = CopyTraderInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        relation = CopyRelationRegistry().create_relation(
            data['followerId'],
            data['traderId'],
            data['copyRatio']
        )
        return Response(
            CopyRelationSerializer(relation).data,
            status=status.HTTP_201_CREATED
        )

    @action(detail=True, methods=['post'])
    def stop(self, request, pk=None):
        """Stop copying; copies already open still settle"""
        relation = CopyRelationRegistry().deactivate(pk)
        return Response(CopyRelationSerializer(relation).data)


class CopiedTradeViewSet(mixins.ListModelMixin, viewsets.GenericViewSet):
    """myCopiedTrades"""
    serializer_class = CopiedTradeSerializer
    queryset = CopiedTrade.objects.all()
    filterset_class = CopiedTradeFilter
