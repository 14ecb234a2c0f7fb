# trading/views.py
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from trading.filters import TradeFilter
from trading.models import Trade
from trading.serializers import (
    CloseTradeInputSerializer, CreateTradeInputSerializer, TradeSerializer
)
from trading.services.trade_service import TradeLifecycleService


class TradeViewSet(mixins.ListModelMixin,
                   mixins.RetrieveModelMixin,
                   viewsets.GenericViewSet):
    """trades(traderId), openTrades, createTrade and closeTrade"""
    serializer_class = TradeSerializer
    queryset = Trade.objects.all()
    filterset_class = TradeFilter

    def create(self, request):
        """Open a trade for a trader and copy it to their followers"""
        serializer = CreateTradeInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        trade = TradeLifecycleService().open_trade(
            data['traderId'],
            data['symbol'],
            data['direction'],
            data['entryPrice'],
            data['quantity']
        )
        return Response(
            TradeSerializer(trade).data,
            status=status.HTTP_201_CREATED
        )

    @action(detail=False, methods=['get'])
    def open(self, request):
        """Get all open trades"""
        trades = self.filter_queryset(self.get_queryset()).filter(status=Trade.STATUS_OPEN)
        serializer = self.get_serializer(trades, many=True)
        return Response(serializer.data)

    @action(detail=True, methods=['post'])
    def close(self, request, pk=None):
        """Close an open trade and settle every copy of it"""
        serializer = CloseTradeInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        trade = TradeLifecycleService().close_trade(
            pk,
            serializer.validated_data['exitPrice']
        )
        return Response(TradeSerializer(trade).data)
