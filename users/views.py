# users/views.py
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from users.models import User
from users.serializers import RegisterUserSerializer, UserSerializer
from users.services.account_service import AccountService


class UserViewSet(viewsets.ReadOnlyModelViewSet):
    """users, user(id) and registerUser"""
    serializer_class = UserSerializer
    queryset = User.objects.with_stats()

    @action(detail=False, methods=['post'])
    def register(self, request):
        """Register a new account with the starting balance"""
        serializer = RegisterUserSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        user = AccountService().register_user(
            serializer.validated_data['username'],
            serializer.validated_data['isTrader']
        )
        return Response(
            UserSerializer(user).data,
            status=status.HTTP_201_CREATED
        )


class TraderViewSet(viewsets.ReadOnlyModelViewSet):
    """Accounts that others can copy"""
    serializer_class = UserSerializer
    queryset = User.objects.with_stats().traders()
