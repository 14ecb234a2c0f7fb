# users/serializers.py
from rest_framework import serializers
from users.models import User


class UserSerializer(serializers.ModelSerializer):
    totalPnl = serializers.DecimalField(
        source='total_pnl', max_digits=24, decimal_places=8, read_only=True
    )
    winRate = serializers.FloatField(source='win_rate', read_only=True)
    followersCount = serializers.IntegerField(source='followers_count', read_only=True)
    isTrader = serializers.BooleanField(source='is_trader', read_only=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)

    class Meta:
        model = User
        fields = ['id', 'username', 'balance', 'totalPnl', 'winRate',
                  'followersCount', 'isTrader', 'createdAt']
        read_only_fields = fields


class RegisterUserSerializer(serializers.Serializer):
    """Input of registerUser(username, isTrader)"""
    username = serializers.CharField(max_length=150)
    isTrader = serializers.BooleanField()
