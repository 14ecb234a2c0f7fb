from decimal import Decimal

import pytest

from copy_trading.services.copy_service import ReplicationEngine
from copy_trading.services.registry import CopyRelationRegistry
from core.celery import app as celery_app
from trading.services.trade_service import TradeLifecycleService
from users.models import User


@pytest.fixture(scope='session', autouse=True)
def celery_eager():
    """Run fan-out tasks inline so settlement is synchronous in tests"""
    celery_app.conf.task_always_eager = True
    celery_app.conf.task_eager_propagates = True
    yield


@pytest.fixture(autouse=True)
def in_memory_backends(settings):
    settings.CHANNEL_LAYERS = {
        'default': {'BACKEND': 'channels.layers.InMemoryChannelLayer'}
    }
    settings.CACHES = {
        'default': {'BACKEND': 'django.core.cache.backends.locmem.LocMemCache'}
    }


@pytest.fixture
def make_user(db):
    counter = {'n': 0}

    def _make_user(username=None, is_trader=False, balance='10000'):
        counter['n'] += 1
        return User.objects.create(
            username=username or f'user{counter["n"]}',
            is_trader=is_trader,
            balance=Decimal(balance),
        )

    return _make_user


@pytest.fixture
def trader(make_user):
    return make_user('AlphaTrader', is_trader=True, balance='100000')


@pytest.fixture
def follower(make_user):
    return make_user('NewInvestor')


@pytest.fixture
def registry():
    return CopyRelationRegistry()


@pytest.fixture
def engine():
    return ReplicationEngine()


@pytest.fixture
def lifecycle():
    return TradeLifecycleService()


@pytest.fixture
def committed(django_capture_on_commit_callbacks):
    """Call ``fn`` and run the on_commit hooks it registers, i.e. the fan-out"""
    def _committed(fn, *args, **kwargs):
        with django_capture_on_commit_callbacks(execute=True):
            result = fn(*args, **kwargs)
        return result

    return _committed
