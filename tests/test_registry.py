"""Copy relation registry."""
import uuid
from decimal import Decimal

import pytest
from django.db import IntegrityError, transaction

from copy_trading.models import CopyRelation
from core.exceptions import (
    AlreadyCopying, InvalidRatio, InvalidUser, RelationNotFound, SelfCopy
)


@pytest.mark.django_db
class TestCreateRelation:

    def test_create_relation(self, registry, trader, follower):
        relation = registry.create_relation(follower.id, trader.id, '0.5')

        assert relation.active is True
        assert relation.follower_id == follower.id
        assert relation.trader_id == trader.id
        assert relation.copy_ratio == Decimal('0.5')

    def test_ratio_above_one_is_allowed(self, registry, trader, follower):
        relation = registry.create_relation(follower.id, trader.id, '2.5')
        assert relation.copy_ratio == Decimal('2.5')

    @pytest.mark.parametrize('ratio', ['0', '-0.5', 'NaN', 'Infinity', '0.0000001', '5000000'])
    def test_invalid_ratio(self, registry, trader, follower, ratio):
        with pytest.raises(InvalidRatio):
            registry.create_relation(follower.id, trader.id, ratio)
        assert not CopyRelation.objects.exists()

    def test_self_copy(self, registry, trader):
        with pytest.raises(SelfCopy):
            registry.create_relation(trader.id, trader.id, '1')

    def test_trader_must_be_flagged(self, registry, follower, make_user):
        regular = make_user(is_trader=False)
        with pytest.raises(InvalidUser):
            registry.create_relation(follower.id, regular.id, '1')

    def test_unknown_follower(self, registry, trader):
        with pytest.raises(InvalidUser):
            registry.create_relation(uuid.uuid4(), trader.id, '1')

    def test_history_is_not_unique(self, registry, trader, follower):
        first = registry.create_relation(follower.id, trader.id, '1')
        registry.deactivate(first.id)
        second = registry.create_relation(follower.id, trader.id, '0.25')

        assert first.id != second.id
        assert CopyRelation.objects.filter(follower=follower, trader=trader).count() == 2


@pytest.mark.django_db
class TestDeactivate:

    def test_deactivate(self, registry, trader, follower):
        relation = registry.create_relation(follower.id, trader.id, '1')

        result = registry.deactivate(relation.id)

        assert result.active is False
        relation.refresh_from_db()
        assert relation.active is False

    def test_deactivate_is_idempotent(self, registry, trader, follower):
        relation = registry.create_relation(follower.id, trader.id, '1')
        registry.deactivate(relation.id)

        again = registry.deactivate(relation.id)

        assert again.active is False

    def test_unknown_relation(self, registry):
        with pytest.raises(RelationNotFound):
            registry.deactivate(uuid.uuid4())
        with pytest.raises(RelationNotFound):
            registry.deactivate('nope')


@pytest.mark.django_db
class TestQueries:

    def test_active_relations_for_reflects_latest_state(self, registry, trader, make_user):
        a = registry.create_relation(make_user().id, trader.id, '1')
        b = registry.create_relation(make_user().id, trader.id, '1')
        assert {r.id for r in registry.active_relations_for(trader.id)} == {a.id, b.id}

        registry.deactivate(a.id)
        assert [r.id for r in registry.active_relations_for(trader.id)] == [b.id]

    def test_active_relations_for_other_trader_are_excluded(self, registry, trader, follower, make_user):
        other = make_user(is_trader=True)
        registry.create_relation(follower.id, other.id, '1')
        assert registry.active_relations_for(trader.id) == []

    def test_relations_for_follower_returns_active_only(self, registry, trader, follower, make_user):
        other = make_user(is_trader=True)
        kept = registry.create_relation(follower.id, trader.id, '1')
        dropped = registry.create_relation(follower.id, other.id, '1')
        registry.deactivate(dropped.id)

        assert [r.id for r in registry.relations_for_follower(follower.id)] == [kept.id]


@pytest.mark.django_db
class TestOneActiveRelationPerPair:

    def test_second_active_relation_is_rejected(self, registry, trader, follower):
        first = registry.create_relation(follower.id, trader.id, '1')

        with pytest.raises(AlreadyCopying):
            registry.create_relation(follower.id, trader.id, '0.5')

        assert list(CopyRelation.objects.values_list('id', flat=True)) == [first.id]

    def test_database_rejects_a_second_active_row(self, trader, follower):
        CopyRelation.objects.create(follower=follower, trader=trader, copy_ratio=Decimal('1'))

        with pytest.raises(IntegrityError):
            with transaction.atomic():
                CopyRelation.objects.create(follower=follower, trader=trader, copy_ratio=Decimal('2'))

    def test_same_follower_may_copy_several_traders(self, registry, follower, trader, make_user):
        other = make_user(is_trader=True)

        registry.create_relation(follower.id, trader.id, '1')
        registry.create_relation(follower.id, other.id, '1')

        assert registry.relations_for_follower(follower.id).count() == 2
