"""
Tests for the order transition table and actor resolution.

Run with: pytest tests/unit/test_order_transitions.py -v
"""

from types import SimpleNamespace

import pytest

from core.exceptions import InvalidTransition
from marketplace.models import Order
from marketplace.services.order_lifecycle import (
    ACTOR_ADMIN,
    ACTOR_CUSTOMER,
    ACTOR_SHOP,
    ORDER_TRANSITIONS,
    actor_kinds,
    allowed_next_statuses,
    validate_status_transition,
)

S = Order.Status


def make_order(status, customer_id='cust', owner_id='owner'):
    return SimpleNamespace(
        status=status,
        customer_id=customer_id,
        shop=SimpleNamespace(owner_id=owner_id),
    )


def make_user(pk, role='customer'):
    return SimpleNamespace(pk=pk, role=role)


class TestTransitionTable:

    @pytest.mark.parametrize('from_status,to_status,kind', [
        (S.PROCESSING, S.ACCEPTED, ACTOR_SHOP),
        (S.PROCESSING, S.CANCELLED, ACTOR_CUSTOMER),
        (S.PROCESSING, S.CANCELLED, ACTOR_SHOP),
        (S.ACCEPTED, S.IN_TRANSIT, ACTOR_SHOP),
        (S.ACCEPTED, S.CANCELLED, ACTOR_SHOP),
        (S.IN_TRANSIT, S.DELIVERED, ACTOR_SHOP),
        (S.IN_TRANSIT, S.CANCELLED, ACTOR_ADMIN),
    ])
    def test_permitted_edges(self, from_status, to_status, kind):
        assert validate_status_transition(from_status, to_status, {kind})

    @pytest.mark.parametrize('from_status,to_status,kind', [
        (S.PROCESSING, S.ACCEPTED, ACTOR_CUSTOMER),
        (S.ACCEPTED, S.CANCELLED, ACTOR_CUSTOMER),
        (S.IN_TRANSIT, S.CANCELLED, ACTOR_CUSTOMER),
        (S.IN_TRANSIT, S.CANCELLED, ACTOR_SHOP),
        (S.IN_TRANSIT, S.DELIVERED, ACTOR_CUSTOMER),
    ])
    def test_edges_refused_for_actor(self, from_status, to_status, kind):
        with pytest.raises(InvalidTransition):
            validate_status_transition(from_status, to_status, {kind})

    @pytest.mark.parametrize('from_status', [S.DELIVERED, S.CANCELLED])
    def test_terminal_states_have_no_exit(self, from_status):
        for to_status in S.values:
            with pytest.raises(InvalidTransition):
                validate_status_transition(from_status, to_status, {ACTOR_ADMIN})

    def test_no_skipping_states(self):
        with pytest.raises(InvalidTransition) as exc_info:
            validate_status_transition(S.PROCESSING, S.DELIVERED, {ACTOR_ADMIN})

        assert exc_info.value.from_status == S.PROCESSING
        assert exc_info.value.to_status == S.DELIVERED

    def test_admin_may_fire_every_edge(self):
        for allowed in ORDER_TRANSITIONS.values():
            assert ACTOR_ADMIN in allowed


class TestActorKinds:

    def test_customer_of_order(self):
        order = make_order(S.PROCESSING)
        assert actor_kinds(make_user('cust'), order) == {ACTOR_CUSTOMER}

    def test_owner_of_shop(self):
        order = make_order(S.PROCESSING)
        assert actor_kinds(make_user('owner', 'shop_owner'), order) == {ACTOR_SHOP}

    def test_stranger_has_no_relation(self):
        order = make_order(S.PROCESSING)
        assert actor_kinds(make_user('someone'), order) == set()

    def test_owner_buying_from_own_shop_holds_both(self):
        order = make_order(S.PROCESSING, customer_id='owner')
        assert actor_kinds(make_user('owner', 'shop_owner'), order) == {ACTOR_SHOP, ACTOR_CUSTOMER}

    def test_allowed_next_statuses(self):
        order = make_order(S.ACCEPTED)

        assert set(allowed_next_statuses(make_user('owner', 'shop_owner'), order)) == {S.IN_TRANSIT, S.CANCELLED}
        assert allowed_next_statuses(make_user('cust'), order) == []
