from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from checkout_bot.domain.errors import InvalidCartError, InvalidTransitionError, SessionNotFoundError
from checkout_bot.domain.models import CartItem, SessionStatus
from checkout_bot.domain.services.session_registry import SessionRegistry
from checkout_bot.repo.session_store import InMemorySessionStore, SqlSessionStore


def test_create_session_computes_total(registry: SessionRegistry) -> None:
    session = registry.create_session([{"id": "a", "name": "Shoe", "price": 50000, "quantity": 2}], "thb")

    assert session.total_amount == 100000
    assert session.currency == "THB"
    assert session.status == SessionStatus.ACTIVE
    assert session.conversation_history == []
    assert registry.get_session(session.session_id) is not None


@pytest.mark.parametrize(
    "cart",
    [
        [],
        [{"id": "a", "name": "Shoe", "price": 100, "quantity": 0}],
        [{"id": "a", "name": "Shoe", "price": -1, "quantity": 1}],
        [{"id": "a", "price": 100, "quantity": 1}],
    ],
)
def test_create_session_rejects_invalid_cart(registry: SessionRegistry, cart) -> None:
    with pytest.raises(InvalidCartError):
        registry.create_session(cart, "THB")


def test_get_session_unknown_returns_none(registry: SessionRegistry) -> None:
    assert registry.get_session("sess_missing") is None
    with pytest.raises(SessionNotFoundError, match="sess_missing"):
        registry.require_session("sess_missing")


def test_total_follows_cart_changes(registry: SessionRegistry) -> None:
    session = registry.create_session([{"id": "a", "name": "Shoe", "price": 1999, "quantity": 3}], "THB")
    session.cart.append(CartItem(id="b", name="Sock", price=1, quantity=7))

    assert registry.recalculate_total(session) == 1999 * 3 + 7
    assert registry.recalculate_total(session) == 1999 * 3 + 7
    assert registry.require_session(session.session_id).total_amount == 1999 * 3 + 7


def test_total_amount_cannot_be_assigned(registry: SessionRegistry) -> None:
    session = registry.create_session([{"id": "a", "name": "Shoe", "price": 100, "quantity": 1}], "THB")
    with pytest.raises(AttributeError):
        session.total_amount = 5


def test_append_message_keeps_order(registry: SessionRegistry) -> None:
    session = registry.create_session([{"id": "a", "name": "Shoe", "price": 100, "quantity": 1}], "THB")
    registry.append_message(session, "user", "hi")
    registry.append_message(session, "assistant", "hello")

    stored = registry.require_session(session.session_id)
    assert [(m.role, m.content) for m in stored.conversation_history] == [("user", "hi"), ("assistant", "hello")]


class TestTransitions:
    def _session(self, registry: SessionRegistry):
        return registry.create_session([{"id": "a", "name": "Shoe", "price": 100, "quantity": 1}], "THB")

    def test_active_to_completed(self, registry: SessionRegistry) -> None:
        session = self._session(registry)
        registry.transition(session, SessionStatus.COMPLETED)
        assert registry.require_session(session.session_id).status == SessionStatus.COMPLETED

    def test_pending_can_repeat_then_cancel(self, registry: SessionRegistry) -> None:
        session = self._session(registry)
        registry.transition(session, SessionStatus.PENDING_PAYMENT)
        registry.transition(session, SessionStatus.PENDING_PAYMENT)
        registry.transition(session, SessionStatus.CANCELLED)
        assert session.status == SessionStatus.CANCELLED

    @pytest.mark.parametrize("target", list(SessionStatus))
    def test_terminal_states_never_leave(self, registry: SessionRegistry, target) -> None:
        session = self._session(registry)
        registry.transition(session, SessionStatus.COMPLETED)
        with pytest.raises(InvalidTransitionError):
            registry.transition(session, target)

    def test_active_cannot_be_cancelled_directly(self, registry: SessionRegistry) -> None:
        session = self._session(registry)
        with pytest.raises(InvalidTransitionError):
            registry.transition(session, SessionStatus.CANCELLED)
        assert session.status == SessionStatus.ACTIVE


class TestStores:
    @pytest.fixture(params=["memory", "sql"])
    def store_registry(self, request, session_factory) -> SessionRegistry:
        store = InMemorySessionStore() if request.param == "memory" else SqlSessionStore(session_factory)
        return SessionRegistry(store)

    def test_roundtrip_keeps_state(self, store_registry: SessionRegistry) -> None:
        session = store_registry.create_session(
            [{"id": "a", "name": "Shoe", "price": 2500, "quantity": 2}], "THB", user_id="user_1")
        store_registry.append_message(session, "user", "pay with promptpay")
        store_registry.transition(session, SessionStatus.PENDING_PAYMENT)

        loaded = store_registry.require_session(session.session_id)
        assert loaded.session_id == session.session_id
        assert loaded.user_id == "user_1"
        assert loaded.total_amount == 5000
        assert loaded.status == SessionStatus.PENDING_PAYMENT
        assert loaded.conversation_history[0].content == "pay with promptpay"

    def test_store_returns_copies(self, store_registry: SessionRegistry) -> None:
        session = store_registry.create_session([{"id": "a", "name": "Shoe", "price": 100, "quantity": 1}], "THB")
        session.cart[0].quantity = 9

        assert store_registry.require_session(session.session_id).total_amount == 100

    def test_find_by_user(self, store_registry: SessionRegistry) -> None:
        store_registry.create_session([{"id": "a", "name": "Shoe", "price": 100, "quantity": 1}], "THB", "user_1")
        store_registry.create_session([{"id": "a", "name": "Shoe", "price": 100, "quantity": 1}], "THB", "user_2")
        store_registry.create_session([{"id": "b", "name": "Hat", "price": 100, "quantity": 1}], "THB", "user_1")

        found = store_registry.find_by_user("user_1")
        assert len(found) == 2
        assert all(s.user_id == "user_1" for s in found)

    def test_cleanup_removes_only_old_terminal_sessions(self, store_registry: SessionRegistry) -> None:
        old_done = store_registry.create_session([{"id": "a", "name": "Shoe", "price": 100, "quantity": 1}], "THB")
        old_active = store_registry.create_session([{"id": "a", "name": "Shoe", "price": 100, "quantity": 1}], "THB")
        fresh_done = store_registry.create_session([{"id": "a", "name": "Shoe", "price": 100, "quantity": 1}], "THB")
        store_registry.transition(old_done, SessionStatus.COMPLETED)
        store_registry.transition(fresh_done, SessionStatus.COMPLETED)

        past = datetime.now(timezone.utc) - timedelta(days=40)
        for s in (old_done, old_active):
            s.updated_at = past
            store_registry.store.put(s)

        assert store_registry.cleanup(older_than_days=30) == 1
        assert store_registry.get_session(old_done.session_id) is None
        assert store_registry.get_session(old_active.session_id) is not None
        assert store_registry.get_session(fresh_done.session_id) is not None
