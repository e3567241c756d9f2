"""Registro de sessões de checkout: criação, consulta, total, histórico e status.

Única porta de escrita no estado da sessão. O backend (memória/SQL) é injetado.
"""
from __future__ import annotations
from datetime import datetime, timezone
from typing import Any, Iterable, List, Optional
from pydantic import ValidationError
from ..models import CartItem, CheckoutSession, Message, SessionStatus
from ..errors import InvalidCartError, InvalidTransitionError, SessionNotFoundError
from ...ports.interfaces import SessionStore
from ...core.logging import get_logger

log = get_logger()

# active -> completed direto quando o pagamento é síncrono
ALLOWED_TRANSITIONS = {
    SessionStatus.ACTIVE: {SessionStatus.PENDING_PAYMENT, SessionStatus.COMPLETED},
    SessionStatus.PENDING_PAYMENT: {SessionStatus.PENDING_PAYMENT, SessionStatus.COMPLETED, SessionStatus.CANCELLED},
    SessionStatus.COMPLETED: set(),
    SessionStatus.CANCELLED: set(),
}


def parse_cart(items: Iterable[Any]) -> List[CartItem]:
    """Valida itens do carrinho (dict ou CartItem). Lança InvalidCartError."""
    cart: List[CartItem] = []
    for idx, raw in enumerate(items or []):
        try:
            cart.append(raw if isinstance(raw, CartItem) else CartItem.model_validate(raw))
        except ValidationError as e:
            problems = "; ".join(f"{'.'.join(map(str, err['loc']))}: {err['msg']}" for err in e.errors())
            raise InvalidCartError(f"invalid cart item #{idx}: {problems}") from e
    if not cart:
        raise InvalidCartError("cart must contain at least one item")
    return cart


class SessionRegistry:
    def __init__(self, store: SessionStore):
        self.store = store

    def create_session(self, cart: Iterable[Any], currency: str = "THB", user_id: str | None = None) -> CheckoutSession:
        items = parse_cart(cart)
        if not currency:
            raise InvalidCartError("currency is required")
        session = CheckoutSession(cart=items, currency=currency.upper(), user_id=user_id)
        self.store.put(session)
        log.info("session_created", session_id=session.session_id, user_id=user_id,
                 total_amount=session.total_amount, currency=session.currency, items=len(items))
        return session

    def get_session(self, session_id: str) -> Optional[CheckoutSession]:
        return self.store.get(session_id)

    def require_session(self, session_id: str) -> CheckoutSession:
        session = self.store.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    def save(self, session: CheckoutSession) -> None:
        session.updated_at = datetime.now(timezone.utc)
        self.store.put(session)

    def recalculate_total(self, session: CheckoutSession) -> int:
        """Recalcula o total a partir do carrinho (idempotente) e persiste."""
        total = session.total_amount
        self.save(session)
        log.info("cart_updated", session_id=session.session_id, items=len(session.cart), total_amount=total)
        return total

    def append_message(self, session: CheckoutSession, role: str, content: str) -> Message:
        msg = Message(role=role, content=content)
        session.conversation_history.append(msg)
        self.save(session)
        return msg

    def transition(self, session: CheckoutSession, target: SessionStatus) -> None:
        current = session.status
        if target not in ALLOWED_TRANSITIONS[current]:
            raise InvalidTransitionError(current.value, target.value)
        session.status = target
        self.save(session)
        log.info("status_transition", session_id=session.session_id, from_status=current.value, to_status=target.value)

    def find_by_user(self, user_id: str, limit: int = 10) -> List[CheckoutSession]:
        return self.store.find_by_user(user_id, limit)

    def cleanup(self, older_than_days: int = 30) -> int:
        return self.store.cleanup(older_than_days)
