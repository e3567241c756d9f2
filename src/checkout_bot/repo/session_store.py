"""Backends de armazenamento de sessões: memória (testes/dev) e SQL (produção).

Ambos devolvem cópias: quem altera a sessão precisa chamar `put` (via SessionRegistry).
"""
from __future__ import annotations
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional
from sqlalchemy import select, delete
from ..domain.models import CheckoutSession, SessionStatus
from ..repo.models import CheckoutSessionRow
from ..core.logging import get_logger

log = get_logger()

TERMINAL = [SessionStatus.COMPLETED.value, SessionStatus.CANCELLED.value]


class InMemorySessionStore:
    """Mapa em memória, isolado por instância."""

    def __init__(self):
        self._sessions: Dict[str, CheckoutSession] = {}

    def get(self, session_id: str) -> Optional[CheckoutSession]:
        s = self._sessions.get(session_id)
        return s.model_copy(deep=True) if s else None

    def put(self, session: CheckoutSession) -> None:
        self._sessions[session.session_id] = session.model_copy(deep=True)

    def find_by_user(self, user_id: str, limit: int = 10) -> List[CheckoutSession]:
        rows = [s for s in self._sessions.values() if s.user_id == user_id]
        rows.sort(key=lambda s: s.created_at, reverse=True)
        return [s.model_copy(deep=True) for s in rows[:limit]]

    def cleanup(self, older_than_days: int = 30) -> int:
        cutoff = datetime.now(timezone.utc) - timedelta(days=older_than_days)
        stale = [sid for sid, s in self._sessions.items() if s.status.value in TERMINAL and s.updated_at < cutoff]
        for sid in stale:
            del self._sessions[sid]
        return len(stale)


class SqlSessionStore:
    """Uma linha por sessão; o estado completo fica no snapshot JSON."""

    def __init__(self, session_factory):
        self.Session = session_factory

    def get(self, session_id: str) -> Optional[CheckoutSession]:
        with self.Session() as s:
            row = s.get(CheckoutSessionRow, session_id)
            if not row:
                return None
            return CheckoutSession.model_validate(row.snapshot)

    def put(self, session: CheckoutSession) -> None:
        snapshot = session.model_dump(mode="json")
        with self.Session() as s, s.begin():
            row = s.get(CheckoutSessionRow, session.session_id)
            if not row:
                row = CheckoutSessionRow(
                    session_id=session.session_id,
                    user_id=session.user_id,
                    created_at=session.created_at.replace(tzinfo=None),
                )
                s.add(row)
            row.status = session.status.value
            row.snapshot = snapshot
            row.updated_at = session.updated_at.replace(tzinfo=None)

    def find_by_user(self, user_id: str, limit: int = 10) -> List[CheckoutSession]:
        with self.Session() as s:
            rows = s.execute(
                select(CheckoutSessionRow)
                .where(CheckoutSessionRow.user_id == user_id)
                .order_by(CheckoutSessionRow.created_at.desc())
                .limit(limit)
            ).scalars().all()
            return [CheckoutSession.model_validate(r.snapshot) for r in rows]

    def cleanup(self, older_than_days: int = 30) -> int:
        """Remove sessões terminais sem atualização há mais de N dias."""
        cutoff = (datetime.now(timezone.utc) - timedelta(days=older_than_days)).replace(tzinfo=None)
        with self.Session() as s, s.begin():
            result = s.execute(
                delete(CheckoutSessionRow).where(
                    CheckoutSessionRow.status.in_(TERMINAL),
                    CheckoutSessionRow.updated_at < cutoff,
                )
            )
            removed = result.rowcount or 0
        log.info("sessions_cleanup", removed=removed, older_than_days=older_than_days)
        return removed
