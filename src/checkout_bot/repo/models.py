"""Modelos SQLAlchemy para sessões de checkout e perfis de usuário."""
from __future__ import annotations
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy import String, Integer, JSON, Boolean, ForeignKey, TIMESTAMP, BigInteger
from datetime import datetime, timezone


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Base(DeclarativeBase):
    """Base declarativa."""
    pass


class CheckoutSessionRow(Base):
    __tablename__ = "checkout_sessions"
    session_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[str | None] = mapped_column(String(64), index=True)
    status: Mapped[str] = mapped_column(String(24), index=True)  # active|pending_payment|completed|cancelled
    snapshot: Mapped[dict] = mapped_column(JSON)
    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=False), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=False), default=_utcnow, index=True)


class UserProfileRow(Base):
    __tablename__ = "user_profiles"
    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    email: Mapped[str] = mapped_column(String(255), unique=True)
    first_name: Mapped[str] = mapped_column(String(120))
    last_name: Mapped[str] = mapped_column(String(120))
    phone: Mapped[str | None] = mapped_column(String(32))
    total_orders: Mapped[int] = mapped_column(Integer, default=0)
    total_spent: Mapped[int] = mapped_column(BigInteger, default=0)  # unidade mínima
    last_checkout_at: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=False))
    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=False), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=False), default=_utcnow)

    addresses: Mapped[list["SavedAddressRow"]] = relationship(
        back_populates="profile", cascade="all, delete-orphan", order_by="SavedAddressRow.position")
    payment_methods: Mapped[list["PaymentMethodRow"]] = relationship(
        back_populates="profile", cascade="all, delete-orphan", order_by="PaymentMethodRow.position")


class SavedAddressRow(Base):
    __tablename__ = "saved_addresses"
    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[str] = mapped_column(ForeignKey("user_profiles.id", ondelete="CASCADE"), index=True)
    kind: Mapped[str] = mapped_column(String(16))  # shipping|billing
    position: Mapped[int] = mapped_column(Integer, default=0)
    is_default: Mapped[bool] = mapped_column(Boolean, default=False)
    fields: Mapped[dict] = mapped_column(JSON)

    profile: Mapped[UserProfileRow] = relationship(back_populates="addresses")


class PaymentMethodRow(Base):
    __tablename__ = "payment_methods"
    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[str] = mapped_column(ForeignKey("user_profiles.id", ondelete="CASCADE"), index=True)
    type: Mapped[str] = mapped_column(String(24))  # card|promptpay|internet_banking|mobile_banking
    position: Mapped[int] = mapped_column(Integer, default=0)
    is_default: Mapped[bool] = mapped_column(Boolean, default=False)
    fields: Mapped[dict] = mapped_column(JSON)
    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=False), default=_utcnow)

    profile: Mapped[UserProfileRow] = relationship(back_populates="payment_methods")
