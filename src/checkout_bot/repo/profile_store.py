"""Repositório de perfis: endereços e meios de pagamento salvos (checkout rápido).

Invariante: no máximo UM padrão por categoria (shipping, billing, payment).
Toda marcação de padrão passa por `_set_exclusive_default`.
"""
from __future__ import annotations
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import uuid4
from sqlalchemy import select
from ..domain.models import (
    AddressFields, DefaultCategory, PaymentMethod, PaymentMethodFields, QuickCheckoutData,
    SavedAddress, UserProfile,
)
from ..domain.errors import CheckoutError, ProfileNotFoundError
from ..repo.models import PaymentMethodRow, SavedAddressRow, UserProfileRow
from ..core.logging import get_logger

log = get_logger()


def _gen_id(prefix: str) -> str:
    return f"{prefix}_{uuid4().hex[:16]}"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _to_address(row: SavedAddressRow) -> SavedAddress:
    return SavedAddress(id=row.id, is_default=row.is_default, **row.fields)


def _to_method(row: PaymentMethodRow) -> PaymentMethod:
    return PaymentMethod(id=row.id, type=row.type, is_default=row.is_default, created_at=row.created_at, **row.fields)


def _to_profile(row: UserProfileRow) -> UserProfile:
    return UserProfile(
        id=row.id,
        email=row.email,
        first_name=row.first_name,
        last_name=row.last_name,
        phone=row.phone,
        shipping_addresses=[_to_address(a) for a in row.addresses if a.kind == "shipping"],
        billing_addresses=[_to_address(a) for a in row.addresses if a.kind == "billing"],
        payment_methods=[_to_method(m) for m in row.payment_methods],
        total_orders=row.total_orders,
        total_spent=row.total_spent,
        last_checkout_at=row.last_checkout_at,
    )


class SqlProfileStore:
    def __init__(self, session_factory):
        self.Session = session_factory

    # ---------- perfil ----------
    def create_profile(self, *, email: str, first_name: str, last_name: str, phone: str | None = None) -> UserProfile:
        with self.Session() as s, s.begin():
            exists = s.execute(select(UserProfileRow.id).where(UserProfileRow.email == email)).scalar()
            if exists:
                raise CheckoutError(f"Profile with email {email} already exists")
            row = UserProfileRow(id=_gen_id("user"), email=email, first_name=first_name, last_name=last_name,
                                 phone=phone, total_orders=0, total_spent=0)
            s.add(row)
            s.flush()
            profile = _to_profile(row)
        log.info("profile_created", user_id=profile.id)
        return profile

    def get_profile(self, user_id: str) -> Optional[UserProfile]:
        with self.Session() as s:
            row = s.get(UserProfileRow, user_id)
            return _to_profile(row) if row else None

    def get_profile_by_email(self, email: str) -> Optional[UserProfile]:
        with self.Session() as s:
            row = s.execute(select(UserProfileRow).where(UserProfileRow.email == email)).scalars().first()
            return _to_profile(row) if row else None

    def _require(self, s, user_id: str) -> UserProfileRow:
        row = s.get(UserProfileRow, user_id)
        if not row:
            raise ProfileNotFoundError(user_id)
        return row

    # ---------- padrão exclusivo ----------
    def _siblings(self, profile: UserProfileRow, category: DefaultCategory) -> list:
        if category == "payment":
            return list(profile.payment_methods)
        return [a for a in profile.addresses if a.kind == category]

    def _set_exclusive_default(self, profile: UserProfileRow, category: DefaultCategory, entity_id: str) -> None:
        siblings = self._siblings(profile, category)
        if not any(e.id == entity_id for e in siblings):
            raise CheckoutError(f"{category} entry {entity_id} not found for profile {profile.id}")
        for e in siblings:
            e.is_default = e.id == entity_id
        profile.updated_at = _utcnow()
        log.info("profile_default_set", user_id=profile.id, category=category, entity_id=entity_id)

    def set_default(self, user_id: str, category: DefaultCategory, entity_id: str) -> None:
        with self.Session() as s, s.begin():
            self._set_exclusive_default(self._require(s, user_id), category, entity_id)

    # ---------- endereços ----------
    def _add_address(self, user_id: str, kind: str, fields: AddressFields, is_default: bool) -> SavedAddress:
        with self.Session() as s, s.begin():
            profile = self._require(s, user_id)
            row = SavedAddressRow(
                id=_gen_id("addr"),
                kind=kind,
                position=len(profile.addresses),
                is_default=False,
                fields=fields.model_dump(),
            )
            profile.addresses.append(row)
            s.flush()
            if is_default:
                self._set_exclusive_default(profile, kind, row.id)
            profile.updated_at = _utcnow()
            saved = _to_address(row)
        log.info("address_saved", user_id=user_id, kind=kind, address_id=saved.id, is_default=saved.is_default)
        return saved

    def add_shipping_address(self, user_id: str, fields: AddressFields, is_default: bool = False) -> SavedAddress:
        return self._add_address(user_id, "shipping", fields, is_default)

    def add_billing_address(self, user_id: str, fields: AddressFields, is_default: bool = False) -> SavedAddress:
        return self._add_address(user_id, "billing", fields, is_default)

    def update_address(self, user_id: str, address_id: str, changes: Dict[str, Any],
                       is_default: Optional[bool] = None) -> Optional[SavedAddress]:
        """Atualiza campos do endereço; `is_default=True` passa pelo padrão exclusivo."""
        with self.Session() as s, s.begin():
            profile = self._require(s, user_id)
            row = next((a for a in profile.addresses if a.id == address_id), None)
            if not row:
                return None
            row.fields = AddressFields.model_validate({**row.fields, **changes}).model_dump()
            if is_default:
                self._set_exclusive_default(profile, row.kind, row.id)
            elif is_default is False:
                row.is_default = False
            profile.updated_at = _utcnow()
            s.flush()
            saved = _to_address(row)
        log.info("address_updated", user_id=user_id, address_id=address_id, is_default=saved.is_default)
        return saved

    def delete_address(self, user_id: str, address_id: str) -> bool:
        """Remove endereço; se era padrão, o primeiro restante da categoria vira padrão."""
        with self.Session() as s, s.begin():
            profile = self._require(s, user_id)
            row = next((a for a in profile.addresses if a.id == address_id), None)
            if not row:
                return False
            kind, was_default = row.kind, row.is_default
            profile.addresses.remove(row)
            s.flush()
            remaining = [a for a in profile.addresses if a.kind == kind]
            if was_default and remaining:
                self._set_exclusive_default(profile, kind, remaining[0].id)
            profile.updated_at = _utcnow()
        return True

    # ---------- meios de pagamento ----------
    def add_payment_method(self, user_id: str, fields: PaymentMethodFields, is_default: bool = False) -> PaymentMethod:
        data = fields.model_dump(exclude={"type"})
        with self.Session() as s, s.begin():
            profile = self._require(s, user_id)
            row = PaymentMethodRow(
                id=_gen_id("pm"),
                type=fields.type,
                position=len(profile.payment_methods),
                is_default=False,
                fields=data,
                created_at=_utcnow(),
            )
            profile.payment_methods.append(row)
            s.flush()
            if is_default:
                self._set_exclusive_default(profile, "payment", row.id)
            profile.updated_at = _utcnow()
            saved = _to_method(row)
        log.info("payment_method_saved", user_id=user_id, method_id=saved.id, type=saved.type, is_default=saved.is_default)
        return saved

    def update_payment_method(self, user_id: str, method_id: str, changes: Dict[str, Any],
                              is_default: Optional[bool] = None) -> Optional[PaymentMethod]:
        with self.Session() as s, s.begin():
            profile = self._require(s, user_id)
            row = next((m for m in profile.payment_methods if m.id == method_id), None)
            if not row:
                return None
            fields = PaymentMethodFields.model_validate({**row.fields, "type": row.type, **changes})
            row.type = fields.type
            row.fields = fields.model_dump(exclude={"type"})
            if is_default:
                self._set_exclusive_default(profile, "payment", row.id)
            elif is_default is False:
                row.is_default = False
            profile.updated_at = _utcnow()
            s.flush()
            saved = _to_method(row)
        log.info("payment_method_updated", user_id=user_id, method_id=method_id, is_default=saved.is_default)
        return saved

    def delete_payment_method(self, user_id: str, method_id: str) -> bool:
        with self.Session() as s, s.begin():
            profile = self._require(s, user_id)
            row = next((m for m in profile.payment_methods if m.id == method_id), None)
            if not row:
                return False
            was_default = row.is_default
            profile.payment_methods.remove(row)
            s.flush()
            if was_default and profile.payment_methods:
                self._set_exclusive_default(profile, "payment", profile.payment_methods[0].id)
            profile.updated_at = _utcnow()
        return True

    # ---------- checkout rápido ----------
    def get_quick_checkout_data(self, user_id: str) -> QuickCheckoutData:
        """Padrão de cada categoria; sem padrão, o primeiro salvo."""
        profile = self.get_profile(user_id)
        if not profile:
            return QuickCheckoutData()

        def pick(entries: List):
            return next((e for e in entries if e.is_default), entries[0] if entries else None)

        return QuickCheckoutData(
            shipping_address=pick(profile.shipping_addresses),
            billing_address=pick(profile.billing_addresses),
            payment_method=pick(profile.payment_methods),
        )

    def record_checkout(self, user_id: str, amount: int) -> None:
        with self.Session() as s, s.begin():
            profile = self._require(s, user_id)
            profile.total_orders += 1
            profile.total_spent += amount
            profile.last_checkout_at = _utcnow()
            profile.updated_at = _utcnow()
        log.info("checkout_recorded", user_id=user_id, amount=amount)
