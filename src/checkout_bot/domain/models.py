"""Modelos de domínio (Pydantic): sessão de checkout, gateway, loja e perfil.

Valores monetários são SEMPRE inteiros na menor unidade da moeda (satang, centavos).
"""
from __future__ import annotations
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Literal, Optional
from uuid import uuid4
from pydantic import BaseModel, Field, computed_field


def _now() -> datetime:
    return datetime.now(timezone.utc)


def new_session_id() -> str:
    return f"sess_{uuid4().hex[:20]}"


# ---------- Sessão ----------
class SessionStatus(str, Enum):
    ACTIVE = "active"
    PENDING_PAYMENT = "pending_payment"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @property
    def terminal(self) -> bool:
        return self in (SessionStatus.COMPLETED, SessionStatus.CANCELLED)


class CartItem(BaseModel):
    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    description: Optional[str] = None
    price: int = Field(ge=0)
    quantity: int = Field(ge=1)

    @property
    def line_total(self) -> int:
        return self.price * self.quantity


class Message(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class CheckoutSession(BaseModel):
    """Estado mutável de uma tentativa de checkout.

    `total_amount` é derivado do carrinho e não pode ser atribuído.
    """
    session_id: str = Field(default_factory=new_session_id, frozen=True)
    user_id: Optional[str] = Field(default=None, frozen=True)
    cart: List[CartItem]
    currency: str
    conversation_history: List[Message] = Field(default_factory=list)
    status: SessionStatus = SessionStatus.ACTIVE
    shipping_address_id: Optional[str] = None
    billing_address_id: Optional[str] = None
    payment_method_id: Optional[str] = None
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_amount(self) -> int:
        return sum(item.line_total for item in self.cart)

    def find_item(self, cart_item_id: str) -> Optional[CartItem]:
        return next((i for i in self.cart if i.id == cart_item_id), None)


# ---------- Gateway (Omise) ----------
class CardInfo(BaseModel):
    brand: Optional[str] = None
    last_digits: Optional[str] = None
    expiration_month: Optional[int] = None
    expiration_year: Optional[int] = None
    name: Optional[str] = None


class Charge(BaseModel):
    id: str
    status: str
    amount: int
    currency: str
    failure_code: Optional[str] = None
    failure_message: Optional[str] = None
    authorize_uri: Optional[str] = None
    scan_reference: Optional[str] = None
    card: Optional[CardInfo] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @property
    def failed(self) -> bool:
        return self.status in ("failed", "expired", "reversed")


class Source(BaseModel):
    id: str
    type: str
    amount: int
    currency: str
    scan_reference: Optional[str] = None


class Refund(BaseModel):
    id: str
    charge_id: str
    amount: int
    currency: str


class Token(BaseModel):
    id: str
    card: Optional[CardInfo] = None


# ---------- Loja ----------
class Product(BaseModel):
    id: str
    sku: str = ""
    name: str
    description: str = ""
    price: int = Field(ge=0)
    currency: str = "THB"
    stock: int = 0
    category: Optional[str] = None


# ---------- Perfil ----------
PaymentMethodType = Literal["card", "promptpay", "internet_banking", "mobile_banking"]
DefaultCategory = Literal["shipping", "billing", "payment"]


class AddressFields(BaseModel):
    first_name: str
    last_name: str
    company: Optional[str] = None
    address1: str
    address2: Optional[str] = None
    city: str
    state: str
    postal_code: str
    country: str
    phone: Optional[str] = None
    label: Optional[str] = None


class SavedAddress(AddressFields):
    id: str
    is_default: bool = False

    def one_line(self) -> str:
        parts = [f"{self.first_name} {self.last_name}", self.address1, self.address2, self.city, self.state, self.postal_code, self.country]
        return ", ".join(p for p in parts if p)


class PaymentMethodFields(BaseModel):
    type: PaymentMethodType
    card_token: Optional[str] = None
    card_brand: Optional[str] = None
    card_last_digits: Optional[str] = None
    card_expiry_month: Optional[str] = None
    card_expiry_year: Optional[str] = None
    card_holder_name: Optional[str] = None
    bank_code: Optional[str] = None
    phone_number: Optional[str] = None


class PaymentMethod(PaymentMethodFields):
    id: str
    is_default: bool = False
    created_at: datetime = Field(default_factory=_now)

    def describe(self) -> str:
        if self.type == "card":
            brand = self.card_brand or "Card"
            return f"{brand} ending in {self.card_last_digits}" if self.card_last_digits else brand
        if self.type == "internet_banking":
            return f"Internet banking ({self.bank_code or 'bank not set'})"
        if self.type == "promptpay":
            return "PromptPay" + (f" ({self.phone_number})" if self.phone_number else "")
        return "Mobile banking" + (f" ({self.bank_code})" if self.bank_code else "")


class UserProfile(BaseModel):
    id: str
    email: str
    first_name: str
    last_name: str
    phone: Optional[str] = None
    shipping_addresses: List[SavedAddress] = Field(default_factory=list)
    billing_addresses: List[SavedAddress] = Field(default_factory=list)
    payment_methods: List[PaymentMethod] = Field(default_factory=list)
    total_orders: int = 0
    total_spent: int = 0
    last_checkout_at: Optional[datetime] = None


class QuickCheckoutData(BaseModel):
    shipping_address: Optional[SavedAddress] = None
    billing_address: Optional[SavedAddress] = None
    payment_method: Optional[PaymentMethod] = None
