"""Portas hexagonais (interfaces) das capacidades externas usadas pelo núcleo."""
from __future__ import annotations
from typing import Any, Dict, List, Literal, Optional, Protocol, Sequence, Union
from pydantic import BaseModel, Field
from ..domain.models import (
    AddressFields, Charge, CheckoutSession, DefaultCategory, PaymentMethod, PaymentMethodFields,
    Product, QuickCheckoutData, Refund, SavedAddress, Source, Token, UserProfile,
)


# ---------- DTOs da resposta do modelo ----------
class TextSegment(BaseModel):
    kind: Literal["text"] = "text"
    text: str


class ToolCallSegment(BaseModel):
    """Pedido estruturado de tool. `arguments` chega cru (JSON string ou dict) e é validado no dispatch."""
    kind: Literal["tool_call"] = "tool_call"
    id: str = ""
    name: str
    arguments: Union[str, Dict[str, Any]] = Field(default_factory=dict)


class LLMReply(BaseModel):
    segments: List[Union[TextSegment, ToolCallSegment]] = Field(default_factory=list)


class PaymentGateway(Protocol):
    """Gateway de pagamento (Omise)."""

    def create_charge(self, *, amount: int, currency: str, source: str | None = None, card: str | None = None,
                      description: str | None = None, metadata: Dict[str, Any] | None = None,
                      return_uri: str | None = None) -> Charge: ...

    def create_source(self, *, type: str, amount: int, currency: str) -> Source: ...

    def create_token(self, *, name: str, number: str, expiration_month: int, expiration_year: int,
                     security_code: str | None = None) -> Token: ...

    def get_charge(self, charge_id: str) -> Charge: ...

    def list_charges(self, limit: int = 20, offset: int = 0) -> List[Charge]: ...

    def refund(self, charge_id: str, amount: int | None = None) -> Refund: ...

    def get_capabilities(self) -> List[str]: ...


class CommercePlatform(Protocol):
    """Loja externa ativa (Shopify, WooCommerce...)."""
    platform_name: str

    def search_by_sku(self, sku: str) -> Optional[Product]: ...

    def get_product(self, product_id: str) -> Product: ...

    def list_products(self, limit: int = 10, search: str | None = None) -> List[Product]: ...


class ProfileStore(Protocol):
    """CRUD de perfil, endereços e meios de pagamento salvos."""

    def get_profile(self, user_id: str) -> Optional[UserProfile]: ...

    def add_shipping_address(self, user_id: str, fields: AddressFields, is_default: bool = False) -> SavedAddress: ...

    def add_billing_address(self, user_id: str, fields: AddressFields, is_default: bool = False) -> SavedAddress: ...

    def add_payment_method(self, user_id: str, fields: PaymentMethodFields, is_default: bool = False) -> PaymentMethod: ...

    def update_address(self, user_id: str, address_id: str, changes: Dict[str, Any],
                       is_default: Optional[bool] = None) -> Optional[SavedAddress]: ...

    def update_payment_method(self, user_id: str, method_id: str, changes: Dict[str, Any],
                              is_default: Optional[bool] = None) -> Optional[PaymentMethod]: ...

    def set_default(self, user_id: str, category: DefaultCategory, entity_id: str) -> None: ...

    def get_quick_checkout_data(self, user_id: str) -> QuickCheckoutData: ...

    def record_checkout(self, user_id: str, amount: int) -> None: ...


class SessionStore(Protocol):
    """Backend de armazenamento de sessões (memória em testes, SQL em produção)."""

    def get(self, session_id: str) -> Optional[CheckoutSession]: ...

    def put(self, session: CheckoutSession) -> None: ...

    def find_by_user(self, user_id: str, limit: int = 10) -> List[CheckoutSession]: ...

    def cleanup(self, older_than_days: int = 30) -> int: ...


class LanguageModel(Protocol):
    """Modelo com tool-calling: uma chamada, resposta em segmentos ordenados."""

    def complete_with_tools(self, *, system: str, messages: Sequence[Dict[str, str]],
                            tools: List[Dict[str, Any]]) -> LLMReply: ...
