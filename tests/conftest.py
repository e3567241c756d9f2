"""Fixtures e dublês: LLM roteirizado, gateway e loja em memória."""
from __future__ import annotations
from typing import Any, Dict, List, Optional
import pytest
from checkout_bot.adk.orchestrator import CheckoutOrchestrator
from checkout_bot.adk.runtime.toolkit import Capability, ToolContext
from checkout_bot.adk.tools.catalog import build_catalog
from checkout_bot.core.db import create_session_factory
from checkout_bot.core.prompting import PromptBuilder
from checkout_bot.core.settings import Settings
from checkout_bot.domain.errors import GatewayError, PlatformError
from checkout_bot.domain.models import Charge, Product, Refund, Source
from checkout_bot.domain.services.session_registry import SessionRegistry
from checkout_bot.ports.interfaces import LLMReply, TextSegment, ToolCallSegment
from checkout_bot.repo.profile_store import SqlProfileStore
from checkout_bot.repo.session_store import InMemorySessionStore


def text(t: str) -> TextSegment:
    return TextSegment(text=t)


def call(name: str, arguments: Any = None, call_id: str = "call_1") -> ToolCallSegment:
    return ToolCallSegment(id=call_id, name=name, arguments=arguments if arguments is not None else {})


class FakeLLM:
    """Devolve respostas roteirizadas, uma por chamada, e guarda o que recebeu."""

    def __init__(self, *replies: List[Any]):
        self.replies = [LLMReply(segments=list(r)) for r in replies]
        self.calls: List[Dict[str, Any]] = []

    def complete_with_tools(self, *, system, messages, tools):
        self.calls.append({"system": system, "messages": list(messages), "tools": tools})
        if not self.replies:
            return LLMReply(segments=[])
        return self.replies.pop(0)


class FakeGateway:
    """Gateway em memória: o status da próxima cobrança é configurável."""

    def __init__(self, charge_status: str = "successful"):
        self.charge_status = charge_status
        self.failure_message: Optional[str] = None
        self.charges: Dict[str, Charge] = {}
        self.created: List[Dict[str, Any]] = []
        self.sources: List[Dict[str, Any]] = []
        self.fail_with: Optional[Exception] = None

    def create_charge(self, *, amount, currency, source=None, card=None, description=None, metadata=None,
                      return_uri=None):
        if self.fail_with:
            raise self.fail_with
        self.created.append({"amount": amount, "currency": currency, "source": source, "card": card,
                             "description": description, "metadata": metadata, "return_uri": return_uri})
        charge = Charge(
            id=f"chrg_test_{len(self.charges) + 1}",
            status=self.charge_status,
            amount=amount,
            currency=currency,
            failure_code="insufficient_fund" if self.charge_status == "failed" else None,
            failure_message=self.failure_message,
            authorize_uri="https://pay.example/authorize" if self.charge_status == "pending" else None,
            metadata=metadata or {},
        )
        self.charges[charge.id] = charge
        return charge

    def create_source(self, *, type, amount, currency):
        self.sources.append({"type": type, "amount": amount, "currency": currency})
        ref = "https://qr.example/qr.png" if type == "promptpay" else None
        return Source(id=f"src_test_{len(self.sources)}", type=type, amount=amount, currency=currency, scan_reference=ref)

    def create_token(self, **kwargs):
        raise NotImplementedError

    def get_charge(self, charge_id):
        if charge_id not in self.charges:
            raise GatewayError(f"charge {charge_id} was not found (not_found)", code="not_found")
        return self.charges[charge_id]

    def list_charges(self, limit=20, offset=0):
        return list(self.charges.values())[offset:offset + limit]

    def refund(self, charge_id, amount=None):
        charge = self.get_charge(charge_id)
        return Refund(id="rfnd_test_1", charge_id=charge_id, amount=amount or charge.amount, currency=charge.currency)

    def get_capabilities(self):
        return ["card", "promptpay"]


class FakePlatform:
    platform_name = "fakeshop"

    def __init__(self, products: List[Product] | None = None):
        self.products = {p.id: p for p in (products or [])}

    def search_by_sku(self, sku):
        return next((p for p in self.products.values() if p.sku == sku), None)

    def get_product(self, product_id):
        if product_id not in self.products:
            raise PlatformError(f"Product {product_id} not found", "HTTP_404", self.platform_name)
        return self.products[product_id]

    def list_products(self, limit=10, search=None):
        items = [p for p in self.products.values() if not search or search.lower() in p.name.lower()]
        return items[:limit]


WIDGET = {"id": "1", "name": "Widget", "price": 100000, "quantity": 1}


@pytest.fixture
def settings():
    return Settings(_env_file=None)


@pytest.fixture
def registry():
    return SessionRegistry(InMemorySessionStore())


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def platform():
    return FakePlatform([
        Product(id="p1", sku="TEE-01", name="T-Shirt", price=29900, currency="THB", stock=5, category="Apparel"),
        Product(id="p2", sku="MUG-01", name="Mug", price=15000, currency="THB", stock=0),
        Product(id="p3", sku="USD-01", name="Import", price=1000, currency="USD", stock=1),
    ])


@pytest.fixture
def session_factory():
    return create_session_factory("sqlite://", create_schema=True)


@pytest.fixture
def profiles(session_factory):
    return SqlProfileStore(session_factory)


@pytest.fixture
def user(profiles):
    return profiles.create_profile(email="ann@example.com", first_name="Ann", last_name="Lee")


@pytest.fixture
def make_ctx(registry, gateway, settings, platform, profiles):
    """ToolContext para uma sessão nova (carrinho padrão: Widget 1000.00 THB)."""

    def _make(cart=None, user_id=None, **overrides):
        session = registry.create_session(cart or [WIDGET], "THB", user_id)
        fields = dict(session=session, registry=registry, gateway=gateway, settings=settings,
                      platform=platform, profiles=profiles)
        fields.update(overrides)
        return ToolContext(**fields)

    return _make


@pytest.fixture
def make_orchestrator(registry, gateway, settings):
    def _make(llm, capabilities=Capability.CORE, platform=None, profiles=None, settings_=None):
        return CheckoutOrchestrator(
            registry=registry,
            llm=llm,
            builder=PromptBuilder(),
            catalog=build_catalog(capabilities),
            gateway=gateway,
            platform=platform,
            profiles=profiles,
            settings=settings_ or settings,
        )

    return _make
