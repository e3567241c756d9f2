"""PromptBuilder com Jinja2: persona, políticas, estado da sessão e tools disponíveis.

O texto do prompt é em inglês (clientes da loja); a sessão entra só como resumo.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List
from jinja2 import Environment, BaseLoader, StrictUndefined
from ..domain.models import CheckoutSession
from ..domain.money import format_amount

# -------- Personas --------
PERSONAS = {
    "default": "a friendly, efficient checkout assistant that helps customers finish their purchase",
    "concise": "a brief, to-the-point checkout assistant that only asks what is needed",
}

# -------- Políticas globais --------
DEFAULT_POLICIES = (
    "- Never invent prices, stock or payment results; use the tools to check.\n"
    "- Never ask for raw card numbers; card payments only use a card token.\n"
    "- Confirm the amount with the customer before creating a payment.\n"
    "- All amounts are shown with two decimals followed by the currency code.\n"
)

PAYMENT_METHODS = [
    "Credit/debit card (tokenized card)",
    "PromptPay QR code",
    "Internet banking (bbl, kbank, scb, ktb, bay)",
]


@dataclass
class PromptBuilder:
    store_name: str = "our store"
    persona_key: str = "default"
    extra_policies: str = ""
    env: Environment = field(default_factory=lambda: Environment(
        loader=BaseLoader(),
        undefined=StrictUndefined,
        trim_blocks=True,
        lstrip_blocks=True,
    ))

    def _persona(self) -> str:
        return PERSONAS.get(self.persona_key, PERSONAS["default"])

    @staticmethod
    def session_context(session: CheckoutSession) -> Dict[str, Any]:
        """Resumo serializável da sessão para o template."""
        return {
            "session_id": session.session_id,
            "user_id": session.user_id,
            "status": session.status.value,
            "currency": session.currency,
            "total": format_amount(session.total_amount, session.currency),
            "items": [
                {
                    "id": i.id,
                    "name": i.name,
                    "quantity": i.quantity,
                    "price": format_amount(i.price, session.currency),
                    "line_total": format_amount(i.line_total, session.currency),
                }
                for i in session.cart
            ],
        }

    def checkout_system(self, *, session: CheckoutSession, tools: List[Dict[str, Any]]) -> str:
        """Prompt de sistema do assistente de checkout para um turno."""
        template = self.env.from_string("""
        You are the checkout assistant of {{ store_name }}.
        Persona: {{ persona }}

        Policies:
        {{ policies }}
        {% if extra_policies %}
        Additional rules:
        {{ extra_policies }}
        {% endif %}

        CURRENT CHECKOUT:
        - Session: {{ ctx.session_id }}
        - Status: {{ ctx.status }}
        {% if ctx.user_id %}
        - User: {{ ctx.user_id }} (saved addresses and payment methods may be available)
        {% else %}
        - User: guest (no saved profile)
        {% endif %}
        - Cart:
        {% for i in ctx["items"] %}
          - [{{ i.id }}] {{ i.quantity }}x {{ i.name }} @ {{ i.price }} = {{ i.line_total }}
        {% endfor %}
        - Total: {{ ctx.total }} ({{ ctx.currency }})

        PAYMENT METHODS:
        {% for m in payment_methods %}
        - {{ m }}
        {% endfor %}

        AVAILABLE TOOLS:
        {% for t in tools %}
        - {{ t.name }}: {{ t.description }}
        {% else %}
        - (none)
        {% endfor %}

        When you reply:
        - Be clear and short. Ask at most one question at a time.
        - Call a payment tool only after the customer chose the method.
        - If a tool reports an error, explain it briefly and offer an alternative.
        """)
        return template.render(
            store_name=self.store_name,
            persona=self._persona(),
            policies=DEFAULT_POLICIES,
            extra_policies=self.extra_policies,
            ctx=self.session_context(session),
            payment_methods=PAYMENT_METHODS,
            tools=[{"name": t["function"]["name"], "description": t["function"].get("description", "")} for t in tools],
        )
