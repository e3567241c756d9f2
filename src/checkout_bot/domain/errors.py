"""Hierarquia de erros do checkout.

- Erros de entrada (uso incorreto pelo chamador): InvalidCartError, SessionNotFoundError, ToolArgumentsError.
- Erros de estado: InvalidTransitionError.
- Falhas de capacidades externas: GatewayError, PlatformError, ProfileNotFoundError, LLMError.

Resultados de negócio (cartão recusado, produto inexistente...) NÃO são exceções:
viram texto na resposta do chat.
"""
from __future__ import annotations
from typing import Any, Dict, Optional


class CheckoutError(Exception):
    """Base de todos os erros do pacote."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class InvalidCartError(CheckoutError):
    pass


class SessionNotFoundError(CheckoutError):
    def __init__(self, session_id: str):
        super().__init__(f"Session not found: {session_id}", {"session_id": session_id})
        self.session_id = session_id


class ToolArgumentsError(CheckoutError):
    """Chamada de tool com nome desconhecido ou argumentos fora do schema."""

    def __init__(self, tool_name: str, message: str):
        super().__init__(f"invalid call to {tool_name}: {message}", {"tool": tool_name})
        self.tool_name = tool_name


class InvalidTransitionError(CheckoutError):
    def __init__(self, current: str, target: str):
        super().__init__(f"cannot move session from {current} to {target}", {"from": current, "to": target})


class GatewayError(CheckoutError):
    """Falha de comunicação ou erro retornado pelo gateway de pagamento."""

    def __init__(self, message: str, code: str | None = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
        self.code = code


class PlatformError(CheckoutError):
    """Falha da API da loja (Shopify/WooCommerce)."""

    def __init__(self, message: str, code: str, platform: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
        self.code = code
        self.platform = platform


class ProfileNotFoundError(CheckoutError):
    def __init__(self, user_id: str):
        super().__init__(f"Profile {user_id} not found", {"user_id": user_id})


class LLMError(CheckoutError):
    pass
