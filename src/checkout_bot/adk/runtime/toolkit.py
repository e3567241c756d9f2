"""Toolkit: registro de tools tipadas (Pydantic), decodificação e despacho.

Cada ToolSpec declara a capacidade de que depende. O catálogo exposto ao modelo
e a tabela de despacho saem do MESMO conjunto de capacidades habilitadas.
"""
from __future__ import annotations
from dataclasses import dataclass
from enum import Flag, auto
from typing import Any, Callable, Dict, Optional
import json
from pydantic import BaseModel, ConfigDict, ValidationError
from ...core.settings import Settings
from ...domain.errors import ToolArgumentsError
from ...domain.models import CheckoutSession
from ...domain.services.session_registry import SessionRegistry
from ...ports.interfaces import CommercePlatform, PaymentGateway, ProfileStore


class Capability(Flag):
    CORE = auto()
    PLATFORM = auto()
    PROFILE = auto()


@dataclass
class ToolContext:
    """Dependências de um handler: a sessão do turno e as capacidades externas."""
    session: CheckoutSession
    registry: SessionRegistry
    gateway: PaymentGateway
    settings: Settings
    platform: Optional[CommercePlatform] = None
    profiles: Optional[ProfileStore] = None


class ToolSpec(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    name: str
    description: str
    args_schema: type[BaseModel]
    func: Callable[[ToolContext, Any], str]
    requires: Capability = Capability.CORE
    unavailable_message: str = "This action is not available right now."

    def to_openai_function(self) -> dict:
        """Converte para schema de tool (OpenAI/LiteLLM style)."""
        schema = self.args_schema.model_json_schema()
        schema.pop("title", None)
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": schema,
            },
        }


class ToolRegistry:
    """Registro de tools com o conjunto de capacidades ativo."""
    def __init__(self, capabilities: Capability = Capability.CORE):
        self.capabilities = capabilities
        self._tools: Dict[str, ToolSpec] = {}

    def register(self, spec: ToolSpec) -> None:
        if spec.name in self._tools:
            raise ValueError(f"duplicate tool: {spec.name}")
        self._tools[spec.name] = spec

    def enabled(self, spec: ToolSpec) -> bool:
        return spec.requires in self.capabilities

    def list_specs(self) -> list[ToolSpec]:
        return [t for t in self._tools.values() if self.enabled(t)]

    def names(self) -> list[str]:
        return [t.name for t in self.list_specs()]

    def openai_tools(self) -> list[dict]:
        return [t.to_openai_function() for t in self.list_specs()]

    def get(self, name: str) -> ToolSpec:
        if name not in self._tools:
            raise ToolArgumentsError(name, "unknown tool")
        return self._tools[name]

    def decode(self, name: str, arguments: str | dict | None) -> BaseModel:
        """Valida argumentos crus do modelo (JSON string ou dict) contra o schema da tool."""
        spec = self.get(name)
        if isinstance(arguments, str):
            try:
                arguments = json.loads(arguments or "{}")
            except json.JSONDecodeError as e:
                raise ToolArgumentsError(name, f"arguments are not valid JSON ({e.msg})") from e
        if not isinstance(arguments, dict):
            raise ToolArgumentsError(name, "arguments must be an object")
        try:
            return spec.args_schema.model_validate(arguments)
        except ValidationError as e:
            problems = "; ".join(f"{'.'.join(map(str, err['loc'])) or 'arguments'}: {err['msg']}" for err in e.errors())
            raise ToolArgumentsError(name, problems) from e

    def prepare(self, name: str, arguments: str | dict | None) -> Optional[BaseModel]:
        """Decodifica uma chamada; None para tool conhecida mas desabilitada."""
        spec = self.get(name)
        if not self.enabled(spec):
            return None
        return self.decode(name, arguments)

    def invoke(self, ctx: ToolContext, name: str, args: Optional[BaseModel]) -> str:
        spec = self.get(name)
        if args is None or not self.enabled(spec):
            return spec.unavailable_message
        return spec.func(ctx, args)
