"""Montagem do catálogo de tools a partir das capacidades configuradas."""
from __future__ import annotations
from . import cart_tools, payment_tools, profile_tools
from ..runtime.toolkit import Capability, ToolRegistry


def capabilities_for(*, platform: bool, profiles: bool) -> Capability:
    caps = Capability.CORE
    if platform:
        caps |= Capability.PLATFORM
    if profiles:
        caps |= Capability.PROFILE
    return caps


def build_catalog(capabilities: Capability = Capability.CORE) -> ToolRegistry:
    """Registra todas as tools; o registro expõe e despacha só as habilitadas."""
    registry = ToolRegistry(capabilities)
    for spec in (*payment_tools.TOOLS, *cart_tools.TOOLS, *profile_tools.TOOLS):
        registry.register(spec)
    return registry
