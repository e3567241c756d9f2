"""Orquestrador do checkout: um turno de chat = uma chamada ao LLM + tools em sequência.

Fluxo de `chat()`:
1) grava a mensagem do cliente no histórico (antes do LLM);
2) monta o prompt de sistema com o estado da sessão e as tools habilitadas;
3) chama o modelo uma vez com o histórico (opcionalmente em janela);
4) junta textos e resultados das tools, na ordem, separados por linha em branco;
5) grava a resposta como mensagem do assistente.
Chamada de tool inválida (nome ou argumentos) sobe como ToolArgumentsError antes de
qualquer tool rodar. Falha durante a execução vira `Error: <mensagem>` na resposta;
falha do LLM sobe ao chamador.
"""
from __future__ import annotations
from typing import Any, Dict, Iterable, List, Optional
from kink import di
from pydantic import BaseModel
from ..core.guardrails import looks_like_injection, sanitize_text
from ..core.logging import get_logger, set_trace_id
from ..core.prompting import PromptBuilder
from ..core.settings import Settings
from ..domain.errors import ToolArgumentsError
from ..domain.models import CheckoutSession
from ..domain.services.session_registry import SessionRegistry
from ..ports.interfaces import CommercePlatform, LanguageModel, PaymentGateway, ProfileStore, ToolCallSegment
from .runtime.toolkit import ToolContext, ToolRegistry

log = get_logger()


class CheckoutOrchestrator:
    def __init__(
        self,
        registry: SessionRegistry | None = None,
        llm: LanguageModel | None = None,
        builder: PromptBuilder | None = None,
        catalog: ToolRegistry | None = None,
        gateway: PaymentGateway | None = None,
        platform: Optional[CommercePlatform] = None,
        profiles: Optional[ProfileStore] = None,
        settings: Settings | None = None,
    ):
        self.registry = registry or di[SessionRegistry]
        self.llm = llm or di["llm"]
        self.builder = builder or di[PromptBuilder]
        self.catalog = catalog or di[ToolRegistry]
        self.gateway = gateway or di["gateway"]
        self.platform = platform
        self.profiles = profiles
        self.settings = settings or di[Settings]

    # ---------- fronteira pública ----------
    def create_session(self, cart: Iterable[Any], currency: str | None = None, user_id: str | None = None) -> CheckoutSession:
        return self.registry.create_session(cart, currency or self.settings.default_currency, user_id)

    def get_session(self, session_id: str) -> Optional[CheckoutSession]:
        return self.registry.get_session(session_id)

    def chat(self, session_id: str, user_message: str) -> str:
        set_trace_id()
        session = self.registry.require_session(session_id)
        text = sanitize_text(user_message)
        log.info("chat_in", session_id=session_id, status=session.status.value, chars=len(text))
        if looks_like_injection(text):
            log.warning("suspicious_message", session_id=session_id)
        self.registry.append_message(session, "user", text)

        tools = self.catalog.openai_tools()
        system = self.builder.checkout_system(session=session, tools=tools)
        reply = self.llm.complete_with_tools(system=system, messages=self._history(session), tools=tools)
        # valida todas as chamadas antes de executar qualquer uma
        decoded = {i: self._decode(session_id, seg) for i, seg in enumerate(reply.segments)
                   if isinstance(seg, ToolCallSegment)}

        ctx = ToolContext(
            session=session,
            registry=self.registry,
            gateway=self.gateway,
            settings=self.settings,
            platform=self.platform,
            profiles=self.profiles,
        )
        parts: List[str] = []
        for i, segment in enumerate(reply.segments):
            if isinstance(segment, ToolCallSegment):
                parts.append(self._dispatch(ctx, segment, decoded[i]))
            elif segment.text:
                parts.append(segment.text)
        answer = "\n\n".join(parts)

        self.registry.append_message(ctx.session, "assistant", answer)
        log.info("chat_out", session_id=session_id, status=ctx.session.status.value, segments=len(reply.segments))
        return answer

    # ---------- internos ----------
    def _history(self, session: CheckoutSession) -> List[Dict[str, str]]:
        messages = [{"role": m.role, "content": m.content} for m in session.conversation_history]
        window = self.settings.history_window
        return messages[-window:] if window else messages

    def _decode(self, session_id: str, call: ToolCallSegment) -> Optional[BaseModel]:
        try:
            return self.catalog.prepare(call.name, call.arguments)
        except ToolArgumentsError as e:
            log.warning("tool_call_rejected", session_id=session_id, tool=call.name, error=e.message)
            raise

    def _dispatch(self, ctx: ToolContext, call: ToolCallSegment, args: Optional[BaseModel]) -> str:
        log.info("tool_dispatch", session_id=ctx.session.session_id, tool=call.name, call_id=call.id)
        try:
            return self.catalog.invoke(ctx, call.name, args)
        except Exception as e:
            log.warning("tool_failed", session_id=ctx.session.session_id, tool=call.name,
                        error_type=type(e).__name__, error=str(e))
            # descarta mutação não persistida pela tool que falhou
            ctx.session = self.registry.require_session(ctx.session.session_id)
            return f"Error: {getattr(e, 'message', None) or e}"
