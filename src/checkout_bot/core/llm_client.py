"""Cliente HTTP para LiteLLM (API compatível com OpenAI) com tool-calling.

Uma chamada por turno: o modelo devolve texto e/ou pedidos de tool; quem executa
as tools é o orquestrador. Sem retry e sem modelo de fallback.
"""
from typing import Any, Dict, List, Sequence
import httpx
from kink import di
from .settings import Settings
from .logging import get_logger
from ..domain.errors import LLMError
from ..ports.interfaces import LLMReply, TextSegment, ToolCallSegment

log = get_logger()


def parse_reply(data: Dict[str, Any]) -> LLMReply:
    """Converte `choices[0].message` em segmentos ordenados (texto primeiro, depois tool_calls)."""
    try:
        msg = data["choices"][0]["message"]
    except (KeyError, IndexError, TypeError) as e:
        raise LLMError(f"malformed completion payload: {e}") from e
    segments: List[Any] = []
    content = msg.get("content")
    if isinstance(content, str) and content.strip():
        segments.append(TextSegment(text=content))
    elif isinstance(content, list):
        # alguns provedores devolvem content em partes
        for part in content:
            if part.get("type") == "text" and part.get("text"):
                segments.append(TextSegment(text=part["text"]))
    for call in msg.get("tool_calls") or []:
        fn = call.get("function") or {}
        segments.append(ToolCallSegment(
            id=call.get("id", ""),
            name=fn.get("name", ""),
            arguments=fn.get("arguments") or "{}",
        ))
    return LLMReply(segments=segments)


class LLMClient:
    """Cliente do gateway LiteLLM."""
    def __init__(self, settings: Settings | None = None, transport: httpx.BaseTransport | None = None):
        self.settings = settings or di[Settings]
        self.transport = transport

    def _client(self) -> httpx.Client:
        return httpx.Client(base_url=self.settings.litellm_base_url, timeout=self.settings.litellm_timeout_s,
                            transport=self.transport)

    def complete_with_tools(self, *, system: str, messages: Sequence[Dict[str, str]], tools: List[Dict[str, Any]]) -> LLMReply:
        payload: Dict[str, Any] = {
            "model": self.settings.litellm_model,
            "messages": [{"role": "system", "content": system}, *messages],
            "temperature": self.settings.litellm_temperature,
            "max_tokens": self.settings.litellm_max_tokens,
        }
        if tools:
            payload["tools"] = tools
            payload["tool_choice"] = "auto"
        try:
            with self._client() as cli:
                r = cli.post("/chat/completions", json=payload)
                r.raise_for_status()
                data = r.json()
        except (httpx.HTTPError, ValueError) as e:
            log.warning("llm_call_failed", model=self.settings.litellm_model, error=str(e))
            raise LLMError(f"language model call failed: {e}") from e
        reply = parse_reply(data)
        log.info("llm_reply", model=self.settings.litellm_model,
                 segments=[s.kind for s in reply.segments])
        return reply
