"""Guardrails da mensagem do cliente: limpeza e sinalização de tentativa de injeção."""
import re

BLOCKLIST = [
    re.compile(r"(?i)(ignore .* (instructions|rules)|reveal .*(prompt|key)|system prompt|bypass|jailbreak)"),
    re.compile(r"(?i)(act as .* system|developer mode|mark (this|the) (order|payment) as (paid|completed))"),
]

CONTROL_CHARS = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")


def sanitize_text(text: str) -> str:
    """Remove só caracteres de controle; o resto da mensagem é preservado."""
    return CONTROL_CHARS.sub("", text or "")


def looks_like_injection(text: str) -> bool:
    """Heurística simples: só sinaliza no log, não bloqueia."""
    return any(p.search(text or "") for p in BLOCKLIST)
