"""Cliente HTTP do gateway Omise (charges, sources, tokens, refunds, capability).

- API principal (api.omise.co): autenticação básica com a chave secreta.
- Vault (vault.omise.co): criação de token de cartão com a chave pública.
Erros HTTP ou objetos `{"object": "error"}` viram GatewayError.
"""
from __future__ import annotations
from typing import Any, Dict, List
import httpx
from kink import di
from ...core.settings import Settings
from ...core.logging import get_logger
from ...domain.errors import GatewayError
from ...domain.models import CardInfo, Charge, Refund, Source, Token

log = get_logger()


def _card(raw: Dict[str, Any] | None) -> CardInfo | None:
    if not raw:
        return None
    return CardInfo(
        brand=raw.get("brand"),
        last_digits=raw.get("last_digits"),
        expiration_month=raw.get("expiration_month"),
        expiration_year=raw.get("expiration_year"),
        name=raw.get("name"),
    )


def _scan_reference(raw: Dict[str, Any] | None) -> str | None:
    """URL da imagem do QR (PromptPay) quando presente."""
    code = (raw or {}).get("scannable_code") or {}
    return ((code.get("image") or {}).get("download_uri")) or None


def to_charge(raw: Dict[str, Any]) -> Charge:
    source = raw.get("source") or {}
    return Charge(
        id=raw["id"],
        status=raw.get("status", "unknown"),
        amount=int(raw.get("amount", 0)),
        currency=str(raw.get("currency", "")).upper(),
        failure_code=raw.get("failure_code"),
        failure_message=raw.get("failure_message"),
        authorize_uri=raw.get("authorize_uri"),
        scan_reference=_scan_reference(source) if isinstance(source, dict) else None,
        card=_card(raw.get("card")),
        metadata=raw.get("metadata") or {},
    )


def to_source(raw: Dict[str, Any]) -> Source:
    return Source(
        id=raw["id"],
        type=raw.get("type", ""),
        amount=int(raw.get("amount", 0)),
        currency=str(raw.get("currency", "")).upper(),
        scan_reference=_scan_reference(raw),
    )


class OmiseClient:
    """Cliente síncrono do Omise."""

    def __init__(self, settings: Settings | None = None, transport: httpx.BaseTransport | None = None):
        self.s = settings or di[Settings]
        self.transport = transport

    def _client(self, base_url: str, key: str) -> httpx.Client:
        return httpx.Client(base_url=base_url, auth=(key, ""), timeout=self.s.omise_timeout_s, transport=self.transport)

    def _request(self, method: str, path: str, *, json: Dict[str, Any] | None = None,
                 params: Dict[str, Any] | None = None, vault: bool = False) -> Dict[str, Any]:
        base_url = self.s.omise_vault_url if vault else self.s.omise_api_url
        key = self.s.omise_public_key if vault else self.s.omise_secret_key
        try:
            with self._client(base_url, key) as cli:
                r = cli.request(method, path, json=json, params=params)
        except httpx.HTTPError as e:
            log.warning("omise_unreachable", path=path, error=str(e))
            raise GatewayError(f"payment gateway unreachable: {e}") from e
        data: Dict[str, Any] = {}
        if "application/json" in r.headers.get("content-type", ""):
            data = r.json()
        if r.status_code // 100 != 2 or data.get("object") == "error":
            code = data.get("code") or f"http_{r.status_code}"
            message = data.get("message") or r.reason_phrase or "unknown error"
            log.warning("omise_error", path=path, status=r.status_code, code=code)
            raise GatewayError(f"{message} ({code})", code=code, details=data)
        return data

    # --- Charges ---
    def create_charge(self, *, amount: int, currency: str, source: str | None = None, card: str | None = None,
                      description: str | None = None, metadata: Dict[str, Any] | None = None,
                      return_uri: str | None = None) -> Charge:
        payload: Dict[str, Any] = {"amount": amount, "currency": currency.lower()}
        for key, value in (("source", source), ("card", card), ("description", description),
                           ("metadata", metadata), ("return_uri", return_uri)):
            if value:
                payload[key] = value
        charge = to_charge(self._request("POST", "/charges", json=payload))
        log.info("charge_created", charge_id=charge.id, status=charge.status, amount=amount, currency=currency)
        return charge

    def get_charge(self, charge_id: str) -> Charge:
        return to_charge(self._request("GET", f"/charges/{charge_id}"))

    def list_charges(self, limit: int = 20, offset: int = 0) -> List[Charge]:
        data = self._request("GET", "/charges", params={"limit": min(limit, 100), "offset": offset})
        return [to_charge(c) for c in data.get("data", [])]

    def refund(self, charge_id: str, amount: int | None = None) -> Refund:
        if amount is None:
            # reembolso total: Omise exige o valor explícito
            amount = self.get_charge(charge_id).amount
        data = self._request("POST", f"/charges/{charge_id}/refunds", json={"amount": amount})
        refund = Refund(id=data["id"], charge_id=data.get("charge", charge_id), amount=int(data.get("amount", 0)),
                        currency=str(data.get("currency", "")).upper())
        log.info("charge_refunded", charge_id=charge_id, refund_id=refund.id, amount=refund.amount)
        return refund

    # --- Sources / Tokens ---
    def create_source(self, *, type: str, amount: int, currency: str) -> Source:
        data = self._request("POST", "/sources", json={"type": type, "amount": amount, "currency": currency.lower()})
        return to_source(data)

    def create_token(self, *, name: str, number: str, expiration_month: int, expiration_year: int,
                     security_code: str | None = None) -> Token:
        card: Dict[str, Any] = {
            "name": name,
            "number": number,
            "expiration_month": expiration_month,
            "expiration_year": expiration_year,
        }
        if security_code:
            card["security_code"] = security_code
        data = self._request("POST", "/tokens", json={"card": card}, vault=True)
        return Token(id=data["id"], card=_card(data.get("card")))

    # --- Capability ---
    def get_capabilities(self) -> List[str]:
        """Nomes dos meios de pagamento habilitados na conta."""
        data = self._request("GET", "/capability")
        methods = data.get("payment_methods")
        if methods is not None:
            return [m.get("name", "") for m in methods if m.get("name")]
        backends = data.get("payment_backends") or []
        return [name for b in backends for name in b.keys()]
