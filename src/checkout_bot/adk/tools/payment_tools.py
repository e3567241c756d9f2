"""Tools de pagamento (Omise): cartão, PromptPay, internet banking e consulta de status.

Transições de status:
- cartão: successful -> completed; pending (3-D Secure etc.) -> pending_payment; demais: sem mudança.
- PromptPay / internet banking: sempre pending_payment após criar a cobrança.
- check_payment_status: leitura; só promove se `promote_on_status_check` estiver ligado.
"""
from __future__ import annotations
import json
from typing import Literal, Optional
from pydantic import BaseModel, Field
from ..runtime.toolkit import ToolContext, ToolSpec
from ...domain.errors import CheckoutError
from ...domain.models import CardInfo, Charge, PaymentMethodFields, SessionStatus
from ...domain.money import format_amount
from ...core.logging import get_logger

log = get_logger()

Bank = Literal["bbl", "kbank", "scb", "ktb", "bay"]


class CardPaymentArgs(BaseModel):
    card_token: str = Field(min_length=1, description="The tokenized card token from Omise.js")
    save_card: bool = Field(default=False, description="Whether to save the card for future use")


class PromptPayArgs(BaseModel):
    pass


class InternetBankingArgs(BaseModel):
    bank: Bank = Field(description="Bank code (bbl, kbank, scb, ktb, bay)")


class CheckStatusArgs(BaseModel):
    charge_id: str = Field(min_length=1, description="The charge ID to check")


def closed_message(ctx: ToolContext) -> Optional[str]:
    """Texto de recusa quando a sessão já terminou ou o carrinho está vazio; None se aceita pagamento."""
    if ctx.session.status.terminal:
        return f"This checkout is already {ctx.session.status.value}; no new payment was created."
    if not ctx.session.cart:
        return "Your cart is empty, so there is nothing to pay for. Please add an item first."
    return None


def _description(ctx: ToolContext) -> str:
    return f"Order payment - Session {ctx.session.session_id}"


def _metadata(ctx: ToolContext) -> dict:
    cart = [item.model_dump() for item in ctx.session.cart]
    return {"session_id": ctx.session.session_id, "items": json.dumps(cart, ensure_ascii=False)}


def _return_uri(ctx: ToolContext) -> str:
    return f"{ctx.settings.return_uri_base.rstrip('/')}/checkout/callback/{ctx.session.session_id}"


def _save_card(ctx: ToolContext, token: str, card: CardInfo | None) -> str:
    if not ctx.session.user_id or ctx.profiles is None:
        return "The card could not be saved because no user profile is linked to this checkout."
    card = card or CardInfo()
    try:
        method = ctx.profiles.add_payment_method(ctx.session.user_id, PaymentMethodFields(
            type="card",
            card_token=token,
            card_brand=card.brand,
            card_last_digits=card.last_digits,
            card_expiry_month=str(card.expiration_month) if card.expiration_month else None,
            card_expiry_year=str(card.expiration_year) if card.expiration_year else None,
            card_holder_name=card.name,
        ))
    except CheckoutError as e:
        # a cobrança já foi feita: o resultado do pagamento não pode se perder
        log.warning("card_save_failed", session_id=ctx.session.session_id, error=e.message)
        return f"The payment went through, but the card could not be saved: {e.message}"
    ctx.session.payment_method_id = method.id
    ctx.registry.save(ctx.session)
    return f"Card saved for future checkouts (payment method ID: {method.id})."


def tool_process_card_payment(ctx: ToolContext, args: CardPaymentArgs) -> str:
    refusal = closed_message(ctx)
    if refusal:
        return refusal
    charge = ctx.gateway.create_charge(
        amount=ctx.session.total_amount,
        currency=ctx.session.currency,
        card=args.card_token,
        description=_description(ctx),
        metadata=_metadata(ctx),
        return_uri=_return_uri(ctx),
    )
    if charge.status == "successful":
        ctx.registry.transition(ctx.session, SessionStatus.COMPLETED)
        text = f"Payment processed successfully! Charge ID: {charge.id}, Status: {charge.status}"
    elif charge.status == "pending":
        ctx.registry.transition(ctx.session, SessionStatus.PENDING_PAYMENT)
        text = f"Payment is awaiting confirmation. Charge ID: {charge.id}, Status: {charge.status}"
        if charge.authorize_uri:
            text += f"\nPlease complete card verification at: {charge.authorize_uri}"
    else:
        reason = charge.failure_message or charge.failure_code or "Unknown error"
        log.info("card_declined", session_id=ctx.session.session_id, charge_id=charge.id, reason=reason)
        return f"Payment failed: {reason} (Charge ID: {charge.id}, Status: {charge.status})"
    if args.save_card:
        text += "\n" + _save_card(ctx, args.card_token, charge.card)
    return text


def tool_create_promptpay_payment(ctx: ToolContext, args: PromptPayArgs) -> str:
    refusal = closed_message(ctx)
    if refusal:
        return refusal
    source = ctx.gateway.create_source(type="promptpay", amount=ctx.session.total_amount, currency=ctx.session.currency)
    charge = ctx.gateway.create_charge(
        amount=ctx.session.total_amount,
        currency=ctx.session.currency,
        source=source.id,
        description=_description(ctx),
        metadata=_metadata(ctx),
        return_uri=_return_uri(ctx),
    )
    # o cliente ainda precisa pagar fora do chat
    ctx.registry.transition(ctx.session, SessionStatus.PENDING_PAYMENT)
    scan = source.scan_reference or charge.scan_reference or charge.authorize_uri
    return f"PromptPay QR code generated! Scan URL: {scan}\nCharge ID: {charge.id}"


def tool_create_internet_banking_payment(ctx: ToolContext, args: InternetBankingArgs) -> str:
    refusal = closed_message(ctx)
    if refusal:
        return refusal
    source = ctx.gateway.create_source(type=f"internet_banking_{args.bank}", amount=ctx.session.total_amount,
                                       currency=ctx.session.currency)
    charge = ctx.gateway.create_charge(
        amount=ctx.session.total_amount,
        currency=ctx.session.currency,
        source=source.id,
        description=_description(ctx),
        metadata=_metadata(ctx),
        return_uri=_return_uri(ctx),
    )
    ctx.registry.transition(ctx.session, SessionStatus.PENDING_PAYMENT)
    return f"Internet banking payment created! Please visit: {charge.authorize_uri}\nCharge ID: {charge.id}"


def _maybe_promote(ctx: ToolContext, charge: Charge) -> None:
    if not ctx.settings.promote_on_status_check or ctx.session.status != SessionStatus.PENDING_PAYMENT:
        return
    if charge.metadata.get("session_id") != ctx.session.session_id:
        return
    if charge.status == "successful":
        ctx.registry.transition(ctx.session, SessionStatus.COMPLETED)
    elif charge.failed:
        ctx.registry.transition(ctx.session, SessionStatus.CANCELLED)


def tool_check_payment_status(ctx: ToolContext, args: CheckStatusArgs) -> str:
    charge = ctx.gateway.get_charge(args.charge_id)
    _maybe_promote(ctx, charge)
    return f"Payment status: {charge.status}, Amount: {format_amount(charge.amount, charge.currency)}"


TOOLS = [
    ToolSpec(
        name="process_card_payment",
        description=("Process a credit/debit card payment. Only call after the customer confirms they want to pay "
                     "by card and a card token is available."),
        args_schema=CardPaymentArgs,
        func=tool_process_card_payment,
    ),
    ToolSpec(
        name="create_promptpay_payment",
        description="Create a PromptPay QR code payment. Returns a QR code the customer can scan.",
        args_schema=PromptPayArgs,
        func=tool_create_promptpay_payment,
    ),
    ToolSpec(
        name="create_internet_banking_payment",
        description="Create an internet banking payment link for the chosen bank.",
        args_schema=InternetBankingArgs,
        func=tool_create_internet_banking_payment,
    ),
    ToolSpec(
        name="check_payment_status",
        description="Check the status of a payment charge.",
        args_schema=CheckStatusArgs,
        func=tool_check_payment_status,
    ),
]
