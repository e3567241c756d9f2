"""Tools de perfil: endereços, meios de pagamento salvos e checkout rápido.

Todas exigem `session.user_id`; sem usuário vinculado devolvem texto explicativo.
"""
from __future__ import annotations
from typing import get_args, List, Optional
from pydantic import BaseModel, Field
from ..runtime.toolkit import Capability, ToolContext, ToolSpec
from .payment_tools import (
    Bank, CardPaymentArgs, InternetBankingArgs, PromptPayArgs, closed_message,
    tool_create_internet_banking_payment, tool_create_promptpay_payment, tool_process_card_payment,
)
from ...domain.models import AddressFields, PaymentMethod, PaymentMethodFields, SavedAddress, SessionStatus
from ...domain.money import format_amount
from ...core.logging import get_logger

log = get_logger()

NO_PROFILES = "Saved profiles are not enabled, so addresses and payment methods cannot be stored."
NO_USER = "No user profile is linked to this checkout, so saved details are not available."


class SaveAddressArgs(AddressFields):
    is_default: bool = Field(default=False, description="Set as the default address")


class SavePaymentMethodArgs(PaymentMethodFields):
    is_default: bool = Field(default=False, description="Set as the default payment method")


class NoArgs(BaseModel):
    pass


def _format_address(a: SavedAddress) -> str:
    tag = " [default]" if a.is_default else ""
    label = f"{a.label}: " if a.label else ""
    return f"- {label}{a.one_line()} (ID: {a.id}){tag}"


def _format_method(m: PaymentMethod) -> str:
    tag = " [default]" if m.is_default else ""
    return f"- {m.describe()} (ID: {m.id}){tag}"


def _save_address(ctx: ToolContext, args: SaveAddressArgs, kind: str) -> str:
    if not ctx.session.user_id:
        return NO_USER
    fields = AddressFields.model_validate(args.model_dump(exclude={"is_default"}))
    if kind == "shipping":
        saved = ctx.profiles.add_shipping_address(ctx.session.user_id, fields, is_default=args.is_default)
        ctx.session.shipping_address_id = saved.id
    else:
        saved = ctx.profiles.add_billing_address(ctx.session.user_id, fields, is_default=args.is_default)
        ctx.session.billing_address_id = saved.id
    ctx.registry.save(ctx.session)
    suffix = " and set as default" if saved.is_default else ""
    return f"{kind.capitalize()} address saved{suffix}. Address ID: {saved.id}"


def tool_save_shipping_address(ctx: ToolContext, args: SaveAddressArgs) -> str:
    return _save_address(ctx, args, "shipping")


def tool_save_billing_address(ctx: ToolContext, args: SaveAddressArgs) -> str:
    return _save_address(ctx, args, "billing")


def tool_get_saved_addresses(ctx: ToolContext, args: NoArgs) -> str:
    if not ctx.session.user_id:
        return NO_USER
    profile = ctx.profiles.get_profile(ctx.session.user_id)
    if profile is None:
        return f"No profile found for user {ctx.session.user_id}."
    lines: List[str] = ["Shipping addresses:"]
    lines += [_format_address(a) for a in profile.shipping_addresses] or ["- none saved"]
    lines.append("Billing addresses:")
    lines += [_format_address(a) for a in profile.billing_addresses] or ["- none saved"]
    return "\n".join(lines)


def tool_save_payment_method(ctx: ToolContext, args: SavePaymentMethodArgs) -> str:
    if not ctx.session.user_id:
        return NO_USER
    fields = PaymentMethodFields.model_validate(args.model_dump(exclude={"is_default"}))
    saved = ctx.profiles.add_payment_method(ctx.session.user_id, fields, is_default=args.is_default)
    ctx.session.payment_method_id = saved.id
    ctx.registry.save(ctx.session)
    suffix = " and set as default" if saved.is_default else ""
    return f"Payment method saved ({saved.describe()}){suffix}. Payment method ID: {saved.id}"


def tool_get_quick_checkout_data(ctx: ToolContext, args: NoArgs) -> str:
    if not ctx.session.user_id:
        return NO_USER
    data = ctx.profiles.get_quick_checkout_data(ctx.session.user_id)
    lines = ["Quick checkout details:"]
    lines.append(f"Shipping: {data.shipping_address.one_line()} (ID: {data.shipping_address.id})"
                 if data.shipping_address else "Shipping: missing - no saved shipping address")
    lines.append(f"Billing: {data.billing_address.one_line()} (ID: {data.billing_address.id})"
                 if data.billing_address else "Billing: missing - no saved billing address")
    lines.append(f"Payment: {data.payment_method.describe()} (ID: {data.payment_method.id})"
                 if data.payment_method else "Payment: missing - no saved payment method")
    lines.append(f"Order total: {format_amount(ctx.session.total_amount, ctx.session.currency)}")
    return "\n".join(lines)


def _pay_with(ctx: ToolContext, method: PaymentMethod) -> Optional[str]:
    """Despacha para o handler do tipo salvo; None quando os dados do meio estão incompletos."""
    if method.type == "card":
        if not method.card_token:
            return None
        return tool_process_card_payment(ctx, CardPaymentArgs(card_token=method.card_token))
    if method.type == "promptpay":
        return tool_create_promptpay_payment(ctx, PromptPayArgs())
    if method.type == "internet_banking":
        if method.bank_code not in get_args(Bank):
            return None
        return tool_create_internet_banking_payment(ctx, InternetBankingArgs(bank=method.bank_code))
    return f"Quick checkout does not support {method.describe()} yet. Please choose another payment method."


def tool_process_quick_checkout(ctx: ToolContext, args: NoArgs) -> str:
    if not ctx.session.user_id:
        return NO_USER
    refusal = closed_message(ctx)
    if refusal:
        return refusal
    data = ctx.profiles.get_quick_checkout_data(ctx.session.user_id)
    method = data.payment_method
    if method is None:
        return "No saved payment method found for quick checkout. Please add a payment method first."

    before = ctx.session.status
    ctx.session.payment_method_id = method.id
    if data.shipping_address:
        ctx.session.shipping_address_id = data.shipping_address.id
    if data.billing_address:
        ctx.session.billing_address_id = data.billing_address.id
    ctx.registry.save(ctx.session)

    result = _pay_with(ctx, method)
    if result is None:
        return f"The saved payment method {method.describe()} is missing data needed to pay. Please update it."
    if ctx.session.status == SessionStatus.COMPLETED and before != SessionStatus.COMPLETED:
        ctx.profiles.record_checkout(ctx.session.user_id, ctx.session.total_amount)
    return f"Quick checkout using {method.describe()}:\n{result}"


def _profile_tool(name: str, description: str, args_schema, func) -> ToolSpec:
    return ToolSpec(name=name, description=description, args_schema=args_schema, func=func,
                    requires=Capability.PROFILE, unavailable_message=NO_PROFILES)


TOOLS = [
    _profile_tool("save_shipping_address", "Save a shipping address to the user's profile.",
                  SaveAddressArgs, tool_save_shipping_address),
    _profile_tool("save_billing_address", "Save a billing address to the user's profile.",
                  SaveAddressArgs, tool_save_billing_address),
    _profile_tool("get_saved_addresses", "Get all saved shipping and billing addresses for the user.",
                  NoArgs, tool_get_saved_addresses),
    _profile_tool("save_payment_method", "Save a payment method to the user's profile.",
                  SavePaymentMethodArgs, tool_save_payment_method),
    _profile_tool("get_quick_checkout_data",
                  "Get the user's default shipping address, billing address and payment method for quick checkout.",
                  NoArgs, tool_get_quick_checkout_data),
    _profile_tool("process_quick_checkout",
                  "Complete checkout using the user's saved default address and payment method.",
                  NoArgs, tool_process_quick_checkout),
]
