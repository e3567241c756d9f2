from __future__ import annotations

import json

import pytest

from checkout_bot.adk.tools.cart_tools import UpdateCartItemArgs, tool_update_cart_item
from checkout_bot.adk.tools.payment_tools import (
    CardPaymentArgs,
    CheckStatusArgs,
    InternetBankingArgs,
    PromptPayArgs,
    tool_check_payment_status,
    tool_create_internet_banking_payment,
    tool_create_promptpay_payment,
    tool_process_card_payment,
)
from checkout_bot.domain.models import SessionStatus


class TestCardPayment:
    def test_successful_charge_completes_session(self, make_ctx, gateway, registry) -> None:
        ctx = make_ctx()
        result = tool_process_card_payment(ctx, CardPaymentArgs(card_token="tokn_test_1"))

        assert "Payment processed successfully!" in result
        assert "chrg_test_1" in result
        assert "successful" in result
        assert registry.require_session(ctx.session.session_id).status == SessionStatus.COMPLETED
        sent = gateway.created[0]
        assert sent["amount"] == 100000
        assert sent["currency"] == "THB"
        assert sent["card"] == "tokn_test_1"
        assert sent["metadata"]["session_id"] == ctx.session.session_id
        assert json.loads(sent["metadata"]["items"])[0]["name"] == "Widget"
        assert sent["return_uri"].endswith(f"/checkout/callback/{ctx.session.session_id}")

    def test_pending_charge_moves_to_pending_payment(self, make_ctx, gateway, registry) -> None:
        gateway.charge_status = "pending"
        ctx = make_ctx()
        result = tool_process_card_payment(ctx, CardPaymentArgs(card_token="tokn_3ds"))

        assert "https://pay.example/authorize" in result
        assert registry.require_session(ctx.session.session_id).status == SessionStatus.PENDING_PAYMENT

    def test_declined_charge_leaves_status_unchanged(self, make_ctx, gateway, registry) -> None:
        gateway.charge_status = "failed"
        gateway.failure_message = "insufficient funds in the account"
        ctx = make_ctx()
        result = tool_process_card_payment(ctx, CardPaymentArgs(card_token="tokn_declined"))

        assert result.startswith("Payment failed: insufficient funds in the account")
        assert registry.require_session(ctx.session.session_id).status == SessionStatus.ACTIVE

    def test_declined_while_pending_stays_pending(self, make_ctx, gateway, registry) -> None:
        ctx = make_ctx()
        registry.transition(ctx.session, SessionStatus.PENDING_PAYMENT)
        gateway.charge_status = "failed"
        tool_process_card_payment(ctx, CardPaymentArgs(card_token="tokn_declined"))

        assert registry.require_session(ctx.session.session_id).status == SessionStatus.PENDING_PAYMENT

    def test_completed_session_is_not_charged_again(self, make_ctx, gateway, registry) -> None:
        ctx = make_ctx()
        registry.transition(ctx.session, SessionStatus.COMPLETED)
        result = tool_process_card_payment(ctx, CardPaymentArgs(card_token="tokn_test_1"))

        assert "already completed" in result
        assert gateway.created == []

    def test_save_card_stores_payment_method(self, make_ctx, profiles, user) -> None:
        ctx = make_ctx(user_id=user.id)
        result = tool_process_card_payment(ctx, CardPaymentArgs(card_token="tokn_keep", save_card=True))

        assert "Card saved" in result
        methods = profiles.get_profile(user.id).payment_methods
        assert len(methods) == 1
        assert methods[0].type == "card"
        assert methods[0].card_token == "tokn_keep"
        assert ctx.session.payment_method_id == methods[0].id

    def test_save_card_without_user_only_explains(self, make_ctx) -> None:
        ctx = make_ctx()
        result = tool_process_card_payment(ctx, CardPaymentArgs(card_token="tokn_keep", save_card=True))

        assert "Payment processed successfully!" in result
        assert "could not be saved" in result

    def test_save_card_failure_keeps_payment_result(self, make_ctx, registry) -> None:
        ctx = make_ctx(user_id="user_ghost")
        result = tool_process_card_payment(ctx, CardPaymentArgs(card_token="tokn_keep", save_card=True))

        assert result.startswith("Payment processed successfully! Charge ID: chrg_test_1")
        assert "the card could not be saved: Profile user_ghost not found" in result
        assert registry.require_session(ctx.session.session_id).status == SessionStatus.COMPLETED


@pytest.mark.parametrize(
    "pay",
    [
        lambda ctx: tool_process_card_payment(ctx, CardPaymentArgs(card_token="tokn_test_1")),
        lambda ctx: tool_create_promptpay_payment(ctx, PromptPayArgs()),
        lambda ctx: tool_create_internet_banking_payment(ctx, InternetBankingArgs(bank="kbank")),
    ],
)
def test_empty_cart_is_refused(make_ctx, gateway, registry, pay) -> None:
    ctx = make_ctx()
    tool_update_cart_item(ctx, UpdateCartItemArgs(cart_item_id="1", quantity=0))

    result = pay(ctx)

    assert result.startswith("Your cart is empty")
    assert gateway.created == [] and gateway.sources == []
    assert registry.require_session(ctx.session.session_id).status == SessionStatus.ACTIVE



def test_promptpay_always_sets_pending(make_ctx, gateway, registry) -> None:
    gateway.charge_status = "successful"
    ctx = make_ctx()
    result = tool_create_promptpay_payment(ctx, PromptPayArgs())

    assert result == "PromptPay QR code generated! Scan URL: https://qr.example/qr.png\nCharge ID: chrg_test_1"
    assert gateway.sources == [{"type": "promptpay", "amount": 100000, "currency": "THB"}]
    assert gateway.created[0]["source"] == "src_test_1"
    assert registry.require_session(ctx.session.session_id).status == SessionStatus.PENDING_PAYMENT


def test_internet_banking_uses_bank_source(make_ctx, gateway, registry) -> None:
    gateway.charge_status = "pending"
    ctx = make_ctx()
    result = tool_create_internet_banking_payment(ctx, InternetBankingArgs(bank="scb"))

    assert gateway.sources[0]["type"] == "internet_banking_scb"
    assert "Please visit: https://pay.example/authorize" in result
    assert "Charge ID: chrg_test_1" in result
    assert registry.require_session(ctx.session.session_id).status == SessionStatus.PENDING_PAYMENT


class TestCheckStatus:
    def test_reports_status_and_amount_without_mutation(self, make_ctx, registry) -> None:
        ctx = make_ctx()
        tool_create_promptpay_payment(ctx, PromptPayArgs())

        result = tool_check_payment_status(ctx, CheckStatusArgs(charge_id="chrg_test_1"))

        assert result == "Payment status: successful, Amount: 1000.00 THB"
        assert registry.require_session(ctx.session.session_id).status == SessionStatus.PENDING_PAYMENT

    def test_promotion_policy_completes_matching_session(self, make_ctx, registry, settings) -> None:
        ctx = make_ctx(settings=settings.model_copy(update={"promote_on_status_check": True}))
        tool_create_promptpay_payment(ctx, PromptPayArgs())

        tool_check_payment_status(ctx, CheckStatusArgs(charge_id="chrg_test_1"))

        assert registry.require_session(ctx.session.session_id).status == SessionStatus.COMPLETED

    def test_promotion_policy_cancels_on_expired_charge(self, make_ctx, gateway, registry, settings) -> None:
        gateway.charge_status = "expired"
        ctx = make_ctx(settings=settings.model_copy(update={"promote_on_status_check": True}))
        tool_create_promptpay_payment(ctx, PromptPayArgs())

        tool_check_payment_status(ctx, CheckStatusArgs(charge_id="chrg_test_1"))

        assert registry.require_session(ctx.session.session_id).status == SessionStatus.CANCELLED

    def test_promotion_ignores_charge_of_other_session(self, make_ctx, registry, settings) -> None:
        other = make_ctx()
        tool_create_promptpay_payment(other, PromptPayArgs())
        ctx = make_ctx(settings=settings.model_copy(update={"promote_on_status_check": True}))
        registry.transition(ctx.session, SessionStatus.PENDING_PAYMENT)

        tool_check_payment_status(ctx, CheckStatusArgs(charge_id="chrg_test_1"))

        assert registry.require_session(ctx.session.session_id).status == SessionStatus.PENDING_PAYMENT
