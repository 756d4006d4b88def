"""
Stripe 支付网关适配器

文档: https://docs.stripe.com/payments/checkout
Webhook: https://docs.stripe.com/webhooks#verify-events

- 创建 Checkout Session，client_reference_id 与 metadata.orderId 都是订单 ID
- Webhook 先用 Stripe-Signature 验签，验签通过后才解析事件内容
"""
from __future__ import annotations

import json
import logging
from collections.abc import Mapping, Sequence
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

import stripe

from app.api.errors import (
    gateway_not_configured,
    invalid_callback_payload,
    signature_invalid,
    upstream_gateway_error,
)
from app.core.config import StripeConfig
from app.enums import CallbackOutcome, PaymentMethod
from app.models import Order, OrderItem

from .base import PaymentCallback, PaymentDirective, get_header, parse_order_id

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "Stripe-Signature"

CHECKOUT_SESSION_COMPLETED = "checkout.session.completed"
CHECKOUT_SESSION_EXPIRED = "checkout.session.expired"
PAYMENT_INTENT_SUCCEEDED = "payment_intent.succeeded"


def to_cents(amount: Decimal) -> int:
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _order_url(template: str, order: Order) -> str:
    return template.replace("{ORDER_ID}", str(order.id))


class StripeGateway:
    """Stripe 适配器"""

    method = PaymentMethod.stripe

    def __init__(self, config: StripeConfig) -> None:
        self.config = config

    def build_payment_request(
        self, order: Order, items: Sequence[OrderItem], *, client_ip: str
    ) -> PaymentDirective:
        """
        创建 Stripe Checkout Session

        Raises:
            AppError: 未配置 API Key 时 500201，Stripe 调用失败时 502001
        """
        if not self.config.api_key:
            logger.error("Stripe API key is not configured")
            raise gateway_not_configured("Stripe")

        line_items = [
            {
                "quantity": item.quantity,
                "price_data": {
                    "currency": self.config.currency,
                    "unit_amount": to_cents(item.unit_price),
                    "product_data": {"name": str(item.product_id)},
                },
            }
            for item in items
        ]
        metadata = {"orderId": str(order.id)}
        try:
            session = stripe.checkout.Session.create(
                api_key=self.config.api_key,
                mode="payment",
                success_url=_order_url(self.config.success_url, order),
                cancel_url=_order_url(self.config.cancel_url, order),
                client_reference_id=str(order.id),
                line_items=line_items,
                metadata=metadata,
                payment_intent_data={"metadata": metadata},
            )
        except stripe.StripeError as e:
            logger.error(f"Stripe checkout session failed for order {order.id}: {e}")
            raise upstream_gateway_error("Stripe", order.id) from e

        logger.info(f"Stripe checkout session {session.id} created for order {order.id}")
        return PaymentDirective(
            provider=self.method,
            redirect_url=session.url,
            payload={"session_id": session.id},
        )

    def verify_callback(
        self,
        raw_payload: bytes,
        headers: Mapping[str, str],
        query_params: Mapping[str, str],
    ) -> PaymentCallback:
        """
        校验 Stripe webhook

        Raises:
            AppError: 缺少签名或验签失败 401101，未配置密钥 500201，
                内容无法解析 400201
        """
        signature = get_header(headers, SIGNATURE_HEADER)
        if not signature:
            logger.warning("Stripe webhook request missing signature header")
            raise signature_invalid()

        secret = self.config.webhook_secret
        if not secret:
            logger.error("Stripe webhook secret is not configured")
            raise gateway_not_configured("Stripe")

        try:
            payload = raw_payload.decode("utf-8")
        except UnicodeDecodeError:
            raise signature_invalid()

        try:
            stripe.WebhookSignature.verify_header(
                payload, signature, secret, self.config.webhook_tolerance
            )
        except stripe.SignatureVerificationError as e:
            logger.warning(f"Stripe webhook signature validation failed: {e}")
            raise signature_invalid()

        try:
            event = json.loads(payload)
        except ValueError:
            logger.error("Stripe webhook payload is not valid JSON")
            raise invalid_callback_payload()
        if not isinstance(event, dict):
            raise invalid_callback_payload()

        event_type, order_ref, outcome = self._resolve(event)
        logger.info(f"Stripe webhook received: {event_type} for order {order_ref}")
        return PaymentCallback(
            gateway=self.method,
            raw_payload=raw_payload,
            signature=signature,
            order_id=parse_order_id(order_ref),
            outcome=outcome,
        )

    @staticmethod
    def _resolve(event: dict[str, Any]) -> tuple[str, Any, CallbackOutcome]:
        event_type = str(event.get("type") or "")
        data = event.get("data")
        obj = data.get("object") if isinstance(data, dict) else None
        if not isinstance(obj, dict):
            return event_type, None, CallbackOutcome.ignored

        if event_type == CHECKOUT_SESSION_COMPLETED:
            return event_type, obj.get("client_reference_id"), CallbackOutcome.paid
        if event_type == CHECKOUT_SESSION_EXPIRED:
            return event_type, obj.get("client_reference_id"), CallbackOutcome.failed
        if event_type == PAYMENT_INTENT_SUCCEEDED:
            metadata = obj.get("metadata")
            order_ref = metadata.get("orderId") if isinstance(metadata, dict) else None
            return event_type, order_ref, CallbackOutcome.paid
        return event_type, None, CallbackOutcome.ignored
