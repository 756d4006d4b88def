"""
PayOS 支付网关适配器

文档: https://payos.vn/docs/

- 创建支付链接：POST {api_base}/payment-requests，请求体带 HMAC-SHA256 签名
- Webhook 验签，兼容两种版本：
  1. 请求头 X-Payos-Signature：对原始请求体字节做 HMAC-SHA256
  2. 请求体 signature 字段：对 data 子对象的规范化字符串做 HMAC-SHA256
"""
from __future__ import annotations

import json
import logging
from collections.abc import Mapping, Sequence
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

import httpx

from app.api.errors import (
    gateway_not_configured,
    invalid_callback_payload,
    signature_invalid,
    upstream_gateway_error,
)
from app.core.config import PayOSConfig
from app.core.crypto import HashAlgorithm, hmac_hex, verify_hex_signature
from app.enums import CallbackOutcome, PaymentMethod
from app.models import Order, OrderItem

from .base import PaymentCallback, PaymentDirective, get_header, parse_order_id

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "X-Payos-Signature"
_PAYMENT_REQUESTS_PATH = "/payment-requests"

_PAID = {"00", "PAID"}
_FAILED = {"CANCELLED", "FAILED", "EXPIRED"}


def _canonical_value(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False, sort_keys=True)
    return str(value)


def canonical_data(data: Mapping[str, Any]) -> str:
    """
    PayOS 规范化字符串

    按 key 排序后用 & 拼接 key=value，null 为空字符串，
    嵌套值序列化为紧凑 JSON（嵌套对象的 key 同样排序）。
    """
    return "&".join(f"{key}={_canonical_value(data[key])}" for key in sorted(data))


def to_vnd(amount: Decimal) -> int:
    """PayOS 金额为整数（四舍五入）"""
    return int(amount.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def resolve_outcome(root: Mapping[str, Any], data: Mapping[str, Any]) -> CallbackOutcome:
    """
    根据回调内容判断支付结果

    优先读取 status（data 优先于根节点），没有 status 时再读 code。
    """
    value = data.get("status") or root.get("status")
    if value is None:
        value = data.get("code") or root.get("code")
    if value is None:
        return CallbackOutcome.ignored
    normalized = str(value).strip().upper()
    if normalized in _PAID:
        return CallbackOutcome.paid
    if normalized in _FAILED:
        return CallbackOutcome.failed
    return CallbackOutcome.ignored


class PayOSGateway:
    """PayOS 适配器"""

    method = PaymentMethod.payos

    def __init__(self, config: PayOSConfig, transport: httpx.BaseTransport | None = None) -> None:
        """
        Args:
            config: PayOS 配置
            transport: 自定义 httpx 传输层（测试时注入 MockTransport）
        """
        self.config = config
        self._transport = transport

    def _checksum_key(self) -> bytes:
        if not self.config.checksum_key:
            logger.error("PayOS checksum key is not configured")
            raise gateway_not_configured("PayOS")
        return self.config.checksum_key.encode("utf-8")

    def _headers(self) -> dict[str, str]:
        if not self.config.client_id or not self.config.api_key:
            raise gateway_not_configured("PayOS")
        return {
            "x-client-id": self.config.client_id,
            "x-api-key": self.config.api_key,
            "Content-Type": "application/json",
        }

    def build_request_body(self, order: Order) -> dict[str, Any]:
        """组装创建支付链接的请求体（含签名）"""
        body: dict[str, Any] = {
            "orderCode": order.id.hex,
            "amount": to_vnd(order.total_amount),
            "description": f"Order {order.id.hex}",
            "returnUrl": self.config.return_url,
            "cancelUrl": self.config.cancel_url,
        }
        body["signature"] = hmac_hex(
            self._checksum_key(), canonical_data(body).encode("utf-8"), HashAlgorithm.SHA256
        )
        return body

    def build_payment_request(
        self, order: Order, items: Sequence[OrderItem], *, client_ip: str
    ) -> PaymentDirective:
        """
        调用 PayOS 创建支付链接

        Raises:
            AppError: 网络错误或非 2xx 响应时抛出 502001（订单不回滚）
        """
        headers = self._headers()
        body = self.build_request_body(order)
        try:
            with httpx.Client(
                base_url=self.config.api_base_url.rstrip("/"),
                timeout=self.config.timeout_seconds,
                transport=self._transport,
            ) as client:
                response = client.post(_PAYMENT_REQUESTS_PATH, json=body, headers=headers)
                response.raise_for_status()
                payload = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"PayOS create payment failed for order {order.id}: {e}")
            raise upstream_gateway_error("PayOS", order.id) from e

        redirect_url = None
        data = payload.get("data") if isinstance(payload, dict) else None
        if isinstance(data, dict):
            redirect_url = data.get("checkoutUrl")
        logger.info(f"PayOS payment link created for order {order.id}")
        return PaymentDirective(
            provider=self.method,
            redirect_url=redirect_url,
            payload=payload if isinstance(payload, dict) else {"data": payload},
        )

    def verify_callback(
        self,
        raw_payload: bytes,
        headers: Mapping[str, str],
        query_params: Mapping[str, str],
    ) -> PaymentCallback:
        """
        校验 PayOS webhook

        有 X-Payos-Signature 请求头时对原始请求体验签；
        否则使用请求体中的 signature 字段对 data 子对象验签。

        Raises:
            AppError: 验签失败 401101，内容无法解析 400201
        """
        key = self._checksum_key()
        header_signature = (get_header(headers, SIGNATURE_HEADER) or "").strip()

        if header_signature:
            expected = hmac_hex(key, raw_payload, HashAlgorithm.SHA256)
            if not verify_hex_signature(expected, header_signature):
                logger.warning("PayOS webhook header signature invalid")
                raise signature_invalid()
            root = self._parse(raw_payload)
            signature = header_signature
        else:
            try:
                root = json.loads(raw_payload)
            except ValueError:
                logger.warning("PayOS webhook without header signature has unparseable body")
                raise signature_invalid()
            body_signature = root.get("signature") if isinstance(root, dict) else None
            data = root.get("data") if isinstance(root, dict) else None
            if not isinstance(body_signature, str) or not isinstance(data, dict):
                logger.warning("PayOS webhook signature missing")
                raise signature_invalid()
            expected = hmac_hex(key, canonical_data(data).encode("utf-8"), HashAlgorithm.SHA256)
            if not verify_hex_signature(expected, body_signature):
                logger.warning("PayOS webhook body signature invalid")
                raise signature_invalid()
            signature = body_signature

        data = root.get("data")
        if not isinstance(data, dict):
            data = root
        order_code = data.get("orderCode") or root.get("orderCode")
        outcome = resolve_outcome(root, data)
        logger.info(f"PayOS webhook verified: order_code={order_code} outcome={outcome.value}")
        return PaymentCallback(
            gateway=self.method,
            raw_payload=raw_payload,
            signature=signature,
            order_id=parse_order_id(order_code),
            outcome=outcome,
        )

    @staticmethod
    def _parse(raw_payload: bytes) -> dict[str, Any]:
        try:
            root = json.loads(raw_payload)
        except ValueError:
            raise invalid_callback_payload()
        if not isinstance(root, dict):
            raise invalid_callback_payload()
        return root
