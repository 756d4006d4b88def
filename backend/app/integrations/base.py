"""
支付网关适配器公共定义

每个网关适配器都实现同一组能力：
- build_payment_request: 根据订单生成支付指令（跳转 URL 或网关返回的数据）
- verify_callback: 校验网关回调（webhook / IPN / return URL）并解析出结果

验签失败时适配器直接抛出 signature_invalid()，不会读取任何业务字段。
"""
from __future__ import annotations

import uuid
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Protocol

from pydantic import BaseModel

from app.enums import CallbackOutcome, PaymentMethod
from app.models import Order, OrderItem


class PaymentDirective(BaseModel):
    """
    支付指令

    返回给前端，告诉它如何完成支付。
    """
    provider: PaymentMethod
    redirect_url: str | None = None  # 跳转支付页
    payload: dict[str, Any] | None = None  # 网关原始返回数据


@dataclass(frozen=True)
class PaymentCallback:
    """
    已验签的网关回调（不落库）

    order_id 为 None 表示无法解析出订单，按已处理对待。
    """
    gateway: PaymentMethod
    raw_payload: bytes
    signature: str
    order_id: uuid.UUID | None
    outcome: CallbackOutcome


class PaymentGateway(Protocol):
    """支付网关适配器接口"""

    method: PaymentMethod

    def build_payment_request(
        self, order: Order, items: Sequence[OrderItem], *, client_ip: str
    ) -> PaymentDirective: ...

    def verify_callback(
        self,
        raw_payload: bytes,
        headers: Mapping[str, str],
        query_params: Mapping[str, str],
    ) -> PaymentCallback: ...


def parse_order_id(value: Any) -> uuid.UUID | None:
    """
    解析回调中的订单关联 ID

    同时接受 32 位十六进制与带连字符的 UUID 形式，无法解析时返回 None。
    """
    if value is None:
        return None
    try:
        return uuid.UUID(str(value).strip())
    except ValueError:
        return None


def get_header(headers: Mapping[str, str], name: str) -> str | None:
    """大小写不敏感地读取请求头"""
    value = headers.get(name)
    if value is not None:
        return value
    lowered = name.lower()
    for key, val in headers.items():
        if key.lower() == lowered:
            return val
    return None
