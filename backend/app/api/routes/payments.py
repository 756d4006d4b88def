"""
支付回调路由模块

接收各支付网关的回调（webhook / IPN / return URL）：
1. 由对应的网关适配器校验签名并解析结果
2. 交给对账服务更新订单状态（幂等）
3. 验签通过后总是返回 200 + {"received": true}，网关据此停止重试

验签失败返回 401，不会修改任何订单。
"""
from __future__ import annotations

import uuid

from fastapi import APIRouter, Request
from sqlmodel import Session

from app.api.deps import (
    ClientIp,
    CurrentUser,
    PayOSGatewayDep,
    RawBody,
    SessionDep,
    StripeGatewayDep,
    VnPayGatewayDep,
)
from app.api.schemas import ApiEnvelope, CallbackAck
from app.integrations.base import PaymentCallback, PaymentGateway
from app.services import checkout_service, reconciliation

router = APIRouter(prefix="/payments", tags=["payments"])


def _handle_callback(
    *, session: Session, gateway: PaymentGateway, raw: bytes, request: Request
) -> ApiEnvelope:
    callback: PaymentCallback = gateway.verify_callback(
        raw, request.headers, request.query_params
    )
    reconciliation.apply_callback(session=session, callback=callback)
    return ApiEnvelope(data=CallbackAck())


@router.post("/stripe/webhook", response_model=ApiEnvelope)
def stripe_webhook(
    session: SessionDep, gateway: StripeGatewayDep, raw: RawBody, request: Request
) -> ApiEnvelope:
    """
    Stripe webhook

    请求路径: POST /api/v1/payments/stripe/webhook

    签名在 Stripe-Signature 请求头中，对原始请求体计算。
    """
    return _handle_callback(session=session, gateway=gateway, raw=raw, request=request)


@router.get("/vnpay/return", response_model=ApiEnvelope)
def vnpay_return(session: SessionDep, gateway: VnPayGatewayDep, request: Request) -> ApiEnvelope:
    """
    VNPAY 用户跳转回调

    请求路径: GET /api/v1/payments/vnpay/return?vnp_...&vnp_SecureHash=...
    """
    return _handle_callback(session=session, gateway=gateway, raw=b"", request=request)


@router.get("/vnpay/ipn", response_model=ApiEnvelope)
def vnpay_ipn(session: SessionDep, gateway: VnPayGatewayDep, request: Request) -> ApiEnvelope:
    """
    VNPAY 服务端通知（IPN）

    与 return URL 使用同一套验签和对账逻辑。
    """
    return _handle_callback(session=session, gateway=gateway, raw=b"", request=request)


@router.post("/vnpay/create/{order_id}", response_model=ApiEnvelope)
def vnpay_create(
    session: SessionDep,
    current_user: CurrentUser,
    gateway: VnPayGatewayDep,
    client_ip: ClientIp,
    order_id: uuid.UUID,
) -> ApiEnvelope:
    """
    为已有订单重新生成 VNPAY 支付链接

    Raises:
        AppError: 订单不存在 404201，已支付 409001，未配置 VNPAY 500201
    """
    directive = checkout_service.create_vnpay_payment(
        session=session,
        order_id=order_id,
        user_id=current_user.id,
        gateway=gateway,
        client_ip=client_ip,
    )
    return ApiEnvelope(data=directive)


@router.post("/payos/webhook", response_model=ApiEnvelope)
def payos_webhook(
    session: SessionDep, gateway: PayOSGatewayDep, raw: RawBody, request: Request
) -> ApiEnvelope:
    """
    PayOS webhook

    签名可以在 X-Payos-Signature 请求头（对原始请求体计算），
    也可以在请求体的 signature 字段（对 data 计算）。
    """
    return _handle_callback(session=session, gateway=gateway, raw=raw, request=request)
