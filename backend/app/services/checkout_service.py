"""
结算服务

把购物车转换成订单，然后调用所选支付网关生成支付指令。

下单流程：
1. 读取购物车，为空则报错
2. 按当前商品价格生成订单明细（价格快照），商品已删除则报错
3. 在同一个事务中写入订单、明细并清空购物车
4. 根据支付方式调用网关适配器；未识别的支付方式走手动支付，不返回支付指令

网关调用失败（包括网关未配置）时订单已经提交，不会回滚，错误的 data 中带订单 ID。
"""
from __future__ import annotations

import logging
import uuid
from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal

from sqlmodel import Session

from app.api.errors import AppError, empty_cart, order_already_paid, product_unavailable
from app.crud import cart as cart_crud
from app.crud import order as order_crud
from app.crud import product as product_crud
from app.enums import OrderStatus, PaymentMethod
from app.integrations.base import PaymentDirective, PaymentGateway
from app.integrations.vnpay import VnPayGateway
from app.models import Order, OrderItem

logger = logging.getLogger(__name__)


@dataclass
class CheckoutResult:
    """下单结果：订单、明细与支付指令（手动支付时为 None）"""

    order: Order
    items: list[OrderItem]
    payment: PaymentDirective | None = None


def place_order(
    *,
    session: Session,
    user_id: uuid.UUID,
    payment_method: str | None,
    gateways: Mapping[PaymentMethod, PaymentGateway],
    client_ip: str,
) -> CheckoutResult:
    """
    下单

    Args:
        session: 数据库会话
        user_id: 当前用户 ID
        payment_method: 支付方式（stripe / vnpay / payos，大小写不敏感）
        gateways: 可用的网关适配器
        client_ip: 客户端 IP（VNPAY 需要）

    Returns:
        CheckoutResult

    Raises:
        AppError: 购物车为空 400101，商品不可用 400102，网关调用失败 502001，
            网关未配置 500201（后两者的 data 中带订单 ID）
    """
    cart_items = cart_crud.list_items(session=session, user_id=user_id)
    if not cart_items:
        raise empty_cart()

    products = product_crud.get_many(
        session=session, product_ids=(c.product_id for c in cart_items)
    )

    method = PaymentMethod.parse(payment_method)
    order = Order(user_id=user_id, status=OrderStatus.pending, payment_method=method)
    items: list[OrderItem] = []
    total = Decimal("0.00")
    for position, line in enumerate(cart_items):
        product = products.get(line.product_id)
        if product is None:
            raise product_unavailable(line.product_id)
        unit_price = Decimal(product.price)
        items.append(
            OrderItem(
                order_id=order.id,
                product_id=product.id,
                quantity=line.quantity,
                unit_price=unit_price,
                position=position,
            )
        )
        total += unit_price * line.quantity
    order.total_amount = total

    # 订单写入与清空购物车必须在同一个事务中
    try:
        session.add(order)
        session.add_all(items)
        for line in cart_items:
            session.delete(line)
        session.commit()
    except Exception:
        session.rollback()
        raise
    session.refresh(order)
    logger.info(
        f"Order {order.id} placed by user {user_id}: total={total} items={len(items)} "
        f"method={method.value if method else 'manual'}"
    )

    result = CheckoutResult(order=order, items=items)
    gateway = gateways.get(method) if method else None
    if gateway is not None:
        try:
            result.payment = gateway.build_payment_request(order, items, client_ip=client_ip)
        except AppError as e:
            # 订单已提交，错误响应里带上订单 ID 供前端重试支付
            if e.data is None:
                e.data = {"order_id": str(order.id)}
            raise
    return result


def create_vnpay_payment(
    *,
    session: Session,
    order_id: uuid.UUID,
    user_id: uuid.UUID,
    gateway: VnPayGateway,
    client_ip: str,
) -> PaymentDirective:
    """
    为已有订单重新生成 VNPAY 支付链接

    Raises:
        AppError: 订单不存在 404201，已支付 409001
    """
    order = order_crud.get_owned(session=session, order_id=order_id, user_id=user_id)
    if order.status == OrderStatus.paid:
        raise order_already_paid()
    items = order_crud.list_items(session=session, order_id=order.id)
    return gateway.build_payment_request(order, items, client_ip=client_ip)
