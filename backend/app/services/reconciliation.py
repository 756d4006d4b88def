"""
订单对账服务

根据已验签的网关回调更新订单状态。

状态机：
- pending -> paid: 任一网关确认支付成功
- pending -> failed: 网关确认取消 / 失败 / 过期
- failed -> paid: 失败后又收到成功回调（以网关扣款为准）
- paid 是终态：之后的任何回调都不会改变它
- 任何状态都不会回到 pending

所有操作都是幂等的。网关会重复投递回调，重复调用只会得到相同的最终状态。
"""
from __future__ import annotations

import logging
import uuid

from sqlmodel import Session

from app.api.errors import order_already_paid
from app.crud import order as order_crud
from app.enums import CallbackOutcome, OrderStatus
from app.integrations.base import PaymentCallback
from app.models import Order, utc_now

logger = logging.getLogger(__name__)

_OUTCOME_STATUS = {
    CallbackOutcome.paid: OrderStatus.paid,
    CallbackOutcome.failed: OrderStatus.failed,
}


def apply_status(*, session: Session, order_id: uuid.UUID, new_status: OrderStatus) -> Order | None:
    """
    更新订单状态

    Args:
        session: 数据库会话
        order_id: 订单 ID
        new_status: 目标状态

    Returns:
        订单（不存在时返回 None，按已处理对待）
    """
    order = session.get(Order, order_id)
    if order is None:
        logger.info(f"Order {order_id} not found, status {new_status.value} treated as handled")
        return None

    if order.status == OrderStatus.paid:
        if new_status != OrderStatus.paid:
            logger.warning(f"Order {order_id} already paid, ignoring transition to {new_status.value}")
        return order

    if order.status == new_status:
        return order

    if new_status == OrderStatus.pending:
        logger.warning(f"Order {order_id} is {order.status}, ignoring transition back to pending")
        return order

    logger.info(f"Order {order_id} status {order.status} -> {new_status.value}")
    order.status = new_status
    order.updated_at = utc_now()
    session.add(order)
    session.commit()
    session.refresh(order)
    return order


def apply_callback(*, session: Session, callback: PaymentCallback) -> Order | None:
    """
    把已验签的回调应用到订单上

    无法解析订单 ID 或结果为 ignored 时不做任何修改。
    """
    new_status = _OUTCOME_STATUS.get(callback.outcome)
    if callback.order_id is None or new_status is None:
        logger.info(
            f"{callback.gateway.value} callback acknowledged without transition "
            f"(order_id={callback.order_id}, outcome={callback.outcome.value})"
        )
        return None
    return apply_status(session=session, order_id=callback.order_id, new_status=new_status)


def simulate_payment(*, session: Session, order_id: uuid.UUID, user_id: uuid.UUID) -> Order:
    """
    手动（模拟）支付

    Raises:
        AppError: 订单不存在 404201，已支付 409001
    """
    order = order_crud.get_owned(session=session, order_id=order_id, user_id=user_id)
    if order.status == OrderStatus.paid:
        raise order_already_paid()
    return apply_status(session=session, order_id=order.id, new_status=OrderStatus.paid) or order
