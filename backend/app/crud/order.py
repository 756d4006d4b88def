"""订单 CRUD 操作"""
import uuid

from sqlmodel import Session, col, delete, func, select

from app.api.errors import order_not_found
from app.models import Order, OrderItem


def get_owned(*, session: Session, order_id: uuid.UUID, user_id: uuid.UUID) -> Order:
    """
    查询当前用户的订单

    Raises:
        AppError: 订单不存在或不属于该用户时抛出 404201
    """
    order = session.exec(
        select(Order).where(Order.id == order_id, Order.user_id == user_id)
    ).first()
    if not order:
        raise order_not_found()
    return order


def list_items(*, session: Session, order_id: uuid.UUID) -> list[OrderItem]:
    stmt = (
        select(OrderItem)
        .where(OrderItem.order_id == order_id)
        .order_by(col(OrderItem.position))
    )
    return list(session.exec(stmt).all())


def list_for_user(
    *, session: Session, user_id: uuid.UUID, page: int, page_size: int
) -> tuple[list[Order], int]:
    """分页查询用户订单（按创建时间倒序）"""
    count = session.exec(
        select(func.count()).select_from(Order).where(Order.user_id == user_id)
    ).one()
    stmt = (
        select(Order)
        .where(Order.user_id == user_id)
        .order_by(col(Order.created_at).desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    return list(session.exec(stmt).all()), count


def delete_owned(*, session: Session, order_id: uuid.UUID, user_id: uuid.UUID) -> None:
    """删除订单及其明细"""
    order = get_owned(session=session, order_id=order_id, user_id=user_id)
    session.exec(delete(OrderItem).where(col(OrderItem.order_id) == order.id))
    session.delete(order)
    session.commit()
