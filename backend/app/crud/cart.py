"""购物车 CRUD 操作"""
import uuid

from sqlmodel import Session, col, select

from app.api.errors import cart_item_not_found, product_not_found
from app.models import CartItem, Product


def list_items(*, session: Session, user_id: uuid.UUID) -> list[CartItem]:
    stmt = (
        select(CartItem)
        .where(CartItem.user_id == user_id)
        .order_by(col(CartItem.created_at))
    )
    return list(session.exec(stmt).all())


def add_item(
    *, session: Session, user_id: uuid.UUID, product_id: uuid.UUID, quantity: int
) -> CartItem:
    """
    加入购物车

    已存在同一商品时累加数量（user_id + product_id 唯一）。

    Raises:
        AppError: 商品不存在时抛出 404101
    """
    if not session.get(Product, product_id):
        raise product_not_found()

    item = session.exec(
        select(CartItem).where(CartItem.user_id == user_id, CartItem.product_id == product_id)
    ).first()
    if item:
        item.quantity += quantity
    else:
        item = CartItem(user_id=user_id, product_id=product_id, quantity=quantity)
    session.add(item)
    session.commit()
    session.refresh(item)
    return item


def _get_owned(*, session: Session, item_id: uuid.UUID, user_id: uuid.UUID) -> CartItem | None:
    return session.exec(
        select(CartItem).where(CartItem.id == item_id, CartItem.user_id == user_id)
    ).first()


def update_quantity(
    *, session: Session, item_id: uuid.UUID, user_id: uuid.UUID, quantity: int
) -> CartItem:
    item = _get_owned(session=session, item_id=item_id, user_id=user_id)
    if not item:
        raise cart_item_not_found()
    item.quantity = quantity
    session.add(item)
    session.commit()
    session.refresh(item)
    return item


def remove_item(*, session: Session, item_id: uuid.UUID, user_id: uuid.UUID) -> None:
    """删除购物车条目，条目不存在时静默返回"""
    item = _get_owned(session=session, item_id=item_id, user_id=user_id)
    if item:
        session.delete(item)
        session.commit()
