"""商品 CRUD 操作"""
import uuid
from collections.abc import Iterable
from decimal import Decimal

from sqlmodel import Session, col, func, select

from app.models import Product, utc_now


def get(*, session: Session, product_id: uuid.UUID) -> Product | None:
    return session.get(Product, product_id)


def get_many(*, session: Session, product_ids: Iterable[uuid.UUID]) -> dict[uuid.UUID, Product]:
    """按 ID 批量查询商品，返回 {id: 商品}，不存在的 ID 不出现在结果中"""
    ids = list(set(product_ids))
    if not ids:
        return {}
    rows = session.exec(select(Product).where(col(Product.id).in_(ids))).all()
    return {p.id: p for p in rows}


def list_products(
    *, session: Session, q: str | None, page: int, limit: int
) -> tuple[list[Product], int]:
    """
    分页查询商品（按创建时间倒序）

    q 不为空时按名称模糊匹配（不区分大小写）。

    Returns:
        (当前页商品, 总数)
    """
    where = []
    if q and q.strip():
        where.append(col(Product.name).ilike(f"%{q.strip()}%"))

    count_stmt = select(func.count()).select_from(Product).where(*where)
    total = session.exec(count_stmt).one()

    stmt = (
        select(Product)
        .where(*where)
        .order_by(col(Product.created_at).desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    return list(session.exec(stmt).all()), total


def create(
    *, session: Session, name: str, description: str, price: Decimal, image: str | None
) -> Product:
    product = Product(name=name, description=description, price=price, image=image)
    session.add(product)
    session.commit()
    session.refresh(product)
    return product


def update(
    *,
    session: Session,
    product: Product,
    name: str | None = None,
    description: str | None = None,
    price: Decimal | None = None,
    image: str | None = None,
) -> Product:
    """只更新传入的字段；image 传空字符串表示清除图片"""
    if name is not None:
        product.name = name
    if description is not None:
        product.description = description
    if price is not None:
        product.price = price
    if image is not None:
        product.image = image or None
    product.updated_at = utc_now()
    session.add(product)
    session.commit()
    session.refresh(product)
    return product


def delete(*, session: Session, product: Product) -> None:
    session.delete(product)
    session.commit()
