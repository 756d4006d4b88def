"""
初始数据脚本

创建缺失的表，并在商品表为空时写入一组演示商品，
方便本地启动后直接浏览目录、加购和下单。

执行时机：
- 在 backend_pre_start 确认数据库就绪之后（python -m app.initial_data）
"""
import logging
from decimal import Decimal

from sqlmodel import Session, func, select

from app.core.db import engine, init_db
from app.models import Product

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# (名称, 描述, 价格)
DEMO_PRODUCTS: list[tuple[str, str, str]] = [
    ("Classic White Tee", "100% cotton crew neck t-shirt", "10.00"),
    ("Denim Jacket", "Washed blue denim jacket with button front", "45.50"),
    ("Slim Chinos", "Stretch cotton chinos in khaki", "29.90"),
    ("Wool Beanie", "Ribbed merino wool beanie", "5.00"),
    ("Running Sneakers", "Lightweight mesh running shoes", "59.99"),
    ("Linen Shirt", "Relaxed fit linen shirt for summer", "24.00"),
]


def seed_products(session: Session) -> int:
    """
    写入演示商品

    商品表非空时不做任何修改。

    Returns:
        新写入的商品数量
    """
    existing = session.exec(select(func.count()).select_from(Product)).one()
    if existing:
        logger.info(f"Catalog already has {existing} products, skipping seed")
        return 0
    for name, description, price in DEMO_PRODUCTS:
        session.add(Product(name=name, description=description, price=Decimal(price)))
    session.commit()
    return len(DEMO_PRODUCTS)


def init() -> None:
    with Session(engine) as session:
        init_db(session)
        created = seed_products(session)
        logger.info(f"Seeded {created} demo products")


def main() -> None:
    logger.info("Creating initial data")
    init()
    logger.info("Initial data created")


if __name__ == "__main__":  # pragma: no cover
    main()
