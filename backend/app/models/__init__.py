"""
数据库模型定义模块

本模块使用 SQLModel 定义所有数据库表结构。

模型按功能拆分：
- user.py: 用户模型
- product.py: 商品模型
- cart.py: 购物车模型
- order.py: 订单与订单明细模型
"""
from sqlmodel import SQLModel

from app.enums import OrderStatus, PaymentMethod

from .base import utc_now
from .cart import CartItem
from .order import Order, OrderItem
from .product import Product
from .user import User

__all__ = [
    "SQLModel",
    "utc_now",
    "User",
    "Product",
    "CartItem",
    "Order",
    "OrderItem",
    "OrderStatus",
    "PaymentMethod",
]
