"""CRUD 操作模块"""
from . import cart, order, product
from .user import authenticate as authenticate_user
from .user import create as create_user
from .user import get_by_email as get_user_by_email

__all__ = [
    "cart",
    "order",
    "product",
    "authenticate_user",
    "create_user",
    "get_user_by_email",
]
