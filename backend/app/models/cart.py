"""
购物车模型模块
"""
import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, UniqueConstraint, Uuid
from sqlmodel import Field, SQLModel

from .base import utc_now, uuid_pk


class CartItem(SQLModel, table=True):
    """
    购物车条目

    同一用户的同一商品只有一行（user_id + product_id 唯一），重复加购累加数量。
    product_id 不设外键：商品被删除后条目仍保留，结算时报商品不可用。
    """
    __tablename__ = "cart_items"
    __table_args__ = (UniqueConstraint("user_id", "product_id", name="uq_cart_user_product"),)

    id: uuid.UUID = uuid_pk()
    user_id: uuid.UUID = Field(
        sa_column=Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    )
    product_id: uuid.UUID = Field(sa_column=Column(Uuid, nullable=False))
    quantity: int = Field(default=1)

    created_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )
