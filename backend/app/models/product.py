"""
商品模型模块
"""
import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import Column, DateTime, Numeric, String
from sqlmodel import Field, SQLModel

from .base import utc_now, uuid_pk


class Product(SQLModel, table=True):
    """
    商品模型

    price 是当前售价，下单时会被复制到订单明细中，之后改价不影响已有订单。
    """
    __tablename__ = "products"
    id: uuid.UUID = uuid_pk()
    name: str = Field(sa_column=Column(String(200), index=True, nullable=False))
    description: str = Field(sa_column=Column(String(1000), nullable=False))
    price: Decimal = Field(
        default=Decimal("0.00"),
        sa_column=Column(Numeric(12, 2), nullable=False),
    )
    image: str | None = Field(default=None, max_length=500)

    created_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(DateTime(timezone=True), index=True, nullable=False),
    )
    updated_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )
