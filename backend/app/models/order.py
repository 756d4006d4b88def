"""
订单模型模块

定义订单与订单明细的数据库模型。
"""
import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String, Uuid
from sqlmodel import Field, SQLModel

from app.enums import OrderStatus, PaymentMethod

from .base import utc_now, uuid_pk


class Order(SQLModel, table=True):
    """
    订单模型

    id 的 32 位十六进制形式（uuid.hex）作为支付网关的关联 ID，
    回调时据此找回订单。

    字段说明：
    - id: 主键（UUID）
    - user_id: 下单用户
    - total_amount: 订单总额，等于下单时各明细 单价 x 数量 之和
    - status: 订单状态（pending / paid / failed）
    - payment_method: 下单时选择的支付方式（手动支付为空）
    - created_at: 创建时间
    - updated_at: 更新时间
    """
    __tablename__ = "orders"
    id: uuid.UUID = uuid_pk()
    user_id: uuid.UUID = Field(
        sa_column=Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    )
    total_amount: Decimal = Field(
        default=Decimal("0.00"),
        sa_column=Column(Numeric(12, 2), nullable=False),
    )
    status: OrderStatus = Field(
        default=OrderStatus.pending, sa_column=Column(String(16), nullable=False)
    )
    payment_method: PaymentMethod | None = Field(
        default=None, sa_column=Column(String(16), nullable=True)
    )

    created_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(DateTime(timezone=True), index=True, nullable=False),
    )
    updated_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )


class OrderItem(SQLModel, table=True):
    """
    订单明细

    unit_price 是下单时的商品价格快照。
    position 记录明细在订单中的顺序。
    """
    __tablename__ = "order_items"
    id: uuid.UUID = uuid_pk()
    order_id: uuid.UUID = Field(
        sa_column=Column(Uuid, ForeignKey("orders.id", ondelete="CASCADE"), index=True, nullable=False)
    )
    product_id: uuid.UUID = Field(sa_column=Column(Uuid, nullable=False))
    quantity: int = Field(sa_column=Column(Integer, nullable=False))
    unit_price: Decimal = Field(sa_column=Column(Numeric(12, 2), nullable=False))
    position: int = Field(default=0)
