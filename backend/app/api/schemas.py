"""
API 请求/响应数据模型（Schema）

定义所有 API 接口的请求和响应数据结构。
使用 Pydantic 进行数据验证和序列化。
这些模型不是数据库表，只用于 API 数据交换，每个接口都有明确的响应结构。
"""
from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal  # 精确数值类型，用于金额
from typing import Any  # 任意类型
from urllib.parse import urlparse

from pydantic import BaseModel, EmailStr, Field, field_validator  # Pydantic 核心类

from app.enums import OrderStatus, PaymentMethod
from app.integrations.base import PaymentDirective

# ============================================================
# 通用响应模型
# ============================================================


class TokenPayload(BaseModel):
    """
    JWT Token 载荷模型

    sub (subject) 存储用户 ID。
    """
    sub: str | None = None


class ApiEnvelope(BaseModel):
    """
    API 统一响应格式

    - code: 状态码（0 表示成功，非 0 表示错误）
    - message: 消息（成功时为 "success"，错误时为错误描述）
    - data: 数据

    示例响应：
        {"code": 0, "message": "success", "data": {...}}
        {"code": 400101, "message": "Cart is empty", "data": None}
    """
    code: int = 0
    message: str = "success"
    data: Any | None = None


class CallbackAck(BaseModel):
    """网关回调确认（无论是否发生状态变更都返回）"""
    received: bool = True


# ============================================================
# 认证
# ============================================================


class RegisterRequest(BaseModel):
    email: EmailStr = Field(max_length=320)
    password: str = Field(min_length=6, max_length=128)


class LoginRequest(BaseModel):
    email: EmailStr = Field(max_length=320)
    password: str = Field(min_length=1, max_length=128)


class AuthLoginData(BaseModel):
    """登录成功后返回的 token 信息"""
    access_token: str
    token_type: str = "bearer"
    expires_in: int  # token 过期时间（秒）


class UserPublic(BaseModel):
    id: uuid.UUID
    email: str
    created_at: datetime


# ============================================================
# 商品
# ============================================================


def _not_blank(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    if not value:
        raise ValueError("must not be blank")
    return value


def _http_url(value: str | None) -> str | None:
    """图片地址必须是 http/https 绝对地址；空字符串表示不设置"""
    if value is None:
        return None
    value = value.strip()
    if not value:
        return ""
    parsed = urlparse(value)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError("Image URL format is invalid")
    return value


class ProductCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    description: str = Field(min_length=1, max_length=1000)
    price: Decimal = Field(ge=0, lt=1_000_000_000, decimal_places=2)
    image: str | None = Field(default=None, max_length=500)

    @field_validator("name", "description")
    @classmethod
    def check_not_blank(cls, v: str | None) -> str | None:
        return _not_blank(v)

    @field_validator("image")
    @classmethod
    def check_image(cls, v: str | None) -> str | None:
        return _http_url(v)


class ProductUpdateRequest(BaseModel):
    name: str | None = Field(default=None, max_length=200)
    description: str | None = Field(default=None, max_length=1000)
    price: Decimal | None = Field(default=None, ge=0, lt=1_000_000_000, decimal_places=2)
    image: str | None = Field(default=None, max_length=500)

    @field_validator("name", "description")
    @classmethod
    def check_not_blank(cls, v: str | None) -> str | None:
        return _not_blank(v)

    @field_validator("image")
    @classmethod
    def check_image(cls, v: str | None) -> str | None:
        return _http_url(v)


class ProductData(BaseModel):
    id: uuid.UUID
    name: str
    description: str
    price: Decimal
    image: str | None = None
    created_at: datetime
    updated_at: datetime


class ProductsData(BaseModel):
    """商品分页列表"""
    data: list[ProductData]
    total: int
    page: int
    pages: int


class ProductSummary(BaseModel):
    """购物车 / 订单明细中附带的商品信息"""
    id: uuid.UUID
    name: str
    image: str | None = None
    price: Decimal


# ============================================================
# 购物车
# ============================================================


class CartAddRequest(BaseModel):
    product_id: uuid.UUID
    quantity: int = Field(default=1, gt=0, le=100)


class CartUpdateRequest(BaseModel):
    quantity: int = Field(gt=0, le=100)


class CartLineData(BaseModel):
    id: uuid.UUID
    product: ProductSummary | None = None  # 商品已删除时为 None
    quantity: int
    line_total: Decimal


class CartData(BaseModel):
    items: list[CartLineData]
    total: Decimal


# ============================================================
# 订单
# ============================================================


class PlaceOrderRequest(BaseModel):
    """
    下单请求

    payment_method 可选，未识别或未提供时走手动支付。
    """
    payment_method: str | None = Field(default=None, max_length=50)


class PayOrderRequest(BaseModel):
    provider: str = Field(default="manual", min_length=1, max_length=50)


class OrderItemData(BaseModel):
    id: uuid.UUID
    product_id: uuid.UUID
    quantity: int
    unit_price: Decimal
    product: ProductSummary | None = None


class OrderData(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    total_amount: Decimal
    status: OrderStatus
    payment_method: PaymentMethod | None = None
    created_at: datetime
    items: list[OrderItemData] = []


class OrdersData(BaseModel):
    data: list[OrderData]
    count: int


class PlaceOrderData(BaseModel):
    """下单响应：订单与支付指令"""
    id: uuid.UUID
    order: OrderData
    payment: PaymentDirective | None = None
