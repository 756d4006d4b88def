"""
订单路由模块

处理订单相关的 API 端点，包括：
- 下单（购物车转订单，并按支付方式返回支付指令）
- 查询订单列表（分页）
- 查询单个订单详情
- 模拟支付
- 删除订单
"""
from __future__ import annotations

import uuid
from collections.abc import Sequence

from fastapi import APIRouter, Query  # FastAPI 路由和查询参数

from app import crud
from app.api.deps import ClientIp, CurrentUser, GatewaysDep, SessionDep  # 依赖注入
from app.api.schemas import (
    ApiEnvelope,
    OrderData,
    OrderItemData,
    OrdersData,
    PayOrderRequest,
    PlaceOrderData,
    PlaceOrderRequest,
    ProductSummary,
)
from app.models import Order, OrderItem, Product
from app.services import checkout_service, reconciliation

router = APIRouter(prefix="/orders", tags=["orders"])


def _to_order_data(
    order: Order,
    items: Sequence[OrderItem] = (),
    products: dict[uuid.UUID, Product] | None = None,
) -> OrderData:
    """
    将订单模型转换为响应数据模型

    Args:
        order: 订单数据库模型
        items: 订单明细
        products: 明细关联的商品（用于展示名称和图片，商品已删除时为 None）
    """
    products = products or {}
    return OrderData(
        id=order.id,
        user_id=order.user_id,
        total_amount=order.total_amount,
        status=order.status,
        payment_method=order.payment_method,
        created_at=order.created_at,
        items=[
            OrderItemData(
                id=item.id,
                product_id=item.product_id,
                quantity=item.quantity,
                unit_price=item.unit_price,
                product=_summary(products.get(item.product_id)),
            )
            for item in items
        ],
    )


def _summary(product: Product | None) -> ProductSummary | None:
    if product is None:
        return None
    return ProductSummary(id=product.id, name=product.name, image=product.image, price=product.price)


@router.post("", response_model=ApiEnvelope, status_code=201)
def place_order(
    session: SessionDep,
    current_user: CurrentUser,
    gateways: GatewaysDep,
    client_ip: ClientIp,
    body: PlaceOrderRequest,
) -> ApiEnvelope:
    """
    下单

    请求路径: POST /api/v1/orders

    请求示例：
        {"payment_method": "vnpay"}

    响应示例：
        {
            "code": 0,
            "message": "Order placed",
            "data": {
                "id": "...",
                "order": {...},
                "payment": {"provider": "vnpay", "redirect_url": "https://...", "payload": null}
            }
        }

    Raises:
        AppError: 购物车为空 400101，商品不可用 400102，网关调用失败 502001
    """
    result = checkout_service.place_order(
        session=session,
        user_id=current_user.id,
        payment_method=body.payment_method,
        gateways=gateways,
        client_ip=client_ip,
    )
    products = crud.product.get_many(session=session, product_ids=(i.product_id for i in result.items))
    return ApiEnvelope(
        message="Order placed",
        data=PlaceOrderData(
            id=result.order.id,
            order=_to_order_data(result.order, result.items, products),
            payment=result.payment,
        ),
    )


@router.get("", response_model=ApiEnvelope)
def list_orders(
    session: SessionDep,
    current_user: CurrentUser,
    page: int = Query(default=1, ge=1),  # 页码，从 1 开始
    page_size: int = Query(default=20, ge=1, le=100),  # 每页数量，最大 100
) -> ApiEnvelope:
    """
    查询订单列表（分页，按创建时间倒序，不含明细）

    请求路径: GET /api/v1/orders?page=1&page_size=20
    """
    rows, count = crud.order.list_for_user(
        session=session, user_id=current_user.id, page=page, page_size=page_size
    )
    return ApiEnvelope(data=OrdersData(data=[_to_order_data(o) for o in rows], count=count))


@router.get("/{order_id}", response_model=ApiEnvelope)
def get_order(session: SessionDep, current_user: CurrentUser, order_id: uuid.UUID) -> ApiEnvelope:
    """
    查询单个订单详情（含明细）

    Raises:
        AppError: 订单不存在或不属于当前用户时抛出 404201
    """
    order = crud.order.get_owned(session=session, order_id=order_id, user_id=current_user.id)
    items = crud.order.list_items(session=session, order_id=order.id)
    products = crud.product.get_many(session=session, product_ids=(i.product_id for i in items))
    return ApiEnvelope(data=_to_order_data(order, items, products))


@router.post("/{order_id}/pay", response_model=ApiEnvelope)
def pay_order(
    session: SessionDep,
    current_user: CurrentUser,
    order_id: uuid.UUID,
    body: PayOrderRequest | None = None,
) -> ApiEnvelope:
    """
    模拟支付（不经过网关，直接把订单标记为已支付）

    Raises:
        AppError: 订单不存在 404201，已支付 409001
    """
    order = reconciliation.simulate_payment(
        session=session, order_id=order_id, user_id=current_user.id
    )
    provider = body.provider if body else "manual"
    return ApiEnvelope(
        message=f"Payment completed via {provider}",
        data=_to_order_data(order),
    )


@router.delete("/{order_id}", response_model=ApiEnvelope)
def delete_order(session: SessionDep, current_user: CurrentUser, order_id: uuid.UUID) -> ApiEnvelope:
    """
    删除订单（连同明细）

    Raises:
        AppError: 订单不存在或不属于当前用户时抛出 404201
    """
    crud.order.delete_owned(session=session, order_id=order_id, user_id=current_user.id)
    return ApiEnvelope(message="Order deleted")
