"""
购物车路由模块

所有接口都只操作当前登录用户自己的购物车。
"""
from __future__ import annotations

import uuid
from decimal import Decimal

from fastapi import APIRouter

from app import crud
from app.api.deps import CurrentUser, SessionDep
from app.api.schemas import (
    ApiEnvelope,
    CartAddRequest,
    CartData,
    CartLineData,
    CartUpdateRequest,
    ProductSummary,
)

router = APIRouter(prefix="/cart", tags=["cart"])


@router.get("", response_model=ApiEnvelope)
def get_cart(session: SessionDep, current_user: CurrentUser) -> ApiEnvelope:
    """
    购物车详情

    商品已被删除的条目 product 为 None，小计按 0 计算。
    """
    items = crud.cart.list_items(session=session, user_id=current_user.id)
    products = crud.product.get_many(session=session, product_ids=(c.product_id for c in items))

    lines: list[CartLineData] = []
    total = Decimal("0.00")
    for item in items:
        product = products.get(item.product_id)
        line_total = product.price * item.quantity if product else Decimal("0.00")
        total += line_total
        lines.append(
            CartLineData(
                id=item.id,
                product=ProductSummary(
                    id=product.id, name=product.name, image=product.image, price=product.price
                )
                if product
                else None,
                quantity=item.quantity,
                line_total=line_total,
            )
        )
    return ApiEnvelope(data=CartData(items=lines, total=total))


@router.post("", response_model=ApiEnvelope)
def add_to_cart(session: SessionDep, current_user: CurrentUser, body: CartAddRequest) -> ApiEnvelope:
    item = crud.cart.add_item(
        session=session,
        user_id=current_user.id,
        product_id=body.product_id,
        quantity=body.quantity,
    )
    return ApiEnvelope(
        message="Added to cart",
        data={"id": str(item.id), "quantity": item.quantity},
    )


@router.put("/{item_id}", response_model=ApiEnvelope)
def update_cart_item(
    session: SessionDep, current_user: CurrentUser, item_id: uuid.UUID, body: CartUpdateRequest
) -> ApiEnvelope:
    item = crud.cart.update_quantity(
        session=session, item_id=item_id, user_id=current_user.id, quantity=body.quantity
    )
    return ApiEnvelope(data={"id": str(item.id), "quantity": item.quantity})


@router.delete("/{item_id}", response_model=ApiEnvelope)
def remove_cart_item(session: SessionDep, current_user: CurrentUser, item_id: uuid.UUID) -> ApiEnvelope:
    crud.cart.remove_item(session=session, item_id=item_id, user_id=current_user.id)
    return ApiEnvelope(message="Removed from cart")
