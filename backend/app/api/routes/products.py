"""
商品路由模块

- 商品列表（分页，按名称搜索）与详情：公开
- 创建 / 更新 / 删除：需要登录
"""
from __future__ import annotations

import math
import uuid

from fastapi import APIRouter, Query

from app import crud
from app.api.deps import CurrentUser, SessionDep
from app.api.errors import product_not_found
from app.api.schemas import (
    ApiEnvelope,
    ProductCreateRequest,
    ProductData,
    ProductsData,
    ProductUpdateRequest,
)
from app.models import Product

router = APIRouter(prefix="/products", tags=["products"])


def _to_product_data(product: Product) -> ProductData:
    return ProductData(
        id=product.id,
        name=product.name,
        description=product.description,
        price=product.price,
        image=product.image,
        created_at=product.created_at,
        updated_at=product.updated_at,
    )


@router.get("", response_model=ApiEnvelope)
def list_products(
    session: SessionDep,
    q: str | None = Query(default=None, max_length=200),  # 名称关键字
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=12, ge=1, le=100),
) -> ApiEnvelope:
    """
    商品列表

    请求路径: GET /api/v1/products?q=shirt&page=1&limit=12
    """
    rows, total = crud.product.list_products(session=session, q=q, page=page, limit=limit)
    return ApiEnvelope(
        data=ProductsData(
            data=[_to_product_data(p) for p in rows],
            total=total,
            page=page,
            pages=math.ceil(total / limit),
        )
    )


@router.get("/{product_id}", response_model=ApiEnvelope)
def get_product(session: SessionDep, product_id: uuid.UUID) -> ApiEnvelope:
    product = crud.product.get(session=session, product_id=product_id)
    if not product:
        raise product_not_found()
    return ApiEnvelope(data=_to_product_data(product))


@router.post("", response_model=ApiEnvelope, status_code=201)
def create_product(
    session: SessionDep, current_user: CurrentUser, body: ProductCreateRequest
) -> ApiEnvelope:
    product = crud.product.create(
        session=session,
        name=body.name,
        description=body.description,
        price=body.price,
        image=body.image or None,
    )
    return ApiEnvelope(data=_to_product_data(product))


@router.put("/{product_id}", response_model=ApiEnvelope)
def update_product(
    session: SessionDep,
    current_user: CurrentUser,
    product_id: uuid.UUID,
    body: ProductUpdateRequest,
) -> ApiEnvelope:
    product = crud.product.get(session=session, product_id=product_id)
    if not product:
        raise product_not_found()
    product = crud.product.update(
        session=session,
        product=product,
        name=body.name,
        description=body.description,
        price=body.price,
        image=body.image,
    )
    return ApiEnvelope(data=_to_product_data(product))


@router.delete("/{product_id}", response_model=ApiEnvelope)
def delete_product(
    session: SessionDep, current_user: CurrentUser, product_id: uuid.UUID
) -> ApiEnvelope:
    product = crud.product.get(session=session, product_id=product_id)
    if not product:
        raise product_not_found()
    crud.product.delete(session=session, product=product)
    return ApiEnvelope(data={"ok": True})
