"""
自定义异常模块

定义应用特定的异常类，用于统一的错误处理。
所有业务异常都使用 AppError，在 main.py 中有统一的异常处理器。

错误码约定：HTTP 状态码 * 1000 + 序号，例如 404201 表示订单不存在。
"""
from __future__ import annotations

import uuid
from typing import Any


class AppError(Exception):
    """
    应用自定义异常类

    用于业务逻辑中的错误处理，包含：
    - code: 业务错误码（用于前端区分不同错误）
    - message: 错误消息（用户友好的提示）
    - status_code: HTTP 状态码（400, 404, 500 等）
    - data: 附加数据（可选，例如网关失败时已创建的订单 ID）

    使用示例：
        raise AppError(code=404201, message="Order not found", status_code=404)
    """

    def __init__(
        self,
        *,
        code: int,
        message: str,
        status_code: int = 400,
        data: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.status_code = status_code
        self.data = data


def empty_cart() -> AppError:
    """购物车为空，无法下单"""
    return AppError(code=400101, message="Cart is empty", status_code=400)


def product_unavailable(product_id: uuid.UUID) -> AppError:
    """购物车中引用的商品已被删除"""
    return AppError(
        code=400102,
        message=f"Product with ID {product_id} is no longer available.",
        status_code=400,
    )


def invalid_callback_payload() -> AppError:
    """回调签名正确但内容无法解析"""
    return AppError(code=400201, message="Bad request", status_code=400)


def signature_invalid() -> AppError:
    """
    回调验签失败

    不返回任何细节，只给出 Unauthorized。
    """
    return AppError(code=401101, message="Unauthorized", status_code=401)


def not_found(what: str, code: int) -> AppError:
    return AppError(code=code, message=f"{what} not found", status_code=404)


def order_not_found() -> AppError:
    return not_found("Order", 404201)


def product_not_found() -> AppError:
    return not_found("Product", 404101)


def cart_item_not_found() -> AppError:
    return not_found("Cart item", 404301)


def order_already_paid() -> AppError:
    """订单已支付，拒绝再次支付"""
    return AppError(code=409001, message="Order already paid", status_code=409)


def gateway_not_configured(provider: str) -> AppError:
    return AppError(
        code=500201, message=f"{provider} gateway is not configured", status_code=500
    )


def upstream_gateway_error(provider: str, order_id: uuid.UUID | None = None) -> AppError:
    """
    支付网关 API 调用失败

    订单已经创建且不会回滚，data 中带上订单 ID 方便前端重试支付。
    """
    data = {"order_id": str(order_id)} if order_id else None
    return AppError(
        code=502001,
        message=f"Payment provider {provider} request failed",
        status_code=502,
        data=data,
    )
