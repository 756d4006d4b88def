"""
API 路由聚合模块

将所有业务路由模块聚合到一个统一的 router 中。
这个 router 会被注册到主应用（app/main.py）上。

路由模块说明：
- auth: 认证相关（注册、登录）
- products: 商品目录
- cart: 购物车
- orders: 订单（下单、查询、模拟支付、删除）
- payments: 支付网关回调（Stripe、VNPAY、PayOS）
- utils: 工具相关（健康检查等）
"""
from fastapi import APIRouter

from app.api.routes import (
    auth,  # 认证路由
    cart,  # 购物车路由
    orders,  # 订单路由
    payments,  # 支付回调路由
    products,  # 商品路由
    utils,  # 工具路由
)

# 创建主 API 路由器
api_router = APIRouter()

# 每个模块的路径前缀在各自的 router 中定义
api_router.include_router(auth.router)  # /auth/*
api_router.include_router(products.router)  # /products/*
api_router.include_router(cart.router)  # /cart/*
api_router.include_router(orders.router)  # /orders/*
api_router.include_router(payments.router)  # /payments/*
api_router.include_router(utils.router)  # /utils/*
