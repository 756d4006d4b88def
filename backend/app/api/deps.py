"""
FastAPI 依赖注入模块

提供可复用的依赖项，用于路由处理函数中。

关键概念：
- Depends: FastAPI 的依赖注入装饰器
- Generator: 用于创建需要清理的资源（如数据库会话）
- HTTPBearer: 从请求头 Authorization: Bearer <token> 中提取 token

支付网关适配器也通过依赖注入提供，测试时可以用 dependency_overrides 替换。
"""
import uuid
from collections.abc import Generator  # 生成器类型，用于资源管理
from typing import Annotated  # 类型注解，用于依赖注入

import jwt  # JWT 解析库
from fastapi import Depends, HTTPException, Request, status  # FastAPI 核心功能
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer  # Bearer 方案
from jwt.exceptions import InvalidTokenError  # JWT 无效异常
from pydantic import ValidationError  # Pydantic 验证异常
from sqlmodel import Session  # 数据库会话

from app.api.schemas import TokenPayload
from app.core import security
from app.core.config import settings
from app.core.db import engine
from app.enums import PaymentMethod
from app.integrations.base import PaymentGateway
from app.integrations.payos import PayOSGateway
from app.integrations.stripe_gateway import StripeGateway
from app.integrations.vnpay import VnPayGateway
from app.models import User

reusable_oauth2 = HTTPBearer()


def get_db() -> Generator[Session, None, None]:
    """
    获取数据库会话（依赖注入）

    每个请求一个会话，请求结束后自动关闭。

    Yields:
        Session: 数据库会话对象
    """
    with Session(engine) as session:
        yield session


SessionDep = Annotated[Session, Depends(get_db)]  # 数据库会话依赖
TokenDep = Annotated[
    HTTPAuthorizationCredentials, Depends(reusable_oauth2)
]  # JWT token 依赖


def _unauthorized(detail: str = "Could not validate credentials") -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


def get_current_user(session: SessionDep, token: TokenDep) -> User:
    """
    获取当前登录用户（依赖注入）

    从 JWT token 中解析用户 ID，并查询数据库获取用户对象。

    Raises:
        HTTPException: 当 token 无效、用户不存在时返回 401
    """
    try:
        payload = jwt.decode(
            token.credentials, settings.SECRET_KEY, algorithms=[security.ALGORITHM]
        )
        token_data = TokenPayload(**payload)
    except (InvalidTokenError, ValidationError):
        raise _unauthorized()
    if not token_data.sub:
        raise _unauthorized()
    try:
        user_id = uuid.UUID(token_data.sub)
    except ValueError:
        raise _unauthorized()
    user = session.get(User, user_id)
    if not user:
        raise _unauthorized("User not found")
    return user


CurrentUser = Annotated[User, Depends(get_current_user)]


def get_client_ip(request: Request) -> str:
    """客户端 IP：优先取 X-Forwarded-For 的第一个地址"""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    if request.client and request.client.host:
        return request.client.host
    return "127.0.0.1"


async def get_raw_body(request: Request) -> bytes:
    """读取原始请求体（验签需要未经解析的字节）"""
    return await request.body()


ClientIp = Annotated[str, Depends(get_client_ip)]
RawBody = Annotated[bytes, Depends(get_raw_body)]


# ============================================================
# 支付网关
# ============================================================


def get_stripe_gateway() -> StripeGateway:
    return StripeGateway(settings.stripe_config)


def get_vnpay_gateway() -> VnPayGateway:
    return VnPayGateway(settings.vnpay_config)


def get_payos_gateway() -> PayOSGateway:
    return PayOSGateway(settings.payos_config)


StripeGatewayDep = Annotated[StripeGateway, Depends(get_stripe_gateway)]
VnPayGatewayDep = Annotated[VnPayGateway, Depends(get_vnpay_gateway)]
PayOSGatewayDep = Annotated[PayOSGateway, Depends(get_payos_gateway)]


def get_gateways(
    stripe_gateway: StripeGatewayDep,
    vnpay_gateway: VnPayGatewayDep,
    payos_gateway: PayOSGatewayDep,
) -> dict[PaymentMethod, PaymentGateway]:
    """按支付方式索引的网关适配器"""
    return {
        PaymentMethod.stripe: stripe_gateway,
        PaymentMethod.vnpay: vnpay_gateway,
        PaymentMethod.payos: payos_gateway,
    }


GatewaysDep = Annotated[dict[PaymentMethod, PaymentGateway], Depends(get_gateways)]
