"""
认证路由模块

邮箱 + 密码注册与登录，登录成功返回 JWT。
"""
from __future__ import annotations

from datetime import timedelta  # 时间间隔

from fastapi import APIRouter  # FastAPI 路由器

from app import crud  # 数据库操作
from app.api.deps import CurrentUser, SessionDep
from app.api.errors import AppError
from app.api.schemas import (
    ApiEnvelope,
    AuthLoginData,
    LoginRequest,
    RegisterRequest,
    UserPublic,
)
from app.core import security  # 安全模块（JWT）
from app.core.config import settings

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=ApiEnvelope)
def register(session: SessionDep, body: RegisterRequest) -> ApiEnvelope:
    """
    注册

    请求路径: POST /api/v1/auth/register

    Raises:
        AppError: 邮箱已注册时抛出 400001
    """
    if crud.get_user_by_email(session=session, email=body.email):
        raise AppError(code=400001, message="Email already registered", status_code=400)
    user = crud.create_user(session=session, email=body.email, password=body.password)
    return ApiEnvelope(
        data=UserPublic(id=user.id, email=user.email, created_at=user.created_at)
    )


@router.post("/login", response_model=ApiEnvelope)
def login(session: SessionDep, body: LoginRequest) -> ApiEnvelope:
    """
    登录

    请求路径: POST /api/v1/auth/login

    响应示例：
        {
            "code": 0,
            "message": "success",
            "data": {
                "access_token": "eyJ0eXAiOiJKV1QiLCJhbGc...",
                "token_type": "bearer",
                "expires_in": 604800
            }
        }

    Raises:
        AppError: 邮箱或密码错误时抛出 401001
    """
    user = crud.authenticate_user(session=session, email=body.email, password=body.password)
    if not user:
        raise AppError(code=401001, message="Invalid credentials", status_code=401)

    access_token_expires = timedelta(days=settings.ACCESS_TOKEN_EXPIRE_DAYS)
    token = security.create_access_token(user.id, expires_delta=access_token_expires)
    return ApiEnvelope(
        data=AuthLoginData(
            access_token=token,
            expires_in=int(access_token_expires.total_seconds()),
        )
    )


@router.get("/me", response_model=ApiEnvelope)
def me(current_user: CurrentUser) -> ApiEnvelope:
    """当前登录用户信息"""
    return ApiEnvelope(
        data=UserPublic(
            id=current_user.id, email=current_user.email, created_at=current_user.created_at
        )
    )
