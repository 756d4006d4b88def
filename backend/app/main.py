"""
FastAPI 应用入口

- 创建应用并挂载 /api/v1 路由
- 统一错误响应格式：{"code": int, "message": str, "data": obj | null}
- X-Correlation-Id 中间件、CORS、Sentry

运行方式：
    uvicorn app.main:app --reload
    fastapi dev app/main.py
"""
import logging
import uuid
from typing import Any

import sentry_sdk  # Sentry 错误监控
from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.routing import APIRoute

from app.api.errors import AppError
from app.api.main import api_router
from app.core.config import settings

logger = logging.getLogger(__name__)

CORRELATION_ID_HEADER = "X-Correlation-Id"


def custom_generate_unique_id(route: APIRoute) -> str:
    """OpenAPI 操作 ID：{tag}-{函数名}，例如 orders-place_order"""
    return f"{route.tags[0]}-{route.name}"


if settings.SENTRY_DSN and settings.ENVIRONMENT != "local":  # pragma: no cover
    sentry_sdk.init(dsn=str(settings.SENTRY_DSN), enable_tracing=True)

app = FastAPI(
    title=settings.PROJECT_NAME,
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    generate_unique_id_function=custom_generate_unique_id,
)


def _error_response(status_code: int, code: Any, message: str, data: Any = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"code": code, "message": message, "data": data},
    )


@app.exception_handler(AppError)
async def app_error_handler(_: Request, exc: AppError) -> JSONResponse:
    """
    业务异常处理器

    5xx 错误记录日志；验签失败等 4xx 错误已由抛出方记录。
    """
    if exc.status_code >= 500:
        logger.error(f"AppError {exc.code}: {exc.message} data={exc.data}")
    return _error_response(exc.status_code, exc.code, exc.message, exc.data)


@app.exception_handler(HTTPException)
async def http_error_handler(_: Request, exc: HTTPException) -> JSONResponse:
    """
    HTTPException 处理器

    detail 为 {"code", "message"} 字典时直接使用，否则错误码为 状态码 * 1000。
    """
    if isinstance(exc.detail, dict) and {"code", "message"} <= set(exc.detail.keys()):
        return _error_response(exc.status_code, exc.detail.get("code"), str(exc.detail.get("message")))
    return _error_response(exc.status_code, exc.status_code * 1000, str(exc.detail))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
    """请求参数校验失败：422 + 详细错误列表"""
    return _error_response(
        422,
        422000,
        "Validation error",
        {"errors": _jsonable_errors(exc)},
    )


def _jsonable_errors(exc: RequestValidationError) -> list[dict[str, Any]]:
    """校验错误里的 ctx 可能包含异常对象，转成字符串后才能序列化"""
    errors = []
    for error in exc.errors():
        error = dict(error)
        if "ctx" in error:
            error["ctx"] = {k: str(v) for k, v in error["ctx"].items()}
        errors.append(error)
    return errors


@app.middleware("http")
async def correlation_id_middleware(request: Request, call_next):
    """
    请求关联 ID

    沿用请求头中的 X-Correlation-Id，没有则生成一个，并写回响应头。
    """
    correlation_id = request.headers.get(CORRELATION_ID_HEADER, "").strip() or str(uuid.uuid4())
    request.state.correlation_id = correlation_id
    response = await call_next(request)
    response.headers[CORRELATION_ID_HEADER] = correlation_id
    return response


if settings.all_cors_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.all_cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

app.include_router(api_router, prefix=settings.API_V1_STR)
