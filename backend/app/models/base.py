"""
基础模型模块

定义所有模型共用的基础类和工具函数。
"""
import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import Column, Uuid
from sqlmodel import Field, SQLModel


def utc_now() -> datetime:
    """
    获取当前 UTC 时间

    Returns:
        当前 UTC 时区的日期时间对象
    """
    return datetime.now(timezone.utc)


def uuid_pk() -> Any:
    """UUID 主键字段（应用侧生成，每次调用返回新的 Column）"""
    return Field(default_factory=uuid.uuid4, sa_column=Column(Uuid, primary_key=True))


# 导出 SQLModel 供其他模块使用
__all__ = ["SQLModel", "utc_now", "uuid_pk"]
