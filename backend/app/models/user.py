"""
用户模型模块

定义用户相关的数据库模型。
"""
import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, String
from sqlmodel import Field, SQLModel

from .base import utc_now, uuid_pk


class User(SQLModel, table=True):
    """
    用户模型

    普通的数据记录，只保存邮箱与密码哈希。
    密码校验由 app.core.security 负责，不在模型上实现。

    字段说明：
    - id: 主键（UUID）
    - email: 登录邮箱（小写，唯一）
    - hashed_password: 密码哈希
    - created_at: 创建时间
    """
    __tablename__ = "users"
    id: uuid.UUID = uuid_pk()
    email: str = Field(
        max_length=320,
        sa_column=Column(String(320), unique=True, index=True, nullable=False),
    )
    hashed_password: str = Field(sa_column=Column(String(255), nullable=False))

    created_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )
