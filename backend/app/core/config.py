"""
应用配置模块

使用 Pydantic Settings 管理所有环境变量和配置。
配置从项目根目录的 .env 文件读取，支持类型验证和默认值。

关键概念：
- BaseSettings: Pydantic 的配置基类，自动从环境变量读取
- computed_field: 计算字段，根据其他字段动态生成
- model_validator: 模型验证器，用于自定义验证逻辑

支付网关的密钥不会被业务代码直接读取，而是通过
stripe_config / vnpay_config / payos_config 组装成独立的配置对象，
在构造网关适配器时注入。
"""
import secrets  # 用于生成安全的随机字符串
import warnings  # 用于发出警告
from typing import Annotated, Any, Literal  # 类型注解工具

from pydantic import (
    AnyUrl,  # URL 类型验证
    BaseModel,  # 网关配置结构
    BeforeValidator,  # 字段验证前的转换器
    HttpUrl,  # HTTP URL 类型验证
    PostgresDsn,  # PostgreSQL 连接字符串验证
    computed_field,  # 计算字段装饰器
    model_validator,  # 模型验证器装饰器
)
from pydantic_settings import BaseSettings, SettingsConfigDict  # 配置管理
from typing_extensions import Self  # 用于类型注解中引用自身类型


def parse_cors(v: Any) -> list[str] | str:
    """
    解析 CORS 配置值

    支持两种格式：
    1. 逗号分隔的字符串："http://localhost:3000,http://localhost:3001"
    2. 列表格式：["http://localhost:3000", "http://localhost:3001"]

    Raises:
        ValueError: 当输入格式不正确时
    """
    if isinstance(v, str) and not v.startswith("["):
        return [i.strip() for i in v.split(",") if i.strip()]
    elif isinstance(v, list | str):
        return v
    raise ValueError(v)


class StripeConfig(BaseModel):
    """Stripe 适配器配置"""

    api_key: str | None = None
    webhook_secret: str | None = None
    webhook_tolerance: int = 300  # 签名时间戳允许的偏差（秒）
    currency: str = "usd"
    success_url: str = "https://example.com/success?orderId={ORDER_ID}"
    cancel_url: str = "https://example.com/cancel?orderId={ORDER_ID}"


class VnPayConfig(BaseModel):
    """VNPAY 适配器配置"""

    tmn_code: str = ""
    hash_secret: str = ""
    base_url: str = "https://sandbox.vnpayment.vn/paymentv2/vpcpay.html"
    return_url: str = ""
    expire_minutes: int = 15  # 支付链接有效期（分钟）


class PayOSConfig(BaseModel):
    """PayOS 适配器配置"""

    client_id: str | None = None
    api_key: str | None = None
    checksum_key: str | None = None
    api_base_url: str = "https://api-merchant.payos.vn/v2"
    return_url: str = ""
    cancel_url: str = ""
    timeout_seconds: float = 10.0


class Settings(BaseSettings):
    """
    应用配置类

    配置来源优先级：
    1. 环境变量（最高优先级）
    2. .env 文件
    3. 代码中的默认值（最低优先级）
    """
    model_config = SettingsConfigDict(
        # 使用项目根目录的 .env 文件（backend/ 目录的上一级）
        env_file="../.env",
        env_ignore_empty=True,  # 忽略空的环境变量
        extra="ignore",  # 忽略未定义的额外字段
    )
    API_V1_STR: str = "/api/v1"  # API 版本前缀
    SECRET_KEY: str = secrets.token_urlsafe(32)  # JWT 签名密钥（默认随机生成）
    ACCESS_TOKEN_EXPIRE_DAYS: int = 7  # JWT token 过期天数
    ENVIRONMENT: Literal["local", "staging", "production"] = "local"

    BACKEND_CORS_ORIGINS: Annotated[
        list[AnyUrl] | str, BeforeValidator(parse_cors)
    ] = []

    @computed_field  # type: ignore[prop-decorator]
    @property
    def all_cors_origins(self) -> list[str]:
        """获取所有 CORS 允许的源（去除尾部斜杠）"""
        return [str(origin).rstrip("/") for origin in self.BACKEND_CORS_ORIGINS]

    PROJECT_NAME: str = "Clothing Shop"
    SENTRY_DSN: HttpUrl | None = None

    POSTGRES_SERVER: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = ""
    POSTGRES_DB: str = ""

    @computed_field  # type: ignore[prop-decorator]
    @property
    def SQLALCHEMY_DATABASE_URI(self) -> PostgresDsn:
        return PostgresDsn.build(
            scheme="postgresql+psycopg",
            username=self.POSTGRES_USER,
            password=self.POSTGRES_PASSWORD,
            host=self.POSTGRES_SERVER,
            port=self.POSTGRES_PORT,
            path=self.POSTGRES_DB,
        )

    # 出站支付 API 请求超时（秒），超时直接报错，不在进程内重试
    PAYMENT_HTTP_TIMEOUT_SECONDS: float = 10.0

    # Stripe 配置
    STRIPE_API_KEY: str | None = None  # Stripe Secret Key
    STRIPE_WEBHOOK_SECRET: str | None = None  # Webhook 签名密钥（whsec_...）
    STRIPE_WEBHOOK_TOLERANCE: int = 300
    STRIPE_CURRENCY: str = "usd"
    STRIPE_SUCCESS_URL: str = "https://example.com/success?orderId={ORDER_ID}"
    STRIPE_CANCEL_URL: str = "https://example.com/cancel?orderId={ORDER_ID}"

    # VNPAY 配置
    VNPAY_TMN_CODE: str = ""  # 商户编码
    VNPAY_HASH_SECRET: str = ""  # HMAC-SHA512 共享密钥
    VNPAY_BASE_URL: str = "https://sandbox.vnpayment.vn/paymentv2/vpcpay.html"
    VNPAY_RETURN_URL: str = ""
    VNPAY_EXPIRE_MINUTES: int = 15

    # PayOS 配置
    PAYOS_CLIENT_ID: str | None = None
    PAYOS_API_KEY: str | None = None
    PAYOS_CHECKSUM_KEY: str | None = None  # Webhook 与请求签名密钥
    PAYOS_API_BASE_URL: str = "https://api-merchant.payos.vn/v2"
    PAYOS_RETURN_URL: str = ""
    PAYOS_CANCEL_URL: str = ""

    @property
    def stripe_config(self) -> StripeConfig:
        return StripeConfig(
            api_key=self.STRIPE_API_KEY,
            webhook_secret=self.STRIPE_WEBHOOK_SECRET,
            webhook_tolerance=self.STRIPE_WEBHOOK_TOLERANCE,
            currency=self.STRIPE_CURRENCY,
            success_url=self.STRIPE_SUCCESS_URL,
            cancel_url=self.STRIPE_CANCEL_URL,
        )

    @property
    def vnpay_config(self) -> VnPayConfig:
        # 密钥两端的空白会导致签名不一致
        return VnPayConfig(
            tmn_code=self.VNPAY_TMN_CODE.strip(),
            hash_secret=self.VNPAY_HASH_SECRET.strip(),
            base_url=self.VNPAY_BASE_URL.strip(),
            return_url=self.VNPAY_RETURN_URL.strip(),
            expire_minutes=self.VNPAY_EXPIRE_MINUTES,
        )

    @property
    def payos_config(self) -> PayOSConfig:
        return PayOSConfig(
            client_id=self.PAYOS_CLIENT_ID,
            api_key=self.PAYOS_API_KEY,
            checksum_key=self.PAYOS_CHECKSUM_KEY,
            api_base_url=self.PAYOS_API_BASE_URL,
            return_url=self.PAYOS_RETURN_URL,
            cancel_url=self.PAYOS_CANCEL_URL,
            timeout_seconds=self.PAYMENT_HTTP_TIMEOUT_SECONDS,
        )

    def _check_default_secret(self, var_name: str, value: str | None) -> None:
        """
        检查敏感配置是否使用了默认值

        如果配置项使用了默认值 "changethis"，在本地环境会发出警告，
        在其他环境会抛出错误，强制修改。

        Raises:
            ValueError: 在非本地环境使用默认值时
        """
        if value == "changethis":
            message = (
                f'The value of {var_name} is "changethis", '
                "for security, please change it, at least for deployments."
            )
            if self.ENVIRONMENT == "local":
                warnings.warn(message, stacklevel=1)
            else:
                raise ValueError(message)

    @model_validator(mode="after")
    def _enforce_non_default_secrets(self) -> Self:
        self._check_default_secret("SECRET_KEY", self.SECRET_KEY)
        self._check_default_secret("POSTGRES_PASSWORD", self.POSTGRES_PASSWORD)
        self._check_default_secret("VNPAY_HASH_SECRET", self.VNPAY_HASH_SECRET)
        self._check_default_secret("PAYOS_CHECKSUM_KEY", self.PAYOS_CHECKSUM_KEY)
        self._check_default_secret("STRIPE_WEBHOOK_SECRET", self.STRIPE_WEBHOOK_SECRET)

        return self


# 创建全局配置实例，整个应用共享
settings = Settings()  # type: ignore
