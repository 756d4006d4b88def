"""
VNPAY 支付网关适配器

签名规则（商户端生成支付 URL 与校验回调使用同一套规则）：
1. 取所有 vnp_ 参数（排除 vnp_SecureHash / vnp_SecureHashType）
2. 按参数名的字节序升序排序
3. 每个值做表单编码（urllib.parse.quote_plus，空格编码为 +，~ 编码为 %7E）
4. 用 & 拼接 key=value
5. 用共享密钥对拼接结果做 HMAC-SHA512

被签名的字符串与实际发送的查询串是同一个字符串，
两者编码不一致是 VNPAY 验签失败最常见的原因。
"""
from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from datetime import datetime, timedelta, timezone
from decimal import ROUND_HALF_UP, Decimal
from urllib.parse import quote_plus

from app.api.errors import gateway_not_configured, signature_invalid
from app.core.config import VnPayConfig
from app.core.crypto import HashAlgorithm, hmac_hex, verify_hex_signature
from app.enums import CallbackOutcome, PaymentMethod
from app.models import Order, OrderItem

from .base import PaymentCallback, PaymentDirective, parse_order_id

logger = logging.getLogger(__name__)

VERSION = "2.1.0"
SECURE_HASH = "vnp_SecureHash"
SECURE_HASH_TYPE = "vnp_SecureHashType"
SUCCESS_STATUS = "00"
DATE_FORMAT = "%Y%m%d%H%M%S"

# VNPAY 使用越南本地时间（UTC+7，无夏令时）
VN_TZ = timezone(timedelta(hours=7), name="Asia/Ho_Chi_Minh")


def canonical_query(params: Mapping[str, str]) -> str:
    """
    生成规范化查询串

    签名输入与发送给 VNPAY 的查询串都用这个函数生成。

    Args:
        params: vnp_ 参数（不含 vnp_SecureHash）

    Returns:
        排序并表单编码后的 key=value&... 字符串
    """
    return "&".join(f"{key}={_form_encode(params[key])}" for key in sorted(params))


def _form_encode(value: str) -> str:
    # quote_plus 不编码 ~，VNPAY 服务端（PHP urlencode / .NET UrlEncode）编码为 %7E
    return quote_plus(str(value)).replace("~", "%7E")


def sign(params: Mapping[str, str], secret: str) -> str:
    """计算 vnp_SecureHash（HMAC-SHA512，十六进制）"""
    return hmac_hex(
        secret.encode("utf-8"),
        canonical_query(params).encode("utf-8"),
        HashAlgorithm.SHA512,
    )


def to_minor_units(amount: Decimal) -> int:
    """金额转为 VNPAY 要求的 x100 整数"""
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class VnPayGateway:
    """VNPAY 适配器"""

    method = PaymentMethod.vnpay

    def __init__(self, config: VnPayConfig) -> None:
        self.config = config

    def _require_secret(self) -> str:
        if not self.config.hash_secret:
            logger.error("VNPAY hash secret is not configured")
            raise gateway_not_configured("VNPAY")
        return self.config.hash_secret

    def build_params(
        self, order: Order, *, client_ip: str, now: datetime | None = None
    ) -> dict[str, str]:
        """
        组装支付请求参数（不含签名）

        Args:
            order: 订单
            client_ip: 客户端 IP
            now: 当前时间（测试时注入）

        Returns:
            vnp_ 参数字典
        """
        created = (now or datetime.now(timezone.utc)).astimezone(VN_TZ)
        expires = created + timedelta(minutes=self.config.expire_minutes)
        return {
            "vnp_Version": VERSION,
            "vnp_Command": "pay",
            "vnp_TmnCode": self.config.tmn_code,
            "vnp_Amount": str(to_minor_units(order.total_amount)),
            "vnp_CreateDate": created.strftime(DATE_FORMAT),
            "vnp_ExpireDate": expires.strftime(DATE_FORMAT),
            "vnp_CurrCode": "VND",
            "vnp_IpAddr": client_ip or "127.0.0.1",
            "vnp_Locale": "vn",
            "vnp_OrderInfo": f"Thanh toan don hang {order.id.hex}",
            "vnp_OrderType": "other",
            "vnp_ReturnUrl": self.config.return_url,
            "vnp_TxnRef": order.id.hex,
        }

    def build_payment_url(
        self, order: Order, *, client_ip: str, now: datetime | None = None
    ) -> str:
        secret = self._require_secret()
        params = self.build_params(order, client_ip=client_ip, now=now)
        query = canonical_query(params)
        secure_hash = sign(params, secret)
        return f"{self.config.base_url}?{query}&{SECURE_HASH}={secure_hash}"

    def build_payment_request(
        self, order: Order, items: Sequence[OrderItem], *, client_ip: str
    ) -> PaymentDirective:
        url = self.build_payment_url(order, client_ip=client_ip)
        logger.info(f"VNPAY payment url created for order {order.id}")
        return PaymentDirective(provider=self.method, redirect_url=url)

    def verify_callback(
        self,
        raw_payload: bytes,
        headers: Mapping[str, str],
        query_params: Mapping[str, str],
    ) -> PaymentCallback:
        """
        校验 return URL / IPN 回调

        Raises:
            AppError: 签名缺失或不匹配时抛出 401101
        """
        secret = self._require_secret()
        params = {k: v for k, v in query_params.items() if k.startswith("vnp_")}
        received = params.pop(SECURE_HASH, None)
        params.pop(SECURE_HASH_TYPE, None)

        if not received or not verify_hex_signature(sign(params, secret), received):
            logger.warning("VNPAY callback signature invalid")
            raise signature_invalid()

        status = params.get("vnp_TransactionStatus")
        if status == SUCCESS_STATUS:
            outcome = CallbackOutcome.paid
        elif status:
            outcome = CallbackOutcome.failed
        else:
            outcome = CallbackOutcome.ignored

        order_id = parse_order_id(params.get("vnp_TxnRef"))
        logger.info(
            f"VNPAY callback verified: txn_ref={params.get('vnp_TxnRef')} status={status}"
        )
        return PaymentCallback(
            gateway=self.method,
            raw_payload=raw_payload,
            signature=received,
            order_id=order_id,
            outcome=outcome,
        )
