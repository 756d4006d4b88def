"""
枚举类型定义模块

定义应用中使用的所有枚举类型。
所有枚举都继承自 str 和 Enum，这样既可以用作字符串，又具有枚举的特性。
"""
from enum import Enum  # 枚举类型，用于定义固定的选项集合


class OrderStatus(str, Enum):
    """
    订单状态枚举

    - pending: 待支付（下单后的初始状态）
    - paid: 已支付（终态，不会再变更）
    - failed: 支付失败 / 取消 / 过期
    """
    pending = "pending"
    paid = "paid"
    failed = "failed"


class PaymentMethod(str, Enum):
    """
    支付方式枚举

    未识别或未提供的支付方式走手动（模拟）支付流程。
    """
    stripe = "stripe"
    vnpay = "vnpay"
    payos = "payos"

    @classmethod
    def parse(cls, value: str | None) -> "PaymentMethod | None":
        """大小写不敏感地解析支付方式，无法识别时返回 None"""
        if not value:
            return None
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


class CallbackOutcome(str, Enum):
    """
    网关回调结果

    - paid: 支付成功
    - failed: 支付失败 / 取消 / 过期
    - ignored: 无需处理的回调（未知事件或状态）
    """
    paid = "paid"
    failed = "failed"
    ignored = "ignored"
