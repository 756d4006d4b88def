"""
签名工具模块

支付网关回调验签共用的 HMAC 工具：
- hmac_hex: 计算 HMAC（SHA-256 / SHA-512），返回小写十六进制
- constant_time_equals: 常量时间比较，所有签名比较都必须使用
- verify_hex_signature: 比较两个十六进制签名，格式错误一律视为验签失败
"""
from __future__ import annotations

import hashlib
import hmac
from enum import Enum


class HashAlgorithm(str, Enum):
    """HMAC 摘要算法"""

    SHA256 = "sha256"
    SHA512 = "sha512"


_DIGESTS = {
    HashAlgorithm.SHA256: hashlib.sha256,
    HashAlgorithm.SHA512: hashlib.sha512,
}


def hmac_hex(key: bytes, message: bytes, algorithm: HashAlgorithm) -> str:
    """
    计算 HMAC 并返回十六进制字符串

    Args:
        key: 密钥
        message: 待签名的消息
        algorithm: 摘要算法

    Returns:
        小写十六进制 HMAC
    """
    return hmac.new(key, message, _DIGESTS[algorithm]).hexdigest()


def constant_time_equals(a: bytes, b: bytes) -> bool:
    """常量时间比较，避免时序侧信道"""
    return hmac.compare_digest(a, b)


def verify_hex_signature(expected_hex: str, received: str | None) -> bool:
    """
    校验收到的十六进制签名

    两边都先解码成字节再比较，因此大小写不敏感。
    签名缺失、为空或不是合法十六进制时返回 False，不抛异常。

    Args:
        expected_hex: 本地计算出的签名
        received: 对方提供的签名

    Returns:
        是否一致
    """
    if not received:
        return False
    try:
        expected = bytes.fromhex(expected_hex)
        actual = bytes.fromhex(received.strip())
    except ValueError:
        return False
    if not actual:
        return False
    return constant_time_equals(expected, actual)
