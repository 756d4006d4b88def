from __future__ import annotations

import hashlib
import hmac

from app.core.crypto import HashAlgorithm, constant_time_equals, hmac_hex, verify_hex_signature


def test_hmac_hex_matches_stdlib_digests():
    key, msg = b"secret", b"amount=1000&orderCode=42"
    assert hmac_hex(key, msg, HashAlgorithm.SHA256) == hmac.new(key, msg, hashlib.sha256).hexdigest()
    assert hmac_hex(key, msg, HashAlgorithm.SHA512) == hmac.new(key, msg, hashlib.sha512).hexdigest()
    assert len(hmac_hex(key, msg, HashAlgorithm.SHA512)) == 128


def test_verify_hex_signature_is_case_insensitive():
    expected = hmac_hex(b"k", b"m", HashAlgorithm.SHA256)
    assert verify_hex_signature(expected, expected)
    assert verify_hex_signature(expected, expected.upper())
    assert verify_hex_signature(expected, f"  {expected}  ")


def test_verify_hex_signature_fails_closed():
    expected = hmac_hex(b"k", b"m", HashAlgorithm.SHA256)
    assert not verify_hex_signature(expected, None)
    assert not verify_hex_signature(expected, "")
    assert not verify_hex_signature(expected, "   ")
    assert not verify_hex_signature(expected, "zz" * 32)
    assert not verify_hex_signature(expected, expected[:-1])  # odd length
    assert not verify_hex_signature(expected, expected[:-2])  # truncated
    assert not verify_hex_signature(expected, hmac_hex(b"other", b"m", HashAlgorithm.SHA256))


def test_constant_time_equals():
    assert constant_time_equals(b"abc", b"abc")
    assert not constant_time_equals(b"abc", b"abd")
    assert not constant_time_equals(b"abc", b"abcd")
