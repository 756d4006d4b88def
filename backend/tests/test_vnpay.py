from __future__ import annotations

import uuid
from datetime import datetime, timezone
from decimal import Decimal
from urllib.parse import parse_qsl, urlsplit

import pytest

from app.api.errors import AppError
from app.core.config import VnPayConfig
from app.enums import CallbackOutcome, PaymentMethod
from app.integrations.vnpay import VnPayGateway, canonical_query, sign, to_minor_units
from app.models import Order


def _order(total: str = "25.00") -> Order:
    return Order(user_id=uuid.uuid4(), total_amount=Decimal(total))


def _callback_params(gateway: VnPayGateway, order: Order, status: str | None = "00") -> dict[str, str]:
    params = {
        "vnp_Amount": str(to_minor_units(order.total_amount)),
        "vnp_BankCode": "NCB",
        "vnp_OrderInfo": f"Thanh toan don hang {order.id.hex}",
        "vnp_ResponseCode": "00",
        "vnp_TmnCode": gateway.config.tmn_code,
        "vnp_TransactionNo": "14226112",
        "vnp_TxnRef": order.id.hex,
    }
    if status is not None:
        params["vnp_TransactionStatus"] = status
    params["vnp_SecureHash"] = sign(params, gateway.config.hash_secret)
    return params


def test_canonical_query_sorts_and_form_encodes():
    query = canonical_query({"vnp_b": "x y", "vnp_a": "a&b=c", "vnp_c": "https://x/y?z=1"})
    assert query == "vnp_a=a%26b%3Dc&vnp_b=x+y&vnp_c=https%3A%2F%2Fx%2Fy%3Fz%3D1"


def test_canonical_query_encodes_tilde():
    assert canonical_query({"vnp_ReturnUrl": "https://x/~shop"}) == (
        "vnp_ReturnUrl=https%3A%2F%2Fx%2F%7Eshop"
    )


def test_to_minor_units():
    assert to_minor_units(Decimal("25.00")) == 2500
    assert to_minor_units(Decimal("0.005")) == 1
    assert to_minor_units(Decimal("100000")) == 10000000


def test_payment_url_params(vnpay_gateway):
    order = _order()
    now = datetime(2024, 1, 1, 0, 0, 0, tzinfo=timezone.utc)
    url = vnpay_gateway.build_payment_url(order, client_ip="10.0.0.1", now=now)

    parts = urlsplit(url)
    assert f"{parts.scheme}://{parts.netloc}{parts.path}" == vnpay_gateway.config.base_url
    params = dict(parse_qsl(parts.query))
    assert params["vnp_Version"] == "2.1.0"
    assert params["vnp_Command"] == "pay"
    assert params["vnp_Amount"] == "2500"
    assert params["vnp_CurrCode"] == "VND"
    assert params["vnp_IpAddr"] == "10.0.0.1"
    assert params["vnp_TxnRef"] == order.id.hex
    assert params["vnp_CreateDate"] == "20240101070000"
    assert params["vnp_ExpireDate"] == "20240101071500"
    assert len(params["vnp_SecureHash"]) == 128


def test_payment_url_signature_verifies(vnpay_gateway):
    order = _order()
    url = vnpay_gateway.build_payment_url(order, client_ip="127.0.0.1")
    params = dict(parse_qsl(urlsplit(url).query))

    callback = vnpay_gateway.verify_callback(b"", {}, params)
    assert callback.gateway == PaymentMethod.vnpay
    assert callback.order_id == order.id
    # No vnp_TransactionStatus on the outbound request.
    assert callback.outcome == CallbackOutcome.ignored


def test_build_payment_request_returns_redirect(vnpay_gateway):
    directive = vnpay_gateway.build_payment_request(_order(), [], client_ip="127.0.0.1")
    assert directive.provider == PaymentMethod.vnpay
    assert directive.redirect_url.startswith(vnpay_gateway.config.base_url + "?")


@pytest.mark.parametrize(
    ("status", "expected"),
    [("00", CallbackOutcome.paid), ("02", CallbackOutcome.failed), (None, CallbackOutcome.ignored)],
)
def test_callback_outcome(vnpay_gateway, status, expected):
    order = _order()
    callback = vnpay_gateway.verify_callback(b"", {}, _callback_params(vnpay_gateway, order, status))
    assert callback.order_id == order.id
    assert callback.outcome == expected


def test_callback_hash_is_case_insensitive(vnpay_gateway):
    params = _callback_params(vnpay_gateway, _order())
    params["vnp_SecureHash"] = params["vnp_SecureHash"].upper()
    params["vnp_SecureHashType"] = "HmacSHA512"
    assert vnpay_gateway.verify_callback(b"", {}, params).outcome == CallbackOutcome.paid


def test_callback_tampered_param_rejected(vnpay_gateway):
    params = _callback_params(vnpay_gateway, _order())
    params["vnp_Amount"] = "1"
    with pytest.raises(AppError) as exc:
        vnpay_gateway.verify_callback(b"", {}, params)
    assert exc.value.code == 401101
    assert exc.value.status_code == 401


@pytest.mark.parametrize("bad_hash", [None, "", "not-hex", "abcd"])
def test_callback_missing_or_malformed_hash_rejected(vnpay_gateway, bad_hash):
    params = _callback_params(vnpay_gateway, _order())
    if bad_hash is None:
        params.pop("vnp_SecureHash")
    else:
        params["vnp_SecureHash"] = bad_hash
    with pytest.raises(AppError) as exc:
        vnpay_gateway.verify_callback(b"", {}, params)
    assert exc.value.code == 401101


def test_unknown_txn_ref_yields_no_order(vnpay_gateway):
    params = {"vnp_TxnRef": "not-an-order", "vnp_TransactionStatus": "00"}
    params["vnp_SecureHash"] = sign(params, vnpay_gateway.config.hash_secret)
    callback = vnpay_gateway.verify_callback(b"", {}, params)
    assert callback.order_id is None


def test_missing_secret_is_configuration_error():
    gateway = VnPayGateway(VnPayConfig(tmn_code="X", hash_secret=""))
    with pytest.raises(AppError) as exc:
        gateway.build_payment_url(_order(), client_ip="127.0.0.1")
    assert exc.value.code == 500201
