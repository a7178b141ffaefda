"""Pytest bootstrap configuration.

Gateway credentials are set before any module reads application settings.
"""
import os

os.environ.setdefault("PAYMENT__VNPAY__TMN_CODE", "TESTTMN1")
os.environ.setdefault("PAYMENT__VNPAY__SECRET_KEY", "TESTSECRETKEY0123456789")
os.environ.setdefault("PAYMENT__RETRY__MAX", "0")

import httpx  # noqa: E402
import pytest  # noqa: E402

from core.settings import PaymentRetry, VNPaySettings  # noqa: E402
from infrastructure.external.payments.vnpay import VNPayClient  # noqa: E402
from infrastructure.external.payments.vnpay.signing import hash_all_fields  # noqa: E402


SECRET = "TESTSECRETKEY0123456789"


@pytest.fixture
def vnpay_config() -> VNPaySettings:
    return VNPaySettings(tmn_code="TESTTMN1", secret_key=SECRET)


@pytest.fixture
def make_client(vnpay_config):
    """Build a VNPayClient whose HTTP calls go to ``handler`` instead of the network."""
    created = []

    def _make(handler=None) -> VNPayClient:
        transport = httpx.MockTransport(handler or (lambda request: httpx.Response(500)))
        client = VNPayClient(vnpay_config, retry=PaymentRetry(max=0), transport=transport)
        created.append(client)
        return client

    yield _make
    for client in created:
        client.close()


@pytest.fixture
def sign():
    """Attach a valid vnp_SecureHash to callback params."""

    def _sign(params: dict, secret: str = SECRET) -> dict:
        signed = dict(params)
        signed["vnp_SecureHash"] = hash_all_fields(params, secret)
        return signed

    return _sign


@pytest.fixture
def make_container(vnpay_config, make_client):
    """Fully wired in-memory application backed by a mocked gateway transport."""
    from api.dependencies import build_container
    from core.settings import PaymentSettings

    def _make(handler=None, region="VIETNAM"):
        cfg = PaymentSettings(vnpay=vnpay_config, retry=PaymentRetry(max=0))
        return build_container(payment_config=cfg, gateway=make_client(handler), region=region)

    return _make


@pytest.fixture
def place_order():
    from application.commands.orders import OrderLine, PlaceOrderCommand
    from domain.order.entity import DeliveryInfo

    def _place(container, payment_method="VNPAY", unit_price=100000, quantity=1):
        result = container.command_bus.execute(
            PlaceOrderCommand(
                customer_id="C1",
                items=(OrderLine("P1", quantity, unit_price),),
                delivery_info=DeliveryInfo("Nguyen Van A", "0900000000", "1 Le Loi, Q1"),
                payment_method=payment_method,
            )
        )
        assert result.success, result.message
        return result.order_id

    return _place
