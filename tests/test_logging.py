from api.middleware.logging import mask_sensitive
from core.logging_config import redact_secrets


def test_redact_secrets_masks_nested_parameter_maps():
    event = {
        "event": "vnpay_callback",
        "params": {"vnp_TxnRef": "ORD1", "vnp_SecureHash": "abc"},
        "batches": [{"secret_key": "k"}],
        "signature": "deadbeef",
    }
    out = redact_secrets(None, "info", event)
    assert out["params"] == {"vnp_TxnRef": "ORD1", "vnp_SecureHash": "***"}
    assert out["batches"] == [{"secret_key": "***"}]
    assert out["signature"] == "***"
    assert out["event"] == "vnpay_callback"


def test_mask_sensitive_is_case_insensitive():
    data = {"VNP_SECUREHASH": "abc", "token": "t", "items": [{"Signature": "x", "qty": 1}]}
    assert mask_sensitive(data) == {"VNP_SECUREHASH": "***", "token": "***", "items": [{"Signature": "***", "qty": 1}]}
