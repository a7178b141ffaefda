from .client import VNPayClient
from .request_builder import resolve_client_ip
from .signing import hash_all_fields, hmac_sha512

__all__ = ["VNPayClient", "hash_all_fields", "hmac_sha512", "resolve_client_ip"]
