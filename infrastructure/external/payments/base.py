"""
Base payment client implementing shared concerns: http, retry and logging.

Concrete providers should subclass and implement provider-specific logic.
Calls are blocking; each runs inline on the request's worker thread.
"""
from __future__ import annotations

from typing import Any, Callable, Optional, TypeVar

import httpx
from tenacity import Retrying, stop_after_attempt, wait_exponential, retry_if_exception_type

from core.logging_config import get_logger
from core.settings import PaymentRetry, PaymentTimeouts
from infrastructure.external.payments.exceptions import (
    PaymentProviderError,
    PaymentRecoverableError,
)


logger = get_logger(__name__)

T = TypeVar("T")


class BasePaymentClient:
    provider: str = "base"

    def __init__(
        self,
        *,
        timeouts: Optional[PaymentTimeouts] = None,
        retry: Optional[PaymentRetry] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._timeouts_cfg = timeouts or PaymentTimeouts()
        self._retry_cfg = retry or PaymentRetry()
        self._transport = transport
        self._client: Optional[httpx.Client] = None

    @property
    def timeouts(self) -> httpx.Timeout:
        return httpx.Timeout(
            connect=self._timeouts_cfg.connect,
            read=self._timeouts_cfg.read,
            write=self._timeouts_cfg.write,
            timeout=self._timeouts_cfg.total,
        )

    @property
    def client(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(timeout=self.timeouts, transport=self._transport)
        return self._client

    def close(self) -> None:
        """Close underlying HTTP client if created."""
        if self._client is not None:
            try:
                self._client.close()
            finally:
                self._client = None

    def _retry(self, fn: Callable[[], T]) -> T:
        for attempt in Retrying(
            stop=stop_after_attempt(int(self._retry_cfg.max) + 1),
            wait=wait_exponential(multiplier=self._retry_cfg.base_backoff, min=0.1, max=2.0),
            retry=retry_if_exception_type((httpx.TimeoutException, httpx.TransportError)),
            reraise=True,
        ):
            with attempt:
                return fn()
        raise AssertionError("unreachable")  # pragma: no cover

    def _post_json(self, url: str, payload: dict[str, Any]) -> dict[str, Any]:
        """POST a JSON body with retries; wrap transport and HTTP failures."""
        try:
            resp = self._retry(lambda: self.client.post(url, json=payload))
        except (httpx.TimeoutException, httpx.TransportError) as exc:
            raise PaymentRecoverableError(str(exc) or type(exc).__name__, provider=self.provider) from exc
        if resp.status_code >= 400:
            raise PaymentProviderError(
                f"HTTP {resp.status_code} from {self.provider}",
                provider=self.provider,
                provider_code=str(resp.status_code),
            )
        try:
            body = resp.json()
        except ValueError as exc:
            raise PaymentProviderError("Malformed gateway response", provider=self.provider) from exc
        if not isinstance(body, dict):
            raise PaymentProviderError("Malformed gateway response", provider=self.provider)
        return body

    def _log(self, event: str, **kwargs) -> None:
        logger.info(
            event,
            provider=self.provider,
            **kwargs,
        )
