"""
Payment service factories keyed by region and payment method.

The coordinator picks the first registered factory that supports the
requested method (and region, when one is given).
"""
from __future__ import annotations

import abc
import threading
from typing import FrozenSet, List, Optional

from domain.common.exceptions import UnsupportedPaymentMethodException

from .entity import PaymentMethod
from .service import CashOnDeliveryPaymentService, PaymentDomainService


class PaymentServiceFactory(abc.ABC):
    region: str = ""
    supported_methods: FrozenSet[PaymentMethod] = frozenset()

    def supports(self, method: PaymentMethod) -> bool:
        return method in self.supported_methods

    @abc.abstractmethod
    def create_payment_service(self, method: PaymentMethod) -> PaymentDomainService: ...

    def __repr__(self) -> str:
        methods = ",".join(sorted(m.value for m in self.supported_methods))
        return f"{type(self).__name__}(region={self.region}, methods=[{methods}])"


class VietnamPaymentServiceFactory(PaymentServiceFactory):
    region = "VIETNAM"
    supported_methods = frozenset({PaymentMethod.VNPAY, PaymentMethod.COD})

    def __init__(
        self,
        vnpay_service: PaymentDomainService,
        cod_service: Optional[PaymentDomainService] = None,
    ) -> None:
        self._services = {
            PaymentMethod.VNPAY: vnpay_service,
            PaymentMethod.COD: cod_service or CashOnDeliveryPaymentService(),
        }

    def create_payment_service(self, method: PaymentMethod) -> PaymentDomainService:
        if not self.supports(method):
            raise UnsupportedPaymentMethodException(
                f"Payment method {method.value} is not supported in region {self.region}",
                payment_method=method.value,
                region=self.region,
            )
        return self._services[method]


class GlobalPaymentServiceFactory(PaymentServiceFactory):
    region = "GLOBAL"
    supported_methods = frozenset({PaymentMethod.CREDIT_CARD, PaymentMethod.BANK_TRANSFER})

    def create_payment_service(self, method: PaymentMethod) -> PaymentDomainService:
        # TODO: wire a card acquirer once a global provider contract exists
        raise UnsupportedPaymentMethodException(
            f"Payment method {method.value} is not yet implemented in region {self.region}",
            payment_method=method.value,
            region=self.region,
        )


class PaymentServiceFactoryCoordinator:
    def __init__(self, factories: Optional[List[PaymentServiceFactory]] = None) -> None:
        self._lock = threading.Lock()
        self._factories: List[PaymentServiceFactory] = list(factories or [])

    def register(self, factory: PaymentServiceFactory) -> None:
        with self._lock:
            self._factories.append(factory)

    def available_factories(self) -> List[PaymentServiceFactory]:
        with self._lock:
            return list(self._factories)

    def _find_factory(self, method: PaymentMethod, region: Optional[str]) -> Optional[PaymentServiceFactory]:
        for factory in self.available_factories():
            if region is not None and factory.region.upper() != region.upper():
                continue
            if factory.supports(method):
                return factory
        return None

    def get_payment_service(
        self,
        method: PaymentMethod | str,
        region: Optional[str] = None,
    ) -> PaymentDomainService:
        method = PaymentMethod.parse(method)
        factory = self._find_factory(method, region)
        if factory is None:
            message = f"No factory found for payment method: {method.value}"
            if region is not None:
                message += f" in region: {region}"
            raise UnsupportedPaymentMethodException(message, payment_method=method.value, region=region)
        return factory.create_payment_service(method)

    def is_supported(self, method: PaymentMethod | str, region: Optional[str] = None) -> bool:
        return self._find_factory(PaymentMethod.parse(method), region) is not None

    def supported_methods(self, region: Optional[str] = None) -> FrozenSet[PaymentMethod]:
        methods: set[PaymentMethod] = set()
        for factory in self.available_factories():
            if region is None or factory.region.upper() == region.upper():
                methods |= factory.supported_methods
        return frozenset(methods)
