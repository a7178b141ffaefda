"""
API依赖项 - 组装支付与订单服务（进程内单例）
"""
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from fastapi import Depends, Request

from application.commands.bus import CommandBus
from application.commands.handlers import (
    CancelOrderCommandHandler,
    PlaceOrderCommandHandler,
    ProcessPaymentCommandHandler,
)
from application.commands.middleware import LoggingCommandMiddleware, ValidationCommandMiddleware
from application.events.handlers import (
    OrderCancelledEventHandler,
    OrderCreatedEventHandler,
    PaymentFailedEventHandler,
    PaymentProcessedEventHandler,
)
from application.events.publisher import SynchronousEventPublisher
from application.events.store import InMemoryEventStore
from application.ports.notification import NotificationPort
from application.ports.payment_gateway import PaymentGateway
from application.services.payment_service import PaymentApplicationService
from core.config import settings
from core.settings import PaymentSettings, payment_settings
from domain.order.service import OrderDomainService
from domain.payment.factory import (
    GlobalPaymentServiceFactory,
    PaymentServiceFactoryCoordinator,
    VietnamPaymentServiceFactory,
)
from infrastructure.external.payments import get_payment_gateway
from infrastructure.notification.logging_notifier import LoggingNotificationService
from infrastructure.payment.vnpay_adapter import VNPayPaymentAdapter
from infrastructure.repositories import InMemoryOrderRepository, InMemoryPaymentTransactionRepository


@dataclass
class Container:
    gateway: PaymentGateway
    orders: InMemoryOrderRepository
    transactions: InMemoryPaymentTransactionRepository
    event_store: InMemoryEventStore
    publisher: SynchronousEventPublisher
    command_bus: CommandBus
    coordinator: PaymentServiceFactoryCoordinator
    order_service: OrderDomainService
    notifications: NotificationPort
    payment_service: PaymentApplicationService

    def close(self) -> None:
        self.gateway.close()


def build_container(
    *,
    payment_config: Optional[PaymentSettings] = None,
    gateway: Optional[PaymentGateway] = None,
    region: Optional[str] = None,
) -> Container:
    """组合根：仓储、网关、工厂、命令总线与事件处理器在此装配"""
    cfg = payment_config or payment_settings
    gateway = gateway or get_payment_gateway(config=cfg)
    region = region or settings.PAYMENT_REGION

    orders = InMemoryOrderRepository()
    transactions = InMemoryPaymentTransactionRepository()
    event_store = InMemoryEventStore()
    publisher = SynchronousEventPublisher(event_store)
    notifications = LoggingNotificationService()
    order_service = OrderDomainService(orders)

    coordinator = PaymentServiceFactoryCoordinator()
    coordinator.register(
        VietnamPaymentServiceFactory(VNPayPaymentAdapter(gateway, transactions=transactions, config=cfg.vnpay))
    )
    coordinator.register(GlobalPaymentServiceFactory())

    bus = CommandBus()
    bus.register_middleware(LoggingCommandMiddleware())
    bus.register_middleware(ValidationCommandMiddleware())
    bus.register_handler(PlaceOrderCommandHandler(order_service, publisher))
    bus.register_handler(
        ProcessPaymentCommandHandler(order_service, coordinator, transactions, publisher, region=region)
    )
    bus.register_handler(
        CancelOrderCommandHandler(
            order_service,
            coordinator,
            transactions,
            publisher,
            refund_window_days=cfg.vnpay.refund_window_days,
        )
    )

    publisher.register(OrderCreatedEventHandler(notifications))
    publisher.register(PaymentProcessedEventHandler(order_service, coordinator, notifications, transactions))
    publisher.register(PaymentFailedEventHandler(order_service, notifications))
    publisher.register(OrderCancelledEventHandler(notifications))

    payment_service = PaymentApplicationService(
        gateway=gateway,
        command_bus=bus,
        order_service=order_service,
        transactions=transactions,
        coordinator=coordinator,
        publisher=publisher,
        notifications=notifications,
        config=cfg.vnpay,
    )
    return Container(
        gateway=gateway,
        orders=orders,
        transactions=transactions,
        event_store=event_store,
        publisher=publisher,
        command_bus=bus,
        coordinator=coordinator,
        order_service=order_service,
        notifications=notifications,
        payment_service=payment_service,
    )


@lru_cache
def get_container() -> Container:
    return build_container()


def get_command_bus(container: Container = Depends(get_container)) -> CommandBus:
    return container.command_bus


def get_order_service(container: Container = Depends(get_container)) -> OrderDomainService:
    return container.order_service


def get_payment_service(container: Container = Depends(get_container)) -> PaymentApplicationService:
    return container.payment_service


def get_client_ip(request: Request) -> Optional[str]:
    """RequestIDMiddleware 已解析的客户端IP"""
    return getattr(request.state, "client_ip", None)
