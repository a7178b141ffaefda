from .order_repository import InMemoryOrderRepository
from .payment_repository import InMemoryPaymentTransactionRepository

__all__ = ["InMemoryOrderRepository", "InMemoryPaymentTransactionRepository"]
