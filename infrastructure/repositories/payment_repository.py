"""
支付交易仓储内存实现
"""
from __future__ import annotations

import copy
import threading
from typing import Dict, List, Optional

from domain.payment.entity import PaymentTransaction
from domain.payment.repository import PaymentTransactionRepository


class InMemoryPaymentTransactionRepository(PaymentTransactionRepository):
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._transactions: Dict[str, PaymentTransaction] = {}

    def get(self, transaction_id: str) -> Optional[PaymentTransaction]:
        with self._lock:
            txn = self._transactions.get(transaction_id)
            return copy.deepcopy(txn) if txn is not None else None

    def save(self, transaction: PaymentTransaction) -> PaymentTransaction:
        with self._lock:
            self._transactions[transaction.transaction_id] = copy.deepcopy(transaction)
        return transaction

    def find_by_order_id(self, order_id: str) -> List[PaymentTransaction]:
        with self._lock:
            matches = [copy.deepcopy(t) for t in self._transactions.values() if t.order_id == order_id]
        return sorted(matches, key=lambda t: t.created_at)
