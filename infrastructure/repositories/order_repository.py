"""
订单仓储内存实现
"""
from __future__ import annotations

import copy
import threading
from typing import Dict, List, Optional

from domain.order.entity import Order
from domain.order.repository import OrderRepository


class InMemoryOrderRepository(OrderRepository):
    """进程内订单存储；返回副本，修改需显式 save"""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._orders: Dict[str, Order] = {}

    def get(self, order_id: str) -> Optional[Order]:
        with self._lock:
            order = self._orders.get(order_id)
            return copy.deepcopy(order) if order is not None else None

    def save(self, order: Order) -> Order:
        with self._lock:
            self._orders[order.order_id] = copy.deepcopy(order)
        return order

    def list(self, customer_id: Optional[str] = None) -> List[Order]:
        with self._lock:
            orders = [copy.deepcopy(o) for o in self._orders.values()]
        if customer_id is not None:
            orders = [o for o in orders if o.customer_id == customer_id]
        return sorted(orders, key=lambda o: o.created_at)
