"""
订单仓储接口
"""
from abc import ABC, abstractmethod
from typing import List, Optional

from .entity import Order


class OrderRepository(ABC):
    """订单仓储抽象接口"""

    @abstractmethod
    def get(self, order_id: str) -> Optional[Order]:
        """根据订单号获取订单"""

    @abstractmethod
    def save(self, order: Order) -> Order:
        """创建或更新订单"""

    @abstractmethod
    def list(self, customer_id: Optional[str] = None) -> List[Order]:
        """列出订单，可按客户过滤"""
