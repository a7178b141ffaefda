"""
支付交易仓储接口 - 定义支付交易数据访问的抽象接口
"""
from abc import ABC, abstractmethod
from typing import List, Optional

from .entity import PaymentTransaction


class PaymentTransactionRepository(ABC):
    """支付交易仓储抽象接口 - 只定义能做什么，不管怎么做"""

    @abstractmethod
    def get(self, transaction_id: str) -> Optional[PaymentTransaction]:
        """根据交易号（TxnRef）获取交易"""

    @abstractmethod
    def save(self, transaction: PaymentTransaction) -> PaymentTransaction:
        """创建或更新交易"""

    @abstractmethod
    def find_by_order_id(self, order_id: str) -> List[PaymentTransaction]:
        """获取订单的全部交易，按创建时间升序"""

