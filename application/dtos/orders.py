"""
订单 DTO - 应用层与表现层之间的数据传输
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_serializer

from application.commands.orders import OrderLine, PlaceOrderCommand
from domain.order.entity import DeliveryInfo, Order


class DTOBase(BaseModel):
    """Base DTO: unify datetime serialization to UTC-Z for all subclasses."""

    @model_serializer(mode="wrap")
    def _serialize_model(self, handler):  # type: ignore[override]
        data = handler(self)

        def convert(value):
            if isinstance(value, datetime):
                ts = value if value.tzinfo else value.replace(tzinfo=timezone.utc)
                return ts.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")
            if isinstance(value, list):
                return [convert(v) for v in value]
            if isinstance(value, dict):
                return {k: convert(v) for k, v in value.items()}
            return value

        return convert(data)


class OrderItemDTO(DTOBase):
    product_id: str = Field(..., min_length=1)
    quantity: int = Field(..., gt=0)
    # VND
    unit_price: int = Field(..., ge=0)

    model_config = ConfigDict(from_attributes=True)


class DeliveryInfoDTO(DTOBase):
    recipient_name: str = Field(..., min_length=1)
    phone: str = Field(..., min_length=1)
    address: str = Field(..., min_length=1)
    province: Optional[str] = None
    email: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class OrderCreateDTO(DTOBase):
    """下单请求"""
    customer_id: str = Field(..., min_length=1)
    items: List[OrderItemDTO] = Field(..., min_length=1)
    delivery_info: DeliveryInfoDTO
    payment_method: str = Field(default="VNPAY", description="VNPAY / COD")

    def to_command(self) -> PlaceOrderCommand:
        return PlaceOrderCommand(
            customer_id=self.customer_id,
            items=tuple(OrderLine(i.product_id, i.quantity, i.unit_price) for i in self.items),
            delivery_info=DeliveryInfo(**self.delivery_info.model_dump()),
            payment_method=self.payment_method,
        )


class OrderCancelDTO(DTOBase):
    requested_by: str = Field(default="customer", min_length=1)
    reason: Optional[str] = None


class OrderResponseDTO(DTOBase):
    order_id: str
    customer_id: str
    items: List[OrderItemDTO]
    delivery_info: DeliveryInfoDTO
    payment_method: str
    status: str
    total_amount: int
    created_at: datetime
    updated_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None

    @classmethod
    def from_entity(cls, order: Order) -> "OrderResponseDTO":
        return cls(
            order_id=order.order_id,
            customer_id=order.customer_id,
            items=[OrderItemDTO.model_validate(i) for i in order.items],
            delivery_info=DeliveryInfoDTO.model_validate(order.delivery_info),
            payment_method=order.payment_method.value,
            status=order.status.value,
            total_amount=order.total_amount,
            created_at=order.created_at,
            updated_at=order.updated_at,
            cancelled_at=order.cancelled_at,
        )
