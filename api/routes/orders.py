"""
订单API路由 - 下单、查询与取消
"""
from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, Depends, Query

from api.dependencies import get_command_bus, get_order_service
from application.commands.bus import CommandBus
from application.commands.orders import CancelOrderCommand
from application.dtos.orders import OrderCancelDTO, OrderCreateDTO, OrderResponseDTO
from core.response import success_response
from domain.common.exceptions import BusinessException
from domain.order.service import OrderDomainService
from shared.codes import BusinessCode


router = APIRouter(prefix="/orders", tags=["Orders"])


@router.post("", summary="下单")
def place_order(
    payload: OrderCreateDTO,
    bus: CommandBus = Depends(get_command_bus),
    orders: OrderDomainService = Depends(get_order_service),
):
    result = bus.execute(payload.to_command())
    if not result.success:
        raise BusinessException(code=BusinessCode.BUSINESS_ERROR, message=result.message, error_type="OrderRejected")
    order = orders.get_order(result.order_id)
    return success_response(data=OrderResponseDTO.from_entity(order), message=result.message)


@router.get("", summary="订单列表")
def list_orders(
    customer_id: Optional[str] = Query(None, description="按客户过滤"),
    orders: OrderDomainService = Depends(get_order_service),
):
    return success_response(data=[OrderResponseDTO.from_entity(o) for o in orders.list_orders(customer_id)])


@router.get("/{order_id}", summary="订单详情")
def get_order(order_id: str, orders: OrderDomainService = Depends(get_order_service)):
    return success_response(data=OrderResponseDTO.from_entity(orders.get_order(order_id)))


@router.post("/{order_id}/cancel", summary="取消订单")
def cancel_order(
    order_id: str,
    payload: OrderCancelDTO,
    bus: CommandBus = Depends(get_command_bus),
):
    """
    取消订单

    已确认/已发货的在线支付订单会先发起全额退款，退款失败时订单状态保持不变。
    """
    result = bus.execute(CancelOrderCommand(order_id=order_id, requested_by=payload.requested_by, reason=payload.reason))
    if not result.success:
        raise BusinessException(
            code=BusinessCode.BUSINESS_ERROR,
            message=result.message,
            error_type="OrderCancellationFailed",
            details={"order_id": order_id},
        )
    return success_response(data=asdict(result), message=result.message)
