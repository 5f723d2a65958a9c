from fastapi import APIRouter, Depends

from auth import verify_webhook_signature
from constants import ORDER_STATUS_COMPLETED, ORDER_STATUS_PENDING
from schemas import OrderEventResponse, OrderStatusEvent
from services.order_events.processor import OrderEventProcessor
from services.order_events_service import get_order_event_processor, handle_order_event

router = APIRouter(
    prefix="/api/webhooks/orders",
    tags=["webhooks"],
    dependencies=[Depends(verify_webhook_signature)],
)


@router.post("/status", response_model=OrderEventResponse)
async def order_status_changed(
    payload: OrderStatusEvent,
    processor: OrderEventProcessor = Depends(get_order_event_processor),
) -> OrderEventResponse:
    return await handle_order_event(processor, payload)


@router.post("/{order_id}/pending", response_model=OrderEventResponse)
async def order_pending(
    order_id: int,
    old_status: str | None = None,
    processor: OrderEventProcessor = Depends(get_order_event_processor),
) -> OrderEventResponse:
    event = OrderStatusEvent(order_id=order_id, old_status=old_status, new_status=ORDER_STATUS_PENDING)
    return await handle_order_event(processor, event)


@router.post("/{order_id}/completed", response_model=OrderEventResponse)
async def order_completed(
    order_id: int,
    processor: OrderEventProcessor = Depends(get_order_event_processor),
) -> OrderEventResponse:
    event = OrderStatusEvent(order_id=order_id, new_status=ORDER_STATUS_COMPLETED)
    return await handle_order_event(processor, event)
