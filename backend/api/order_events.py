from fastapi import APIRouter

from schemas import OrderEventsStatusResponse
from services import order_events_service

router = APIRouter(prefix="/api/order-events", tags=["order-events"])


@router.get("/status", response_model=OrderEventsStatusResponse)
async def get_status() -> OrderEventsStatusResponse:
    return OrderEventsStatusResponse(**order_events_service.order_events_monitor.get_status())
