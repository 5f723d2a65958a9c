import asyncio
import logging
from collections import Counter
from dataclasses import asdict
from datetime import datetime
from functools import lru_cache
from typing import Any, Dict, Optional

from config import settings
from constants import LOGGER_NAME
from schemas import OrderEventResponse, OrderStatusEvent
from services.order_events.processor import OrderEventProcessor
from services.order_events.results import SKIP_STATUSES, EventResult, StepResult, StepStatus

logger = logging.getLogger(LOGGER_NAME)


def build_processor() -> OrderEventProcessor:
    from repositories import (
        affiliates_repository,
        attribution_repository,
        commissions_repository,
        orders_repository,
        products_repository,
    )

    return OrderEventProcessor(
        orders=orders_repository,
        products=products_repository,
        directory=affiliates_repository,
        attribution=attribution_repository,
        tags=affiliates_repository,
        parents=affiliates_repository,
        ledger=commissions_repository,
        rates=settings.self_referral_rates,
        currency=settings.commission_currency,
    )


@lru_cache(maxsize=1)
def get_order_event_processor() -> OrderEventProcessor:
    return build_processor()


class OrderEventsMonitor:
    def __init__(self) -> None:
        self._events_handled = 0
        self._last_event_at: Optional[datetime] = None
        self._last_order_id: Optional[int] = None
        self._last_status: Optional[str] = None
        self._last_error: Optional[str] = None
        self._status_counts: Counter = Counter()

    def record(self, order_id: int, status: str, error: Optional[str] = None) -> None:
        self._events_handled += 1
        self._last_event_at = datetime.utcnow()
        self._last_order_id = order_id
        self._last_status = status
        self._status_counts[status] += 1
        if error:
            self._last_error = error

    def get_status(self) -> Dict[str, Any]:
        return {
            "events_handled": self._events_handled,
            "last_event_at": self._last_event_at,
            "last_order_id": self._last_order_id,
            "last_status": self._last_status,
            "last_error": self._last_error,
            "status_counts": dict(self._status_counts),
        }


order_events_monitor = OrderEventsMonitor()


def _log_step(order_id: int, step: StepResult) -> None:
    if step.status == StepStatus.ERROR:
        logger.error("order=%s step=%s %s", order_id, step.step, step.message)
    elif step.status == StepStatus.WRITE_FAILURE or step.failures:
        logger.error("order=%s step=%s %s", order_id, step.step, step.message)
        for failure in step.failures:
            logger.error(
                "order=%s step=%s %s on %s failed: %s",
                order_id,
                step.step,
                failure.operation,
                failure.table,
                failure.error,
            )
            logger.error("order=%s step=%s payload=%s", order_id, step.step, failure.payload)
    elif step.status in SKIP_STATUSES:
        logger.warning("order=%s step=%s %s", order_id, step.step, step.message)
    else:
        logger.info("order=%s step=%s %s", order_id, step.step, step.message)
    if step.data.get("verified") is False:
        logger.warning(
            "order=%s parent affiliate check failed: expected=%s found=%s",
            order_id,
            step.data.get("parent_id"),
            step.data.get("parents"),
        )


def log_event_result(result: EventResult) -> None:
    if result.status in SKIP_STATUSES:
        logger.warning("order=%s status=%s %s", result.order_id, result.new_status, result.message)
    for step in result.steps:
        _log_step(result.order_id, step)


def _to_response(result: EventResult) -> OrderEventResponse:
    return OrderEventResponse(
        order_id=result.order_id,
        old_status=result.old_status,
        new_status=result.new_status,
        customer_id=result.customer_id,
        status=result.status.value,
        message=result.message,
        steps=[
            {
                "step": step.step,
                "status": step.status.value,
                "message": step.message,
                "notes": step.notes,
                "failures": [asdict(failure) for failure in step.failures],
                "data": step.data,
                "error": step.error,
            }
            for step in result.steps
        ],
    )


def process_order_event(
    processor: OrderEventProcessor,
    event: OrderStatusEvent,
) -> OrderEventResponse:
    try:
        result = processor.handle_transition(event.order_id, event.old_status, event.new_status)
    except Exception as exc:
        logger.exception("Order event failed order=%s status=%s: %s", event.order_id, event.new_status, exc)
        order_events_monitor.record(event.order_id, StepStatus.ERROR.value, error=str(exc))
        return OrderEventResponse(
            order_id=event.order_id,
            old_status=event.old_status,
            new_status=event.new_status,
            status=StepStatus.ERROR.value,
            message=str(exc),
        )
    log_event_result(result)
    errors = [step.error for step in result.steps if step.error]
    errors += [failure.error for step in result.steps for failure in step.failures]
    order_events_monitor.record(result.order_id, result.status.value, error=errors[0] if errors else None)
    return _to_response(result)


async def handle_order_event(
    processor: OrderEventProcessor,
    event: OrderStatusEvent,
) -> OrderEventResponse:
    return await asyncio.to_thread(process_order_event, processor, event)
