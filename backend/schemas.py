from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class OrderStatusEvent(BaseModel):
    order_id: int = Field(..., description="Shop order identifier")
    old_status: Optional[str] = Field(
        default=None, description="Status the order left, when the shop reports it"
    )
    new_status: str = Field(..., description="Status the order moved to, e.g. pending")


class WriteFailureItem(BaseModel):
    operation: str
    table: str
    payload: Dict[str, Any] = {}
    error: str


class StepResultItem(BaseModel):
    step: str
    status: str
    message: str = ""
    notes: List[str] = []
    failures: List[WriteFailureItem] = []
    data: Dict[str, Any] = {}
    error: Optional[str] = None


class OrderEventResponse(BaseModel):
    order_id: int
    old_status: Optional[str] = None
    new_status: str
    customer_id: Optional[int] = None
    status: str
    message: str = ""
    steps: List[StepResultItem] = []


class OrderEventsStatusResponse(BaseModel):
    events_handled: int
    last_event_at: Optional[datetime]
    last_order_id: Optional[int]
    last_status: Optional[str]
    last_error: Optional[str]
    status_counts: Dict[str, int] = {}


class HealthResponse(BaseModel):
    status: str
