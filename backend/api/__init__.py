from .diag import router as diag_router
from .order_events import router as order_events_router
from .webhooks import router as webhooks_router

__all__ = [
    "diag_router",
    "order_events_router",
    "webhooks_router",
]
