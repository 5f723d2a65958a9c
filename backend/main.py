import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api import diag_router, order_events_router, webhooks_router
from config import settings
from constants import LOGGER_NAME

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
logger = logging.getLogger(LOGGER_NAME)

app = FastAPI(title="Affiliate Hooks API")

if settings.allowed_origins == ["*"]:
    allow_origins = ["*"]
else:
    allow_origins = settings.allowed_origins

app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(diag_router)
app.include_router(webhooks_router)
app.include_router(order_events_router)


@app.on_event("startup")
async def _on_startup() -> None:
    logger.info(
        "Self-referral rates: %s (%s)",
        ", ".join(f"{slug}={rate}" for slug, rate in settings.self_referral_rates.items()),
        settings.commission_currency,
    )
    if allow_origins == ["*"]:
        logger.warning(
            "CORS is set to allow all origins with credentials; set ALLOWED_ORIGINS to explicit values for local dev."
        )


@app.middleware("http")
async def log_webhook_delivery(request, call_next):
    response = await call_next(request)
    if request.url.path.startswith("/api/webhooks/"):
        logger.info("Webhook %s %s -> %s", request.method, request.url.path, response.status_code)
    return response
