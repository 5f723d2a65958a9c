import os
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Dict, List

from dotenv import load_dotenv

from constants import DEFAULT_COMMISSION_CURRENCY, DEFAULT_SELF_REFERRAL_RATES

load_dotenv(Path(__file__).resolve().parent / ".env")


def _require_env(name: str) -> str:
    value = os.getenv(name)
    if not value:
        raise RuntimeError(f"Missing required environment variable: {name}")
    return value


def _get_list(name: str, fallback: str = "") -> List[str]:
    raw_value = os.getenv(name, fallback)
    if not raw_value:
        return []
    return [item.strip() for item in raw_value.split(",") if item.strip()]


def parse_rates(items: List[str]) -> Dict[str, Decimal]:
    """Parse ``slug:rate`` pairs, keeping their order (first match wins on lookup)."""
    rates: Dict[str, Decimal] = {}
    for item in items:
        slug, sep, raw_rate = item.partition(":")
        if not sep or not slug.strip():
            raise RuntimeError(f"Invalid self-referral rate entry: {item!r}")
        try:
            rate = Decimal(raw_rate.strip())
        except InvalidOperation as exc:
            raise RuntimeError(f"Invalid self-referral rate entry: {item!r}") from exc
        if rate < 0 or rate > 1:
            raise RuntimeError(f"Self-referral rate out of range: {item!r}")
        rates[slug.strip().lower()] = rate
    return rates


def _get_rates(name: str) -> Dict[str, Decimal]:
    items = _get_list(name)
    if not items:
        return dict(DEFAULT_SELF_REFERRAL_RATES)
    return parse_rates(items)


@dataclass(frozen=True)
class Settings:
    supabase_url: str = _require_env("SUPABASE_URL")
    supabase_service_role_key: str = _require_env("SUPABASE_SERVICE_ROLE_KEY")
    webhook_secret: str = _require_env("WEBHOOK_SECRET")
    commission_currency: str = os.getenv("COMMISSION_CURRENCY", DEFAULT_COMMISSION_CURRENCY)
    log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()
    allowed_origins: List[str] = field(
        default_factory=lambda: _get_list("ALLOWED_ORIGINS", "*")
    )
    self_referral_rates: Dict[str, Decimal] = field(
        default_factory=lambda: _get_rates("SELF_REFERRAL_RATES")
    )


settings = Settings()
