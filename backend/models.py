from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from constants import (
    COMMISSION_STATUS_UNPAID,
    COMMISSION_TYPE_SELF_REFERRAL,
    DEFAULT_COMMISSION_CURRENCY,
)


@dataclass
class OrderItem:
    product_id: int


@dataclass
class Order:
    id: int
    customer_id: Optional[int]
    items: List[OrderItem] = field(default_factory=list)
    total: Decimal = Decimal("0")


@dataclass
class Product:
    id: int
    slug: str


@dataclass
class CommissionRecord:
    affiliate_id: int
    order_id: int
    datetime: datetime
    amount: Decimal
    currency_id: str = DEFAULT_COMMISSION_CURRENCY
    status: str = COMMISSION_STATUS_UNPAID
    type: str = COMMISSION_TYPE_SELF_REFERRAL

    def to_row(self) -> Dict[str, Any]:
        row = asdict(self)
        row["datetime"] = self.datetime.isoformat()
        row["amount"] = str(self.amount)
        return row
