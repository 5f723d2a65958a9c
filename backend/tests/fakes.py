from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Set, Tuple

from postgrest.exceptions import APIError

from errors import DuplicateCommissionError, RepositoryWriteError
from models import CommissionRecord, Order, OrderItem, Product
from services.order_events.processor import OrderEventProcessor

FIXED_NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def make_order(
    order_id: int,
    customer_id: Optional[int],
    product_ids: Iterable[int],
    total: str = "100.00",
) -> Order:
    return Order(
        id=order_id,
        customer_id=customer_id,
        items=[OrderItem(product_id=pid) for pid in product_ids],
        total=Decimal(total),
    )


class FakeOrders:
    def __init__(self) -> None:
        self.orders: Dict[int, Order] = {}
        self.notes: Dict[int, List[str]] = {}
        self.fail_notes = False

    def add(self, order: Order) -> Order:
        self.orders[order.id] = order
        return order

    def get_order(self, order_id: int) -> Optional[Order]:
        return self.orders.get(order_id)

    def add_note(self, order_id: int, text: str) -> None:
        if self.fail_notes:
            raise RepositoryWriteError("shop_order_notes", "insert", {"order_id": order_id}, "notes offline")
        self.notes.setdefault(order_id, []).append(text)


class FakeCatalog:
    def __init__(self, slugs: Dict[int, str]) -> None:
        self.slugs = dict(slugs)
        self.lookups: List[int] = []

    def get_product(self, product_id: int) -> Optional[Product]:
        self.lookups.append(product_id)
        slug = self.slugs.get(product_id)
        if slug is None:
            return None
        return Product(id=product_id, slug=slug)


class FakeDirectory:
    """Affiliate directory that also serves as tag and parent-link writer."""

    def __init__(self) -> None:
        self.affiliates: Set[int] = set()
        self.parents: Dict[int, List[int]] = {}
        self.tags: Dict[int, Set[str]] = {}
        self.failing_tags: Set[str] = set()
        self.fail_assign = False
        self.ignore_assign = False
        self.assign_calls: List[Tuple[int, int]] = []

    def is_affiliate(self, user_id: int) -> bool:
        return user_id in self.affiliates

    def get_parents(self, user_id: int) -> List[int]:
        return list(self.parents.get(user_id, []))

    def assign_parent(self, user_id: int, parent_id: int) -> None:
        self.assign_calls.append((user_id, parent_id))
        if self.fail_assign:
            raise RepositoryWriteError("affiliate_parents", "insert", {"user_id": user_id}, "boom")
        if self.ignore_assign:
            return
        chain = [parent_id] + [pid for pid in self.parents.get(parent_id, []) if pid != user_id]
        self.parents[user_id] = chain

    def attach_tag(self, user_id: int, tag: str) -> None:
        if tag in self.failing_tags:
            raise RepositoryWriteError("affiliate_user_tags", "upsert", {"user_id": user_id, "tag": tag}, "denied")
        self.tags.setdefault(user_id, set()).add(tag)


class FakeAttribution:
    def __init__(self) -> None:
        self.referrers: Dict[int, int] = {}
        self.fail_lookup = False

    def get_referrer_for_order(self, order_id: int) -> Optional[int]:
        if self.fail_lookup:
            raise APIError({"message": "canceling statement due to statement timeout", "code": "57014"})
        return self.referrers.get(order_id)


class FakeLedger:
    """Commission table with the (order_id, affiliate_id) unique key."""

    def __init__(self) -> None:
        self.records: List[CommissionRecord] = []
        self.fail_insert = False
        self.hide_existing = False
        self.fail_exists = False

    def exists(self, order_id: int, affiliate_id: int) -> bool:
        if self.fail_exists:
            raise APIError({"message": "connection refused", "code": "08006"})
        if self.hide_existing:
            return False
        return any(r.order_id == order_id and r.affiliate_id == affiliate_id for r in self.records)

    def insert(self, record: CommissionRecord) -> None:
        row = record.to_row()
        if self.fail_insert:
            raise RepositoryWriteError("affiliate_referrals", "insert", row, "connection reset")
        if any(r.order_id == record.order_id and r.affiliate_id == record.affiliate_id for r in self.records):
            raise DuplicateCommissionError("affiliate_referrals", "insert", row, "duplicate key value")
        self.records.append(record)


def build_fake_processor(orders, catalog, directory, attribution, ledger, **kwargs) -> OrderEventProcessor:
    return OrderEventProcessor(
        orders=orders,
        products=catalog,
        directory=directory,
        attribution=attribution,
        tags=directory,
        parents=directory,
        ledger=ledger,
        clock=lambda: FIXED_NOW,
        **kwargs,
    )
