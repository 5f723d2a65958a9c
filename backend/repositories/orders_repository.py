from decimal import Decimal
from typing import Any, Dict, List, Optional

from postgrest.exceptions import APIError

from errors import RepositoryWriteError
from models import Order, OrderItem
from supabase_client import supabase

ORDERS_TABLE = "shop_orders"
ORDER_ITEMS_TABLE = "shop_order_items"
ORDER_NOTES_TABLE = "shop_order_notes"


def _fetch_items(order_id: int) -> List[Dict[str, Any]]:
    response = (
        supabase.table(ORDER_ITEMS_TABLE)
        .select("product_id,position")
        .eq("order_id", order_id)
        .order("position")
        .execute()
    )
    return response.data or []


def get_order(order_id: int) -> Optional[Order]:
    response = (
        supabase.table(ORDERS_TABLE)
        .select("id,customer_id,total")
        .eq("id", order_id)
        .limit(1)
        .execute()
    )
    rows = response.data or []
    if not rows:
        return None
    row = rows[0]
    items = [
        OrderItem(product_id=int(item["product_id"]))
        for item in _fetch_items(order_id)
        if item.get("product_id") is not None
    ]
    customer_id = row.get("customer_id")
    return Order(
        id=int(row["id"]),
        customer_id=int(customer_id) if customer_id else None,
        items=items,
        total=Decimal(str(row.get("total") or "0")),
    )


def add_note(order_id: int, text: str) -> None:
    record = {"order_id": order_id, "note": text}
    try:
        supabase.table(ORDER_NOTES_TABLE).insert(record).execute()
    except APIError as exc:
        raise RepositoryWriteError(ORDER_NOTES_TABLE, "insert", record, exc.message or str(exc)) from exc
