from typing import Optional

from models import Product
from supabase_client import supabase

PRODUCTS_TABLE = "shop_products"


def get_product(product_id: int) -> Optional[Product]:
    response = (
        supabase.table(PRODUCTS_TABLE)
        .select("id,slug")
        .eq("id", product_id)
        .limit(1)
        .execute()
    )
    rows = response.data or []
    if not rows:
        return None
    return Product(id=int(rows[0]["id"]), slug=rows[0].get("slug") or "")
