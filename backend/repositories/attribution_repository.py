from typing import Optional

from constants import COMMISSION_TYPE_SELF_REFERRAL
from repositories.commissions_repository import REFERRALS_TABLE
from supabase_client import supabase


def get_referrer_for_order(order_id: int) -> Optional[int]:
    # Self-referral rows are written by this service and never name the referrer.
    response = (
        supabase.table(REFERRALS_TABLE)
        .select("affiliate_id")
        .eq("order_id", order_id)
        .neq("type", COMMISSION_TYPE_SELF_REFERRAL)
        .order("id")
        .limit(1)
        .execute()
    )
    rows = response.data or []
    if not rows or rows[0].get("affiliate_id") is None:
        return None
    return int(rows[0]["affiliate_id"])
