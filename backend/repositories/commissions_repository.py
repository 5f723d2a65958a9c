from postgrest.exceptions import APIError

from errors import DuplicateCommissionError, RepositoryWriteError
from models import CommissionRecord
from supabase_client import supabase

REFERRALS_TABLE = "affiliate_referrals"

UNIQUE_VIOLATION = "23505"


def exists(order_id: int, affiliate_id: int) -> bool:
    response = (
        supabase.table(REFERRALS_TABLE)
        .select("id", count="exact")
        .eq("order_id", order_id)
        .eq("affiliate_id", affiliate_id)
        .limit(1)
        .execute()
    )
    if response.count is not None:
        return response.count > 0
    return bool(response.data)


def insert(record: CommissionRecord) -> None:
    row = record.to_row()
    try:
        response = supabase.table(REFERRALS_TABLE).insert(row).execute()
    except APIError as exc:
        if exc.code == UNIQUE_VIOLATION:
            raise DuplicateCommissionError(REFERRALS_TABLE, "insert", row, exc.message or str(exc)) from exc
        raise RepositoryWriteError(REFERRALS_TABLE, "insert", row, exc.message or str(exc)) from exc
    if not response.data:
        raise RepositoryWriteError(REFERRALS_TABLE, "insert", row, "no row returned")
