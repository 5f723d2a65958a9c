from typing import List

from postgrest.exceptions import APIError

from errors import RepositoryWriteError
from supabase_client import supabase

AFFILIATES_TABLE = "affiliates"
PARENTS_TABLE = "affiliate_parents"
USER_TAGS_TABLE = "affiliate_user_tags"

ACTIVE_STATUS = "active"


def is_affiliate(user_id: int) -> bool:
    response = (
        supabase.table(AFFILIATES_TABLE)
        .select("user_id")
        .eq("user_id", user_id)
        .eq("status", ACTIVE_STATUS)
        .limit(1)
        .execute()
    )
    return bool(response.data)


def get_parents(user_id: int) -> List[int]:
    """Ancestor affiliate ids of ``user_id``, nearest first."""
    response = (
        supabase.table(PARENTS_TABLE)
        .select("parent_id,tier")
        .eq("user_id", user_id)
        .order("tier")
        .execute()
    )
    return [int(row["parent_id"]) for row in response.data or []]


def assign_parent(user_id: int, parent_id: int) -> None:
    """Replace the chain of ``user_id`` with ``parent_id`` followed by its own ancestors.

    The new tiers are upserted over the old ones before any deeper tier is
    dropped, so a failed write leaves the previous chain in place.
    """
    chain = [parent_id] + [pid for pid in get_parents(parent_id) if pid not in (user_id, parent_id)]
    rows = [
        {"user_id": user_id, "parent_id": pid, "tier": tier}
        for tier, pid in enumerate(chain, start=1)
    ]
    try:
        supabase.table(PARENTS_TABLE).upsert(rows, on_conflict="user_id,tier").execute()
    except APIError as exc:
        raise RepositoryWriteError(
            PARENTS_TABLE, "upsert", {"rows": rows}, exc.message or str(exc)
        ) from exc
    try:
        supabase.table(PARENTS_TABLE).delete().eq("user_id", user_id).gt("tier", len(chain)).execute()
    except APIError as exc:
        raise RepositoryWriteError(
            PARENTS_TABLE, "delete", {"user_id": user_id, "tier_gt": len(chain)}, exc.message or str(exc)
        ) from exc


def attach_tag(user_id: int, tag: str) -> None:
    record = {"user_id": user_id, "tag": tag}
    try:
        supabase.table(USER_TAGS_TABLE).upsert(
            record, on_conflict="user_id,tag", ignore_duplicates=True
        ).execute()
    except APIError as exc:
        raise RepositoryWriteError(USER_TAGS_TABLE, "upsert", record, exc.message or str(exc)) from exc
