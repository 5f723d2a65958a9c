from datetime import datetime, timezone
from decimal import Decimal
from types import SimpleNamespace

import pytest
from postgrest.exceptions import APIError

from errors import DuplicateCommissionError, RepositoryWriteError
from models import CommissionRecord
from repositories import (
    affiliates_repository,
    attribution_repository,
    commissions_repository,
    orders_repository,
    products_repository,
)


class FakeQuery:
    def __init__(self, client, table):
        self.client = client
        self.table = table
        self.calls = []

    def __getattr__(self, name):
        def _call(*args, **kwargs):
            self.calls.append((name, args, kwargs))
            return self

        return _call

    def execute(self):
        self.client.executed.append(self)
        outcome = self.client.responses.get(self.table, [])
        if isinstance(outcome, list):
            outcome = outcome.pop(0) if outcome else SimpleNamespace(data=[], count=None)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    def called(self, name):
        return [args for call, args, _ in self.calls if call == name]


class FakeSupabase:
    def __init__(self):
        self.responses = {}
        self.executed = []

    def respond(self, table, *outcomes):
        self.responses.setdefault(table, []).extend(outcomes)

    def table(self, name):
        return FakeQuery(self, name)


def _rows(*rows, count=None):
    return SimpleNamespace(data=list(rows), count=count)


@pytest.fixture
def fake_supabase(monkeypatch):
    client = FakeSupabase()
    for module in (
        affiliates_repository,
        attribution_repository,
        commissions_repository,
        orders_repository,
        products_repository,
    ):
        monkeypatch.setattr(module, "supabase", client)
    return client


def test_get_order_builds_items_in_position_order(fake_supabase):
    fake_supabase.respond("shop_orders", _rows({"id": 5, "customer_id": 7, "total": "120.50"}))
    fake_supabase.respond("shop_order_items", _rows({"product_id": 2}, {"product_id": 3}))

    order = orders_repository.get_order(5)

    assert order.customer_id == 7
    assert order.total == Decimal("120.50")
    assert [item.product_id for item in order.items] == [2, 3]
    items_query = fake_supabase.executed[1]
    assert items_query.called("order") == [("position",)]


def test_get_order_reads_only_the_columns_it_uses(fake_supabase):
    fake_supabase.respond("shop_orders", _rows({"id": 5, "customer_id": 7, "total": "1"}))

    orders_repository.get_order(5)

    order_query, items_query = fake_supabase.executed
    assert order_query.called("select") == [("id,customer_id,total",)]
    assert items_query.called("select") == [("product_id,position",)]


def test_get_order_without_customer(fake_supabase):
    fake_supabase.respond("shop_orders", _rows({"id": 5, "customer_id": 0, "total": 10}))

    assert orders_repository.get_order(5).customer_id is None


def test_get_order_missing(fake_supabase):
    assert orders_repository.get_order(5) is None


def test_add_note_wraps_api_errors(fake_supabase):
    fake_supabase.respond("shop_order_notes", APIError({"message": "permission denied", "code": "42501"}))

    with pytest.raises(RepositoryWriteError) as excinfo:
        orders_repository.add_note(5, "hello")

    assert excinfo.value.table == "shop_order_notes"
    assert excinfo.value.payload == {"order_id": 5, "note": "hello"}


def test_get_product(fake_supabase):
    fake_supabase.respond("shop_products", _rows({"id": 2, "slug": "basic"}))

    product = products_repository.get_product(2)

    assert product.slug == "basic"
    assert products_repository.get_product(3) is None


def test_is_affiliate_checks_active_status(fake_supabase):
    fake_supabase.respond("affiliates", _rows({"user_id": 7}))

    assert affiliates_repository.is_affiliate(7) is True
    assert ("status", "active") in fake_supabase.executed[0].called("eq")
    assert affiliates_repository.is_affiliate(8) is False


def test_assign_parent_replaces_chain_with_ancestors(fake_supabase):
    fake_supabase.respond(
        "affiliate_parents",
        _rows({"parent_id": 300, "tier": 1}, {"parent_id": 7, "tier": 2}),
        _rows({"user_id": 7}),
        _rows(),
    )

    affiliates_repository.assign_parent(7, 200)

    select_query, upsert_query, delete_query = fake_supabase.executed
    assert select_query.called("eq") == [("user_id", 200)]
    assert upsert_query.calls[0] == (
        "upsert",
        (
            [
                {"user_id": 7, "parent_id": 200, "tier": 1},
                {"user_id": 7, "parent_id": 300, "tier": 2},
            ],
        ),
        {"on_conflict": "user_id,tier"},
    )
    assert delete_query.called("eq") == [("user_id", 7)]
    assert delete_query.called("gt") == [("tier", 2)]


def test_assign_parent_write_failure_keeps_existing_chain(fake_supabase):
    fake_supabase.respond(
        "affiliate_parents",
        _rows(),
        APIError({"message": "permission denied", "code": "42501"}),
    )

    with pytest.raises(RepositoryWriteError) as excinfo:
        affiliates_repository.assign_parent(7, 200)

    assert excinfo.value.operation == "upsert"
    assert excinfo.value.payload == {"rows": [{"user_id": 7, "parent_id": 200, "tier": 1}]}
    assert [query.calls[0][0] for query in fake_supabase.executed] == ["select", "upsert"]


def test_attach_tag_ignores_duplicates(fake_supabase):
    fake_supabase.respond("affiliate_user_tags", _rows())

    affiliates_repository.attach_tag(7, "product-basic")

    query = fake_supabase.executed[0]
    assert query.calls[0] == (
        "upsert",
        ({"user_id": 7, "tag": "product-basic"},),
        {"on_conflict": "user_id,tag", "ignore_duplicates": True},
    )


def test_referrer_excludes_self_referral_rows(fake_supabase):
    fake_supabase.respond("affiliate_referrals", _rows({"affiliate_id": 200}))

    assert attribution_repository.get_referrer_for_order(5) == 200
    assert fake_supabase.executed[0].called("neq") == [("type", "self-referral")]
    assert attribution_repository.get_referrer_for_order(6) is None


def test_commission_exists_uses_count(fake_supabase):
    fake_supabase.respond("affiliate_referrals", _rows(count=1), _rows(count=0))

    assert commissions_repository.exists(5, 7) is True
    assert commissions_repository.exists(5, 7) is False


def _record():
    return CommissionRecord(
        affiliate_id=7,
        order_id=5,
        datetime=datetime(2024, 5, 1, tzinfo=timezone.utc),
        amount=Decimal("30.00"),
    )


def test_commission_insert_row(fake_supabase):
    fake_supabase.respond("affiliate_referrals", _rows({"id": 1}))

    commissions_repository.insert(_record())

    (row,) = fake_supabase.executed[0].called("insert")[0]
    assert row == {
        "affiliate_id": 7,
        "order_id": 5,
        "datetime": "2024-05-01T00:00:00+00:00",
        "amount": "30.00",
        "currency_id": "USD",
        "status": "unpaid",
        "type": "self-referral",
    }


def test_commission_insert_duplicate_key(fake_supabase):
    fake_supabase.respond(
        "affiliate_referrals",
        APIError({"message": "duplicate key value violates unique constraint", "code": "23505"}),
    )

    with pytest.raises(DuplicateCommissionError):
        commissions_repository.insert(_record())


def test_commission_insert_other_error(fake_supabase):
    fake_supabase.respond("affiliate_referrals", APIError({"message": "timeout", "code": "57014"}))

    with pytest.raises(RepositoryWriteError) as excinfo:
        commissions_repository.insert(_record())

    assert not isinstance(excinfo.value, DuplicateCommissionError)
    assert excinfo.value.detail == "timeout"
