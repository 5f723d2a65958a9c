import os

import pytest

_REQUIRED_DEFAULTS = {
    "SUPABASE_URL": "http://localhost:54321",
    "SUPABASE_SERVICE_ROLE_KEY": (
        "eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9."
        "eyJyb2xlIjoic2VydmljZV9yb2xlIn0."
        "dGVzdC1zaWduYXR1cmU"
    ),
    "WEBHOOK_SECRET": "test-webhook-secret",
}
for _k, _v in _REQUIRED_DEFAULTS.items():
    os.environ.setdefault(_k, _v)

from fakes import (  # noqa: E402
    FakeAttribution,
    FakeCatalog,
    FakeDirectory,
    FakeLedger,
    FakeOrders,
    build_fake_processor,
)


@pytest.fixture
def orders():
    return FakeOrders()


@pytest.fixture
def catalog():
    return FakeCatalog(
        {
            1: "beginner",
            2: "basic",
            3: "advanced",
            4: "mastery",
            9: "unknown",
        }
    )


@pytest.fixture
def directory():
    return FakeDirectory()


@pytest.fixture
def attribution():
    return FakeAttribution()


@pytest.fixture
def ledger():
    return FakeLedger()


@pytest.fixture
def processor(orders, catalog, directory, attribution, ledger):
    return build_fake_processor(orders, catalog, directory, attribution, ledger)
