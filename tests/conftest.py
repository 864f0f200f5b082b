import pytest

from fxcache.db.currency_store import CurrencyStore
from fxcache.db.dal import Database
from fxcache.db.migrate import apply_migrations
from fxcache.db.rate_store import RateStore
from fxcache.services.rates.cache_service import RateCacheManager
from tests.fakes import FakeProvider

FIXED_NOW = 1_700_000_000.0


@pytest.fixture
def db_path(tmp_path):
    path = tmp_path / "fxcache.sqlite3"
    apply_migrations(path)
    return path


@pytest.fixture
def db(db_path):
    return Database(db_path)


@pytest.fixture
def currency_store(db):
    return CurrencyStore(db)


@pytest.fixture
def rate_store(db):
    return RateStore(db)


@pytest.fixture
def seeded_currencies(currency_store):
    for code, name in (("EUR", "Euro"), ("USD", "United States Dollar"), ("GBP", "Pound")):
        currency_store.upsert(code, f"{code} ({name})")
    return currency_store


@pytest.fixture
def provider():
    return FakeProvider(
        rates={
            "EUR": (1_700_000_100, {"USD": 1.08, "GBP": 0.86, "JPY": 160.1}),
            "USD": (1_700_000_100, {"EUR": 0.925, "GBP": 0.79}),
        }
    )


@pytest.fixture
def manager(db, provider):
    return RateCacheManager(
        db, provider, tracked_codes=["USD", "EUR"], clock=lambda: FIXED_NOW
    )
