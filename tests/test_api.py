import asyncio
import time

import httpx
import pytest
from fastapi.testclient import TestClient

from fxcache.core.config import Settings
from fxcache.main import create_app


@pytest.fixture
def app(db_path, manager):
    return create_app(settings_override=Settings(db_path=db_path), manager=manager)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def anyio_backend():
    return "asyncio"


def test_root_and_health(client):
    assert client.get("/").status_code == 200
    body = client.get("/health").json()
    assert body["status"] == "ok"
    assert body["currencies"] == 0
    assert body["currencies_list_populated"] is False


def test_request_id_header(client):
    resp = client.get("/health", headers={"x-request-id": "abc"})
    assert resp.headers["x-request-id"] == "abc"


def test_currencies_cached_between_calls(client, provider):
    first = client.get("/currencies").json()
    second = client.get("/currencies").json()
    assert provider.symbol_calls == 1
    assert first["currencies"] == second["currencies"]
    assert first["populated"] is True
    assert first["currencies"]["EUR"] == "EUR (Euro)"


def test_force_refresh_failure_reports_no_update(client, provider):
    client.get("/currencies")
    provider.fail_symbols = True
    resp = client.post("/currencies/refresh")
    assert resp.status_code == 502
    assert resp.json()["detail"] == "no update applied"
    assert client.get("/currencies").json()["currencies"]["USD"]


def test_unforced_failure_returns_empty_list(client, provider):
    provider.fail_symbols = True
    body = client.get("/currencies").json()
    assert body == {"populated": False, "refreshed_at": None, "currencies": {}}
    assert client.get("/currencies?force_update=true").status_code == 502


def test_selected_currencies(client):
    assert list(client.get("/currencies/selected").json()) == ["USD", "EUR"]
    assert client.get("/currencies/selected?codes=JPY").json() == {
        "JPY": "JPY (Japanese Yen)"
    }


def test_refresh_rates_and_convert(client):
    client.post("/currencies/refresh")
    report = client.post("/rates/refresh", json={"bases": ["eur", "usd"]}).json()
    assert report["succeeded"] == ["EUR", "USD"]

    entry = client.get("/rates/EUR/USD").json()
    assert entry["rate"] == pytest.approx(1.08)
    assert entry["timestamp"] == 1_700_000_100
    assert len(client.get("/rates", params={"base": "USD"}).json()) == 2

    conv = client.get(
        "/convert", params={"base": "EUR", "second": "USD", "amount": 100, "precision": 2}
    ).json()
    assert conv["result"] == 108.0
    assert conv["available"] is True


def test_refresh_rates_defaults_to_eur(client, provider):
    client.post("/currencies/refresh")
    report = client.post("/rates/refresh").json()
    assert report["succeeded"] == ["EUR"]
    assert provider.rate_calls == ["EUR"]


def test_refresh_rates_partial_failure(client, provider):
    client.post("/currencies/refresh")
    provider.fail_bases = {"USD"}
    report = client.post("/rates/refresh", json={"bases": ["EUR", "USD"]}).json()
    assert report["failed"] == ["USD"]
    assert report["outcomes"][1]["error"]


def test_missing_rate(client):
    resp = client.get("/rates/EUR/JPY")
    assert resp.status_code == 404
    assert resp.json()["error"] == "not_found"
    conv = client.get("/convert", params={"base": "EUR", "second": "JPY", "amount": 5}).json()
    assert conv["result"] == 0
    assert conv["available"] is False


def test_convert_validation(client):
    resp = client.get("/convert", params={"base": "EUR", "second": "USD", "precision": -1})
    assert resp.status_code == 422
    assert resp.json()["error"] == "validation_error"


def test_delete_local_data(client):
    client.post("/currencies/refresh")
    client.post("/rates/refresh", json={"bases": ["EUR"]})
    body = client.delete("/local-data").json()
    assert body["removed"] == {"rates": 3, "currencies": 4}
    assert client.get("/rates").json() == []
    assert client.get("/health").json()["currencies"] == 0


def test_unknown_route(client):
    resp = client.get("/nope")
    assert resp.status_code == 404
    assert resp.json()["error"] == "not_found"


def test_set_rate_manually(client):
    client.post("/currencies/refresh")
    resp = client.put("/rates/usd/jpy", json={"rate": 151.2, "timestamp": 1_700_000_500})
    assert resp.status_code == 200
    assert resp.json() == {
        "base_currency": "USD",
        "second_currency": "JPY",
        "rate": 151.2,
        "timestamp": 1_700_000_500,
    }
    stale = client.put("/rates/USD/JPY", json={"rate": 149.0, "timestamp": 1})
    assert stale.status_code == 409
    assert client.get("/rates/USD/JPY").json()["rate"] == 151.2


def test_set_rate_unknown_currency(client):
    client.post("/currencies/refresh")
    resp = client.put("/rates/EUR/XXX", json={"rate": 2.0})
    assert resp.status_code == 404
    assert resp.json()["error"] == "unknown_currency"


def test_set_rate_rejects_non_positive(client):
    resp = client.put("/rates/EUR/USD", json={"rate": 0})
    assert resp.status_code == 422


def test_currencies_refresh_skips_blank_symbols(client, provider):
    provider.symbols = {"EUR": "Euro", " ": "Blank", "USD": "United States Dollar"}
    resp = client.post("/currencies/refresh")
    assert resp.status_code == 200
    assert resp.json()["currencies"] == {
        "EUR": "EUR (Euro)",
        "USD": "USD (United States Dollar)",
    }


def test_manager_is_shared_by_routers(app, manager):
    assert app.state.manager is manager


@pytest.mark.anyio
async def test_convert_answers_while_refresh_waits_on_provider(app, manager, provider):
    manager.get_currencies_list()
    manager.rates.upsert("EUR", "USD", 1.1, 1)
    provider.rate_delay = 1.0

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        started = time.perf_counter()
        refresh = asyncio.create_task(ac.post("/rates/refresh", json={"bases": ["EUR"]}))
        await asyncio.sleep(0.1)
        resp = await ac.get(
            "/convert",
            params={"base": "EUR", "second": "USD", "amount": 10, "precision": 2},
        )
        elapsed = time.perf_counter() - started

        assert resp.json()["result"] == 11.0
        assert elapsed < 0.6
        assert not refresh.done()
        report = (await refresh).json()

    assert report["succeeded"] == ["EUR"]
    assert manager.rates.find_rate("EUR", "USD") == pytest.approx(1.08)
