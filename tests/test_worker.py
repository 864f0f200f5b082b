import threading

from fxcache import worker as worker_mod
from fxcache.core.config import Settings
from fxcache.worker import RatesQueueWorker


def test_run_once_drains_queue_in_order(manager, provider):
    manager.get_currencies_list()
    w = RatesQueueWorker(manager, ["EUR", "USD"])
    assert w.enqueue() == 2
    reports = w.run_once()
    assert w.pending() == 0
    assert provider.rate_calls == ["EUR", "USD"]
    assert [r.succeeded for r in reports] == [["EUR"], ["USD"]]


def test_failed_item_does_not_stop_queue(manager, provider):
    manager.get_currencies_list()
    provider.fail_bases = {"EUR"}
    w = RatesQueueWorker(manager)
    w.enqueue(["eur", "usd"])
    reports = w.run_once()
    assert reports[0].failed == ["EUR"]
    assert reports[1].succeeded == ["USD"]
    assert manager.rates.find_rate("USD", "EUR") > 0


def test_run_forever_stops_on_event(manager, provider, monkeypatch):
    manager.get_currencies_list()
    stop = threading.Event()
    w = RatesQueueWorker(manager, ["EUR"], interval_seconds=3600)
    original = w.process_item

    def process_then_stop(code):
        report = original(code)
        stop.set()
        return report

    monkeypatch.setattr(w, "process_item", process_then_stop)
    w.run_forever(stop)
    assert provider.rate_calls == ["EUR"]
    assert manager.rates.count() == 3


def test_main_runs_single_cycle(manager, provider, tmp_path, monkeypatch):
    settings = Settings(db_path=tmp_path / "cli.db", fixer_base_currencies=["eur"])
    monkeypatch.setattr(worker_mod, "get_settings", lambda: settings)
    monkeypatch.setattr(worker_mod, "init_logging", lambda debug=False: None)
    monkeypatch.setattr(worker_mod, "build_rate_cache_manager", lambda s: manager)

    assert worker_mod.main(["--symbols"]) == 0
    assert provider.symbol_calls == 1
    assert provider.rate_calls == ["EUR"]


def test_main_reports_failure(manager, provider, tmp_path, monkeypatch):
    settings = Settings(db_path=tmp_path / "cli.db")
    monkeypatch.setattr(worker_mod, "get_settings", lambda: settings)
    monkeypatch.setattr(worker_mod, "init_logging", lambda debug=False: None)
    monkeypatch.setattr(worker_mod, "build_rate_cache_manager", lambda s: manager)
    provider.fail_bases = {"GBP"}

    assert worker_mod.main(["GBP"]) == 1
    assert provider.rate_calls == ["GBP"]
