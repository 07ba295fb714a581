"""Tests for the read-only dashboard API."""
from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient

from tracklog.models import Interval
from tracklog.webapp import create_app


@pytest.fixture
def client(filled_store, db_path):
    filled_store.save()
    return TestClient(create_app(db_path=db_path))


def test_status_without_tracking(client, db_path):
    payload = client.get("/api/status").json()
    assert payload["tracking"] is False
    assert payload["current"] is None
    assert payload["interval_count"] == 3
    assert payload["database_path"] == str(db_path)


def test_status_with_running_interval(filled_store, db_path):
    filled_store.start(Interval.from_tokens(["live", "+x"]), now=datetime.now() - timedelta(minutes=5))
    filled_store.save()
    payload = TestClient(create_app(db_path=db_path)).get("/api/status").json()
    assert payload["tracking"] is True
    assert payload["current"]["annotation"] == "live"
    assert payload["current"]["end"] is None
    assert payload["current"]["duration_seconds"] >= 300


def test_intervals_all(client, filled_store):
    response = client.get("/api/intervals", params={"filter": ":all"})
    assert response.status_code == 200
    payload = response.json()
    assert payload["filter"] == ":all"
    assert [i["id"] for i in payload["intervals"]] == [i.id for i in filled_store]
    assert payload["intervals"][2]["duration"] == "45m0s"


def test_intervals_by_date(client):
    payload = client.get("/api/intervals", params={"filter": "2024-01-09"}).json()
    assert [i["project"] for i in payload["intervals"]] == ["gott"]


def test_invalid_filter(client):
    response = client.get("/api/intervals", params={"filter": ":fortnight"})
    assert response.status_code == 400


def test_summary_totals(client):
    payload = client.get("/api/summary", params={"filter": ":all"}).json()
    assert payload["total_seconds"] == (2 * 60 + 90 + 45) * 60
    assert [day["date"] for day in payload["days"]] == ["2024-01-08", "2024-01-09", "2024-01-10"]
    assert payload["projects"] == [{"project": "gott", "seconds": 5400.0}]
    assert payload["tags"] == [{"tag": "work", "seconds": 7200.0}]


def test_corrupt_store(db_path):
    db_path.write_text("[{]")
    response = TestClient(create_app(db_path=db_path)).get("/api/status")
    assert response.status_code == 500


def test_run_dashboard_serves_app(monkeypatch, db_path):
    from tracklog import server_runner

    calls = {}

    def fake_run(app, host, port, log_level):
        calls.update(app=app, host=host, port=port, log_level=log_level)

    monkeypatch.setattr(server_runner.uvicorn, "run", fake_run)
    server_runner.run_dashboard(port=9999, db_path=db_path, open_browser=False)

    assert calls["port"] == 9999
    assert calls["host"] == "127.0.0.1"
    assert calls["app"].state.db_path == db_path
