"""Tests for the HTTP API."""
from fastapi.testclient import TestClient
import pytest
from eventlens.adapters.columnar import ColumnarStoreAdapter
from eventlens.config import Settings
from eventlens.event_models import Store
from eventlens.main import create_app
from eventlens.services.query_service import QueryService
from test_query_service import RecordingAdapter


@pytest.fixture
def client(duckdb_conn):
    service = QueryService({Store.COLUMNAR: ColumnarStoreAdapter(duckdb_conn)}, max_limit=1000)
    return TestClient(create_app(Settings(), query_service=service))


def test_list_events_defaults(client):
    r = client.get("/api/events")
    assert r.status_code == 200
    data = r.json()
    assert data["count"] == 7
    assert len(data["events"]) == 7
    assert set(data["events"][0]) == {"timestamp", "tool", "topic", "structured"}
    assert data["params"] == {
        "timeRange": None,
        "content": None,
        "topic": None,
        "database": "columnar",
        "limit": 100,
        "offset": 0,
    }


def test_list_events_with_filters(client):
    r = client.get(
        "/api/events",
        params={"timeRange": "1h", "content": "load", "topic": "cpu", "database": "clickhouse", "limit": 1, "offset": 1},
    )
    assert r.status_code == 200
    data = r.json()
    assert data["count"] == 1
    assert data["events"][0]["structured"] == '{"load": 0.9, "host": "db-1"}'
    assert data["params"]["database"] == "columnar"
    assert data["params"]["timeRange"] == "1h"


def test_limit_is_clamped_and_echoed(client):
    r = client.get("/api/events", params={"limit": 50_000})
    assert r.status_code == 200
    assert r.json()["params"]["limit"] == 1000


def test_bad_parameters_return_error_body(client):
    r = client.get("/api/events", params={"database": "mysql"})
    assert r.status_code == 400
    assert "mysql" in r.json()["error"]

    r = client.get("/api/events", params={"limit": "many"})
    assert r.status_code == 400
    assert "limit" in r.json()["error"]


def test_unconfigured_store_returns_503(client):
    r = client.get("/api/events", params={"database": "postgresql"})
    assert r.status_code == 503
    assert r.json() == {"error": "relational store is not configured"}


def test_store_failure_returns_error_without_events():
    service = QueryService({Store.COLUMNAR: RecordingAdapter(Store.COLUMNAR, error=RuntimeError("table is locked"))})
    client = TestClient(create_app(Settings(), query_service=service))

    r = client.get("/api/events")
    assert r.status_code == 500
    assert r.json() == {"error": "table is locked"}


def test_no_service_configured():
    client = TestClient(create_app(Settings(), query_service=None))
    r = client.get("/api/events")
    assert r.status_code == 503
    assert "error" in r.json()


def test_charts_require_topic(client):
    r = client.get("/api/charts", params={"timeRange": "1h"})
    assert r.status_code == 400
    assert r.json() == {"error": "Please enter a topic filter"}


def test_charts_auto_select_first_field(client):
    r = client.get("/api/charts", params={"timeRange": "1d", "topic": "cpu"})
    assert r.status_code == 200
    data = r.json()
    assert data["count"] == 4
    assert data["fields"] == ["cores[0]", "cores[1]", "load"]
    assert data["selected"] == ["cores[0]"]
    # Every event gets a bucket; only one carries the selected field
    assert len(data["series"]) == 4
    assert [p for p in data["series"] if "cores[0]" in p] == [{"time": data["series"][-1]["time"], "cores[0]": 1.0}]


def test_charts_with_selected_fields(client):
    r = client.get("/api/charts", params=[("topic", "cpu"), ("fields", "load"), ("timeRange", "1h")])
    assert r.status_code == 200
    data = r.json()
    assert data["selected"] == ["load"]
    assert [point["load"] for point in data["series"]] == [1.5, 0.9, 0.5]
    assert all(set(point) == {"time", "load"} for point in data["series"])


def test_api_health_and_stats(client):
    r = client.get("/api/health")
    assert r.status_code == 200
    assert r.json()["status"] == "ok"

    r = client.get("/api/stats")
    assert r.status_code == 200
    assert r.json()["stores"] == {"columnar": "connected", "relational": "not_configured"}


def test_unknown_api_route(client):
    r = client.get("/api/nope")
    assert r.status_code == 404


def test_default_page_size_comes_from_settings(duckdb_conn):
    service = QueryService({Store.COLUMNAR: ColumnarStoreAdapter(duckdb_conn)}, max_limit=1000)
    client = TestClient(create_app(Settings(DEFAULT_PAGE_SIZE=3), query_service=service))

    r = client.get("/api/events")
    assert r.status_code == 200
    assert r.json()["count"] == 3
    assert r.json()["params"]["limit"] == 3

    r = client.get("/api/events", params={"limit": 5})
    assert r.json()["params"]["limit"] == 5


def test_error_body_is_documented(client):
    schema = client.get("/openapi.json").json()
    responses = schema["paths"]["/api/events"]["get"]["responses"]
    for status in ("400", "500", "503"):
        assert responses[status]["content"]["application/json"]["schema"] == {
            "$ref": "#/components/schemas/ErrorResponse"
        }
    assert "503" in schema["paths"]["/api/charts"]["get"]["responses"]
