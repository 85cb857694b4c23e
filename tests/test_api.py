"""Tests for the HTTP API."""

from datetime import datetime, timezone
import pytest
from fastapi.testclient import TestClient
from feewindow.api import create_app, SlidingWindowRateLimiter
from feewindow.models import Block, Transaction
from feewindow.stats import aggregate
from feewindow.store import StatsStore

TOKEN = "s3cret"


@pytest.fixture
def store():
    store = StatsStore()
    store.publish(aggregate(
        [Block(1, (Transaction(5, 10),)), Block(2, (Transaction(15, 30),))],
        now=datetime(2024, 1, 1, tzinfo=timezone.utc),
    ))
    return store


@pytest.fixture
def client(store):
    return TestClient(create_app(store, TOKEN))


def test_get_fee_stats(client):
    """Test the stats payload for a valid token."""
    response = client.get("/api", params={"get": "getFeeStats", "token": TOKEN})

    assert response.status_code == 200
    body = response.json()
    assert body["timeStamp"].endswith("Z")
    data = body["data"]
    assert data["totalTransactions"] == 2
    assert data["averageFee"] == 10
    assert data["averageFeePerComputeUnitScaled"] == 500000
    assert data["minFee"] == 5
    assert data["maxComputeUnits"] == 30


def test_get_fee_stats_reads_latest_snapshot(client, store):
    """Test that a newly published snapshot is served."""
    store.publish(aggregate([Block(3, (Transaction(1, 100),))]))

    data = client.get("/api", params={"get": "getFeeStats", "token": TOKEN}).json()["data"]

    assert data["totalTransactions"] == 1
    assert data["maxFee"] == 1


def test_wrong_token_denied(client):
    """Test that a token mismatch is a 403."""
    response = client.get("/api", params={"get": "getFeeStats", "token": "WRONG"})

    assert response.status_code == 403
    assert response.json() == {"error": "Access denied!"}


def test_missing_token_denied(client):
    """Test that no token is a 403 even for unknown operations."""
    response = client.get("/api", params={"get": "bogus"})

    assert response.status_code == 403
    assert response.json() == {"error": "Access denied!"}


def test_empty_configured_token_denies_all(store):
    """Test that an unset secret never matches."""
    client = TestClient(create_app(store, ""))

    response = client.get("/api", params={"get": "getFeeStats", "token": ""})

    assert response.status_code == 403


def test_unknown_operation(client):
    """Test that an unrecognized get value is a soft error with 200."""
    response = client.get("/api", params={"get": "bogus", "token": TOKEN})

    assert response.status_code == 200
    assert response.json() == {"error": "Invalid request!"}


def test_missing_operation(client):
    """Test that a missing get value is a soft error with 200."""
    response = client.get("/api", params={"token": TOKEN})

    assert response.status_code == 200
    assert response.json() == {"error": "Invalid request!"}


@pytest.mark.parametrize("path", ["/", "/stats", "/api/extra", "/docs"])
def test_unknown_paths_not_available(client, path):
    """Test that every other path is a 404 with a JSON body."""
    response = client.get(path)

    assert response.status_code == 404
    assert response.json() == {"error": "This resource is not available."}


def test_other_methods_not_available(client):
    """Test that non-GET requests to /api are a 404."""
    response = client.post("/api", params={"get": "getFeeStats", "token": TOKEN})

    assert response.status_code == 404
    assert response.json() == {"error": "This resource is not available."}


def test_rate_limit_on_api_prefix(store):
    """Test that requests past the limit get a 429 with headers."""
    client = TestClient(create_app(store, TOKEN, rate_limit=3))
    params = {"get": "getFeeStats", "token": TOKEN}

    responses = [client.get("/api", params=params) for _ in range(3)]
    assert [r.status_code for r in responses] == [200, 200, 200]
    assert responses[-1].headers["RateLimit-Remaining"] == "0"

    limited = client.get("/api", params=params)
    assert limited.status_code == 429
    assert limited.json() == {"error": "Too many requests from this IP, please try again in a minute."}
    assert limited.headers["RateLimit-Limit"] == "3"

    # Sub-paths of the prefix share the same budget
    assert client.get("/api/other").status_code == 429


def test_rate_limit_ignores_other_paths(store):
    """Test that paths outside /api are not counted."""
    client = TestClient(create_app(store, TOKEN, rate_limit=1))

    for _ in range(5):
        assert client.get("/elsewhere").status_code == 404
    assert client.get("/api", params={"get": "getFeeStats", "token": TOKEN}).status_code == 200


def test_sliding_window_limiter_rolls():
    """Test that old hits leave the window as time moves on."""
    now = [0.0]
    limiter = SlidingWindowRateLimiter(limit=2, window_secs=60, clock=lambda: now[0])

    assert limiter.hit("1.2.3.4") == (True, 1, 60)
    now[0] = 30.0
    assert limiter.hit("1.2.3.4") == (True, 0, 30)
    assert limiter.hit("1.2.3.4") == (False, 0, 30)
    assert limiter.hit("5.6.7.8")[0] is True

    # First hit expires at t=60
    now[0] = 60.0
    assert limiter.hit("1.2.3.4") == (True, 0, 30)
    now[0] = 61.0
    assert limiter.hit("1.2.3.4")[0] is False


def test_head_api_served(client):
    """Test that HEAD /api is answered like GET, without a body."""
    response = client.head("/api", params={"get": "getFeeStats", "token": TOKEN})

    assert response.status_code == 200
    assert response.content == b""


def test_limiter_forgets_idle_clients():
    """Test that clients idle past the window stop being tracked."""
    now = [0.0]
    limiter = SlidingWindowRateLimiter(limit=30, window_secs=60, clock=lambda: now[0], max_tracked_keys=100)

    for i in range(10000):
        limiter.hit(f"10.0.{i // 256}.{i % 256}")
    # Clients active inside the window are all kept
    assert len(limiter._hits) == 10000

    now[0] = 3600.0
    assert limiter.hit("192.168.1.1") == (True, 29, 60)

    assert len(limiter._hits) == 1
    assert list(limiter._hits) == ["192.168.1.1"]


def test_limiter_sweep_keeps_active_clients():
    """Test that the sweep only drops clients with no hit in the window."""
    now = [0.0]
    limiter = SlidingWindowRateLimiter(limit=2, window_secs=60, clock=lambda: now[0], max_tracked_keys=2)

    limiter.hit("a")
    now[0] = 50.0
    limiter.hit("b")
    limiter.hit("b")
    now[0] = 70.0
    limiter.hit("c")

    assert set(limiter._hits) == {"b", "c"}
    # "b" keeps its budget across the sweep
    assert limiter.hit("b")[0] is False
