"""Health endpoint and middleware tests."""

import pytest

from crowdguard.realtime.relay import Connection


@pytest.mark.asyncio
async def test_health_returns_ok(client):
    resp = await client.get("/api/v1/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "healthy"
    assert data["server"] == "ok"
    assert data["database"] == "ok"
    assert "version" in data


@pytest.mark.asyncio
async def test_health_counts_open_connections(client, app):
    app.state.lifecycle.open(Connection("a"))
    app.state.lifecycle.open(Connection("b"))
    app.state.lifecycle.close("b")

    resp = await client.get("/api/v1/health")
    assert resp.json()["connections"] == 1


@pytest.mark.asyncio
async def test_security_headers(client):
    r = await client.get("/api/v1/health")
    assert r.headers["X-Content-Type-Options"] == "nosniff"
    assert r.headers["X-Frame-Options"] == "DENY"
    assert r.headers["Referrer-Policy"] == "strict-origin-when-cross-origin"
    assert "geolocation=(self)" in r.headers["Permissions-Policy"]
    assert "Strict-Transport-Security" not in r.headers


@pytest.mark.asyncio
async def test_request_id_generated(client):
    r1 = await client.get("/api/v1/health")
    r2 = await client.get("/api/v1/health")
    assert r1.headers["X-Request-ID"] != r2.headers["X-Request-ID"]


@pytest.mark.asyncio
async def test_request_id_propagated(client):
    r = await client.get("/api/v1/health", headers={"X-Request-ID": "trace-123"})
    assert r.headers["X-Request-ID"] == "trace-123"
