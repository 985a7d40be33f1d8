"""CLI tests — commands run against a mocked HTTP transport."""

import json

import httpx
import pytest
from click.testing import CliRunner

from crowdguard.cli import main as cli

INCIDENT = {
    "id": "abc123",
    "type": "accident",
    "latitude": 48.8566,
    "longitude": 2.3522,
    "description": "Scooter collision at the crossing",
    "address": None,
    "severity": None,
    "timestamp": "2026-01-01T09:00:00Z",
    "verified": False,
    "reporterId": "u1",
    "upvotes": 0,
}


class FakeApi:
    def __init__(self):
        self.seen: list[httpx.Request] = []
        self.routes: dict[tuple[str, str], httpx.Response] = {}


@pytest.fixture
def api(monkeypatch):
    """Route CLI HTTP calls to canned responses; unknown routes 404."""
    fake = FakeApi()

    def handler(request: httpx.Request) -> httpx.Response:
        fake.seen.append(request)
        return fake.routes.get(
            (request.method, request.url.path),
            httpx.Response(404, json={"detail": "Incident not found"}),
        )

    def fake_client():
        return httpx.AsyncClient(
            transport=httpx.MockTransport(handler), base_url="http://test"
        )

    monkeypatch.setattr(cli, "_client", fake_client)
    return fake


def test_incidents_lists(api):
    api.routes[("GET", "/api/v1/incidents")] = httpx.Response(200, json=[INCIDENT])

    result = CliRunner().invoke(cli.main, ["incidents"])

    assert result.exit_code == 0, result.output
    assert "abc123" in result.output
    assert "accident" in result.output
    assert api.seen[0].url.params["limit"] == "20"


def test_incidents_empty(api):
    api.routes[("GET", "/api/v1/incidents")] = httpx.Response(200, json=[])
    result = CliRunner().invoke(cli.main, ["incidents"])
    assert "No incidents reported." in result.output


def test_report_sends_camel_case_body(api):
    api.routes[("POST", "/api/v1/incidents")] = httpx.Response(201, json=INCIDENT)

    result = CliRunner().invoke(
        cli.main,
        ["report", "accident", "48.8566", "2.3522", "Scooter collision", "--reporter", "u1",
         "--severity", "2"],
    )

    assert result.exit_code == 0, result.output
    assert "Incident abc123 reported" in result.output
    body = json.loads(api.seen[0].content)
    assert body["reporterId"] == "u1"
    assert body["type"] == "accident"
    assert body["severity"] == 2
    assert "address" not in body


def test_report_rejects_unknown_type(api):
    result = CliRunner().invoke(
        cli.main, ["report", "vandalism", "1", "1", "x", "--reporter", "u1"]
    )
    assert result.exit_code == 2
    assert api.seen == []


def test_upvote_missing_exits_nonzero(api):
    result = CliRunner().invoke(cli.main, ["upvote", "nope"])
    assert result.exit_code == 1
    assert "404" in result.output


def test_comment(api):
    api.routes[("POST", "/api/v1/incidents/abc123/comments")] = httpx.Response(
        201,
        json={
            "id": "c1",
            "incidentId": "abc123",
            "body": "same here",
            "authorId": "u2",
            "timestamp": "2026-01-01T09:05:00Z",
        },
    )

    result = CliRunner().invoke(cli.main, ["comment", "abc123", "same here", "-a", "u2"])

    assert result.exit_code == 0, result.output
    assert "Comment c1 added" in result.output
    assert json.loads(api.seen[0].content) == {"body": "same here", "authorId": "u2"}
