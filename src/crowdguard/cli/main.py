"""CrowdGuard CLI — run the server and poke at incidents from a terminal.

Usage:
    crowdguard serve                                  # Run the API + WebSocket server
    crowdguard incidents                              # List recent incidents
    crowdguard report theft 40.71 -74.00 "Bike stolen" --reporter u1
    crowdguard upvote <incident-id>                   # Upvote (5 upvotes → verified)
    crowdguard comment <incident-id> "Saw it too" --author u2
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import json
import os
import sys
from typing import Optional

import click
import httpx

from crowdguard.db.models import INCIDENT_TYPES

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

DEFAULT_API_URL = "http://localhost:4000"


def _api_url() -> str:
    return os.environ.get("CROWDGUARD_API_URL", DEFAULT_API_URL).rstrip("/")


def _client() -> httpx.AsyncClient:
    """Build an async HTTP client pointed at the CrowdGuard backend."""
    return httpx.AsyncClient(base_url=_api_url(), timeout=30.0)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run(coro):
    """Run an async coroutine from a synchronous Click handler.

    Falls back to a worker thread when a loop is already running
    (e.g. CliRunner invoked from an async test).
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    else:
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            return pool.submit(asyncio.run, coro).result()


def _pretty_json(data: dict | list) -> str:
    return json.dumps(data, indent=2, default=str)


def _fail(r: httpx.Response) -> None:
    """Print the API's error detail and exit non-zero."""
    try:
        detail = r.json().get("detail", r.text)
    except ValueError:
        detail = r.text
    click.secho(f"Error {r.status_code}: {detail}", fg="red", err=True)
    sys.exit(1)


def _incident_line(inc: dict) -> str:
    badge = click.style("verified", fg="green") if inc["verified"] else click.style(
        "unverified", fg="yellow"
    )
    return (
        f"  {inc['id'][:12]:12s}  {inc['type']:10s}  "
        f"({inc['latitude']:.4f}, {inc['longitude']:.4f})  "
        f"▲{inc['upvotes']:<3d} {badge}  {inc['description'][:40]}"
    )


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(package_name="crowdguard", prog_name="crowdguard")
def main():
    """CrowdGuard — crowdsourced safety incidents with live presence."""


# ---------------------------------------------------------------------------
# crowdguard serve
# ---------------------------------------------------------------------------


@main.command()
@click.option("--host", default=None, help="Bind address (default: CROWDGUARD_HOST)")
@click.option("--port", type=int, default=None, help="Port (default: CROWDGUARD_PORT)")
@click.option("--reload", is_flag=True, help="Auto-reload on code changes")
def serve(host: Optional[str], port: Optional[int], reload: bool):
    """Run the HTTP API and WebSocket relay in one process."""
    import uvicorn

    from crowdguard.config import settings

    # One process only: presence and fan-out live in this process's memory.
    uvicorn.run(
        "crowdguard.main:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
        workers=1,
    )


# ---------------------------------------------------------------------------
# crowdguard incidents
# ---------------------------------------------------------------------------


@main.command()
@click.option("--limit", "-n", default=20, show_default=True, help="Max incidents")
@click.option("--json", "as_json", is_flag=True, help="Print raw JSON")
def incidents(limit: int, as_json: bool):
    """List recent incidents, newest first."""
    _run(_incidents_impl(limit, as_json))


async def _incidents_impl(limit: int, as_json: bool):
    async with _client() as c:
        r = await c.get("/api/v1/incidents", params={"limit": limit})
        if r.is_error:
            _fail(r)
        items = r.json()

    if as_json:
        click.echo(_pretty_json(items))
        return
    if not items:
        click.echo("No incidents reported.")
        return

    click.secho(f"Incidents ({len(items)}):", bold=True)
    for inc in items:
        click.echo(_incident_line(inc))


# ---------------------------------------------------------------------------
# crowdguard report
# ---------------------------------------------------------------------------


@main.command()
@click.argument("type", type=click.Choice(list(INCIDENT_TYPES)))
@click.argument("latitude", type=float)
@click.argument("longitude", type=float)
@click.argument("description")
@click.option("--reporter", "-r", required=True, help="Reporter user ID")
@click.option("--address", help="Human-readable address")
@click.option("--severity", type=click.IntRange(1, 5), help="Severity 1-5")
def report(type: str, latitude: float, longitude: float, description: str,
           reporter: str, address: Optional[str], severity: Optional[int]):
    """Report a new incident at LATITUDE LONGITUDE."""
    _run(_report_impl(type, latitude, longitude, description, reporter, address, severity))


async def _report_impl(type: str, latitude: float, longitude: float, description: str,
                       reporter: str, address: Optional[str], severity: Optional[int]):
    body: dict = {
        "type": type,
        "latitude": latitude,
        "longitude": longitude,
        "description": description,
        "reporterId": reporter,
    }
    if address:
        body["address"] = address
    if severity is not None:
        body["severity"] = severity

    async with _client() as c:
        r = await c.post("/api/v1/incidents", json=body)
        if r.is_error:
            _fail(r)
        inc = r.json()

    click.secho(f"Incident {inc['id']} reported", fg="green")


# ---------------------------------------------------------------------------
# crowdguard upvote
# ---------------------------------------------------------------------------


@main.command()
@click.argument("incident_id")
def upvote(incident_id: str):
    """Upvote an incident."""
    _run(_upvote_impl(incident_id))


async def _upvote_impl(incident_id: str):
    async with _client() as c:
        r = await c.post(f"/api/v1/incidents/{incident_id}/upvote")
        if r.is_error:
            _fail(r)
        inc = r.json()

    click.echo(_incident_line(inc))


# ---------------------------------------------------------------------------
# crowdguard comment
# ---------------------------------------------------------------------------


@main.command()
@click.argument("incident_id")
@click.argument("body")
@click.option("--author", "-a", required=True, help="Author user ID")
def comment(incident_id: str, body: str, author: str):
    """Comment on an incident."""
    _run(_comment_impl(incident_id, body, author))


async def _comment_impl(incident_id: str, body: str, author: str):
    async with _client() as c:
        r = await c.post(
            f"/api/v1/incidents/{incident_id}/comments",
            json={"body": body, "authorId": author},
        )
        if r.is_error:
            _fail(r)
        created = r.json()

    click.secho(f"Comment {created['id']} added", fg="green")


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    main()
