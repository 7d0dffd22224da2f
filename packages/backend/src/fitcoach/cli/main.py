"""FitCoach CLI: run the server, send notifications, test verification.

Usage:
    fitcoach serve                                # Run the API with uvicorn
    fitcoach token user-42                        # Mint a dev access token
    fitcoach notify user-42 "Leg day" -c "Squats at 6pm"
    fitcoach inbox                                # Your notifications
    fitcoach unread                               # Unread count
    fitcoach read 17                              # Mark one read
    fitcoach read-all                             # Mark all read
    fitcoach send-code 01012345678                # Text a verification code
    fitcoach verify 01012345678 123456            # Confirm it
"""

from __future__ import annotations

import asyncio
import json
import os
import sys
from typing import Optional

import click
import httpx

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

DEFAULT_API_URL = "http://localhost:8000"


def _api_url() -> str:
    return os.environ.get("FITCOACH_API_URL", DEFAULT_API_URL).rstrip("/")


def _client() -> httpx.AsyncClient:
    """Build an async HTTP client pointed at the FitCoach backend."""
    headers = {}
    token = os.environ.get("FITCOACH_TOKEN")
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return httpx.AsyncClient(base_url=_api_url(), headers=headers, timeout=30.0)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run(coro):
    """Run an async coroutine from a synchronous Click handler."""
    return asyncio.run(coro)


def _pretty_json(data: dict | list) -> str:
    return json.dumps(data, indent=2, default=str, ensure_ascii=False)


def _fail(message: str) -> None:
    click.secho(f"Error: {message}", fg="red", err=True)
    sys.exit(1)


def _check(r: httpx.Response) -> dict | list:
    """Return the JSON body, or exit with the API's error detail."""
    if r.status_code >= 400:
        try:
            detail = r.json().get("detail", r.text)
        except ValueError:
            detail = r.text
        _fail(f"{r.status_code} {detail}")
    return r.json()


def _print_notifications(rows: list[dict]) -> None:
    if not rows:
        click.echo("No notifications.")
        return
    header = f"{'ID':<6}  {'CATEGORY':<12}  {'CREATED':<19}  TITLE"
    click.secho(header, bold=True)
    click.echo("-" * len(header))
    for n in rows:
        marker = " " if n["isRead"] else "*"
        created = str(n["createdAt"])[:19].replace("T", " ")
        click.echo(f"{n['id']:<6}  {n['category'][:12]:<12}  {created:<19} {marker}{n['title']}")


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version="0.1.0", prog_name="fitcoach")
def main():
    """FitCoach: notifications and phone verification."""


@main.command()
@click.option("--host", default=None, help="Bind address (default: FITCOACH_HOST)")
@click.option("--port", default=None, type=int, help="Port (default: FITCOACH_PORT)")
@click.option("--reload", is_flag=True, help="Auto-reload on code changes")
def serve(host: Optional[str], port: Optional[int], reload: bool):
    """Run the API server."""
    import uvicorn

    from fitcoach.config import settings

    uvicorn.run(
        "fitcoach.main:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
    )


@main.command()
@click.argument("user_id")
@click.option("--minutes", default=None, type=int, help="Lifetime in minutes")
def token(user_id: str, minutes: Optional[int]):
    """Mint an access token for USER_ID with the local JWT secret."""
    from fitcoach.auth.jwt import create_access_token

    click.echo(create_access_token(user_id, expires_minutes=minutes))


# ---------------------------------------------------------------------------
# Notifications
# ---------------------------------------------------------------------------


@main.command()
@click.argument("user_id")
@click.argument("title")
@click.option("--content", "-c", default="", help="Body text")
@click.option("--category", default="general", help="Free-form tag")
def notify(user_id: str, title: str, content: str, category: str):
    """Send a notification to USER_ID."""
    async def _impl():
        async with _client() as c:
            r = await c.post("/api/v1/notifications", json={
                "userId": user_id,
                "title": title,
                "content": content,
                "category": category,
            })
            n = _check(r)
            click.secho(f"Notification #{n['id']} sent to {user_id}", fg="green")

    _run(_impl())


@main.command()
@click.option("--unread", is_flag=True, help="Only unread notifications")
@click.option("--limit", default=20, help="Max rows")
@click.option("--json", "as_json", is_flag=True, help="Raw JSON output")
def inbox(unread: bool, limit: int, as_json: bool):
    """List your notifications, newest first (* = unread)."""
    async def _impl():
        async with _client() as c:
            r = await c.get("/api/v1/notifications", params={
                "unreadOnly": str(unread).lower(),
                "limit": limit,
            })
            rows = _check(r)
            if as_json:
                click.echo(_pretty_json(rows))
            else:
                _print_notifications(rows)

    _run(_impl())


@main.command()
def unread():
    """Show your unread notification count."""
    async def _impl():
        async with _client() as c:
            data = _check(await c.get("/api/v1/notifications/unread-count"))
            click.echo(data["count"])

    _run(_impl())


@main.command()
@click.argument("notification_id", type=int)
def read(notification_id: int):
    """Mark a notification read."""
    async def _impl():
        async with _client() as c:
            _check(await c.post(f"/api/v1/notifications/{notification_id}/read"))
            click.secho(f"Notification #{notification_id} marked read", fg="green")

    _run(_impl())


@main.command("read-all")
def read_all():
    """Mark all your notifications read."""
    async def _impl():
        async with _client() as c:
            data = _check(await c.post("/api/v1/notifications/read-all"))
            click.secho(f"{data['updated']} notification(s) marked read", fg="green")

    _run(_impl())


# ---------------------------------------------------------------------------
# Phone verification
# ---------------------------------------------------------------------------


@main.command("send-code")
@click.argument("phone")
def send_code(phone: str):
    """Request a verification code for PHONE."""
    async def _impl():
        async with _client() as c:
            data = _check(await c.post("/api/v1/verification/send-code", json={"phone": phone}))
            click.echo(data["message"])

    _run(_impl())


@main.command()
@click.argument("phone")
@click.argument("code")
def verify(phone: str, code: str):
    """Confirm the verification CODE sent to PHONE."""
    async def _impl():
        async with _client() as c:
            data = _check(await c.post("/api/v1/verification/confirm", json={
                "phone": phone,
                "code": code,
            }))
            click.secho(data["message"], fg="green" if data["result"] else "red")
            if not data["result"]:
                sys.exit(1)

    _run(_impl())


if __name__ == "__main__":
    main()
