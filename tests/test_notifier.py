from __future__ import annotations

import asyncio

import aiohttp
import pytest

from incident_watch.errors import NotificationError
from incident_watch.models import Alert, Incident
from incident_watch.notifier import ConsoleNotifier, WebhookNotifier, format_alert

PAGE_URL = "https://www.githubstatus.com"

ALERT = Alert((
    Incident(id="a", name="Actions", status="identified", impact="minor"),
    Incident(id="b", name="Pages", status="investigating", impact="major"),
))


class _FakeHTTP:
    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.posts: list[tuple[str, dict]] = []

    async def post_json(self, url: str, payload: dict) -> int:
        self.posts.append((url, payload))
        if self.error is not None:
            raise self.error
        return 200


def test_format_alert_lists_each_incident_then_link() -> None:
    assert format_alert(ALERT, PAGE_URL).splitlines() == [
        "Actions — identified (minor)",
        "Pages — investigating (major)",
        f"Details: {PAGE_URL}",
    ]


@pytest.mark.asyncio
async def test_console_notifier_prints(capsys: pytest.CaptureFixture[str]) -> None:
    await ConsoleNotifier(PAGE_URL).notify(ALERT)

    out = capsys.readouterr().out
    assert "Actions — " in out
    assert PAGE_URL in out


@pytest.mark.asyncio
async def test_webhook_notifier_posts_text_payload() -> None:
    http = _FakeHTTP()

    await WebhookNotifier(http, "https://hooks.example.test/T000", PAGE_URL).notify(ALERT)

    assert http.posts == [("https://hooks.example.test/T000", {"text": format_alert(ALERT, PAGE_URL)})]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error",
    [
        aiohttp.ClientConnectionError("connection refused"),
        asyncio.TimeoutError(),
        aiohttp.ClientResponseError(None, (), status=500, message="Internal Server Error"),
    ],
)
async def test_webhook_failures_become_notification_errors(error: Exception) -> None:
    notifier = WebhookNotifier(_FakeHTTP(error), "https://hooks.example.test/T000", PAGE_URL)

    with pytest.raises(NotificationError):
        await notifier.notify(ALERT)


@pytest.mark.asyncio
async def test_console_notifier_handles_unknown_vocabulary(capsys: pytest.CaptureFixture[str]) -> None:
    alert = Alert((Incident(id="x", name="API", status="unknown", impact="3"),))

    await ConsoleNotifier(PAGE_URL).notify(alert)

    assert "API — unknown (3)" in capsys.readouterr().out
