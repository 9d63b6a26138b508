
# notifiers: the output layer of the pipeline.

# each notifier receives a confirmed Alert and delivers it somewhere.
# all formatting decisions live here; Incident and Alert stay pure data.

# to add a new output target, implement a class with:
#     async def notify(self, alert: Alert) -> None: ...
# raising NotificationError when delivery fails, and pass it to
# IncidentWatcher in orchestrator.py.

import asyncio
import logging
from typing import Protocol

import aiohttp

from incident_watch.errors import NotificationError
from incident_watch.http_client import ConditionalHTTPClient
from incident_watch.models import Alert, Incident

log = logging.getLogger(__name__)

# ─── ANSI colour maps (console only) ──────────────────────────────────────────

_R = "\033[0m"   # reset

_STATUS_COLOR: dict[str, str] = {
    "investigating": "\033[33m",   # yellow
    "identified":    "\033[31m",   # red
    "monitoring":    "\033[34m",   # blue
}

_IMPACT_COLOR: dict[str, str] = {
    "critical": "\033[91m",   # bright red
    "major":    "\033[33m",   # yellow
    "minor":    "\033[34m",   # blue
    "none":     "\033[32m",   # green
}


def _plain(value: str) -> str:
    return value


def _color_status(status: str) -> str:
    c = _STATUS_COLOR.get(status.lower(), "")
    return f"{c}{status}{_R}" if c else status


def _color_impact(impact: str) -> str:
    c = _IMPACT_COLOR.get(impact.lower(), "")
    return f"{c}{impact}{_R}" if c else impact


def format_incident(incident: Incident, status=_plain, impact=_plain) -> str:
    """One alert line, e.g. 'Actions — identified (minor)'."""
    return f"{incident.name} — {status(incident.status)} ({impact(incident.impact)})"


def format_alert(alert: Alert, page_url: str, status=_plain, impact=_plain) -> str:
    """
    Human-readable alert body: one line per persistent incident, in the
    alert's order, followed by a reference link to the status page.
    """
    lines = [format_incident(i, status, impact) for i in alert.incidents]
    lines.append(f"Details: {page_url}")
    return "\n".join(lines)


class Notifier(Protocol):
    async def notify(self, alert: Alert) -> None: ...


class ConsoleNotifier:
    """Prints the alert to stdout; plays well with docker logs and journalctl."""

    def __init__(self, page_url: str) -> None:
        self._page_url = page_url

    async def notify(self, alert: Alert) -> None:
        print(format_alert(alert, self._page_url, _color_status, _color_impact), flush=True)


class WebhookNotifier:
    """
    POSTs {"text": <message>} to an incoming webhook (Slack, Mattermost,
    Discord's /slack endpoint all accept this shape).

    Any transport failure is raised as NotificationError so the driver can
    hold back the snapshot and retry on the next cycle.
    """

    def __init__(self, http_client: ConditionalHTTPClient, url: str, page_url: str) -> None:
        self._http = http_client
        self._url = url
        self._page_url = page_url

    async def notify(self, alert: Alert) -> None:
        message = format_alert(alert, self._page_url)
        try:
            await self._http.post_json(self._url, {"text": message})
        except aiohttp.ClientResponseError as exc:
            raise NotificationError(
                f"webhook rejected alert: {exc.status} {exc.message}",
                status_code=exc.status,
            ) from exc
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise NotificationError(f"webhook unreachable: {exc!r}") from exc

        log.info("Alert delivered for %d incident(s)", len(alert.incidents))
