import os
from typing import Optional


def _int_env(name: str, default: Optional[int]) -> Optional[int]:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{name} must be an integer number of seconds, got {value!r}") from None


POLL_INTERVAL_SECONDS: int = _int_env("INCIDENT_WATCH_INTERVAL", 300)  # 5-10 minutes is plenty
REQUEST_TIMEOUT_SECONDS: int = 10
MAX_RETRIES: int = 5
RETRY_BASE_DELAY_SECONDS: int = 2   # delay = base * 2^n, capped at MAX_RETRY_DELAY_SECONDS
MAX_RETRY_DELAY_SECONDS: int = 300  # 5 minutes

# statuspage.io page to watch
STATUS_PAGE: dict[str, str] = {
    "name": os.getenv("INCIDENT_WATCH_NAME", "GitHub"),
    "api_base": os.getenv("INCIDENT_WATCH_API_BASE", "https://www.githubstatus.com/api/v2"),
    "page_url": os.getenv("INCIDENT_WATCH_PAGE_URL", "https://www.githubstatus.com"),
}

# incoming webhook (Slack / Mattermost style); console output when unset
WEBHOOK_URL: Optional[str] = os.getenv("INCIDENT_WATCH_WEBHOOK_URL") or None

SNAPSHOT_PATH: str = os.getenv("INCIDENT_WATCH_SNAPSHOT", ".incident-watch/snapshot.json")

# None: one alert per incident lifetime
RENOTIFY_INTERVAL_SECONDS: Optional[int] = _int_env("INCIDENT_WATCH_RENOTIFY", None)

USER_AGENT: str = "incident-watch/1.0 (status-tracker)"
