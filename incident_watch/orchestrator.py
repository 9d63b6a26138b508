
# IncidentMonitor: the top-level wiring.

# Responsibilities:
#   - Create the shared aiohttp session
#   - Pick the snapshot store and notifier from configuration
#   - Run the watcher either once (cron / CI scheduler) or forever
#   - Provide a clean stop() method for graceful shutdown

import asyncio
import logging
from typing import Optional

import aiohttp

from incident_watch import config
from incident_watch.http_client import ConditionalHTTPClient
from incident_watch.models import Evaluation
from incident_watch.notifier import ConsoleNotifier, Notifier, WebhookNotifier
from incident_watch.store import JsonFileSnapshotStore, MemorySnapshotStore, SnapshotStore
from incident_watch.watcher import IncidentWatcher

log = logging.getLogger(__name__)


class IncidentMonitor:

    def __init__(
        self,
        page: dict[str, str],
        store: Optional[SnapshotStore] = None,
        webhook_url: Optional[str] = None,
        renotify_after: Optional[float] = None,
    ) -> None:
        self._page = page
        self._store = store if store is not None else JsonFileSnapshotStore(config.SNAPSHOT_PATH)
        self._webhook_url = webhook_url
        self._renotify_after = renotify_after
        self._task: Optional[asyncio.Task] = None

    @classmethod
    def from_config(cls, dry_run: bool = False) -> "IncidentMonitor":
        if dry_run:
            return cls(config.STATUS_PAGE, store=MemorySnapshotStore())
        return cls(
            config.STATUS_PAGE,
            webhook_url=config.WEBHOOK_URL,
            renotify_after=config.RENOTIFY_INTERVAL_SECONDS,
        )

    def _watcher(self, session: aiohttp.ClientSession) -> IncidentWatcher:
        http_client = ConditionalHTTPClient(session)
        notifier: Notifier
        if self._webhook_url:
            notifier = WebhookNotifier(http_client, self._webhook_url, self._page["page_url"])
        else:
            notifier = ConsoleNotifier(self._page["page_url"])

        return IncidentWatcher(
            provider=self._page["name"],
            api_base=self._page["api_base"],
            http_client=http_client,
            store=self._store,
            notifier=notifier,
            renotify_after=self._renotify_after,
        )

    def _session(self) -> aiohttp.ClientSession:
        return aiohttp.ClientSession(headers={"User-Agent": config.USER_AGENT})

    async def run_once(self) -> Optional[Evaluation]:
        async with self._session() as session:
            return await self._watcher(session).run_cycle()

    async def run(self) -> None:
        async with self._session() as session:
            watcher = self._watcher(session)
            self._task = asyncio.create_task(
                watcher.run_forever(),
                name=f"watcher-{self._page['name'].lower()}",
            )
            log.info(
                "IncidentMonitor running, checking %s every %ds. Press Ctrl+C to stop.",
                self._page["name"], config.POLL_INTERVAL_SECONDS,
            )
            try:
                await self._task
            except asyncio.CancelledError:
                log.info("Monitor stopped.")

    def stop(self) -> None:
        """Cancel the watcher task. The event loop will drain it cleanly."""
        if self._task is not None:
            self._task.cancel()
