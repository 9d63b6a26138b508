
# IncidentWatcher: drives one status page through fetch -> evaluate ->
# (notify) -> persist, once per tick.

# failure handling per cycle:
#   - feed fetch fails         -> skip the cycle, snapshot untouched
#   - snapshot read fails      -> abort, never assume "no prior data"
#   - notification fails       -> abort before writing, so the same
#                                 confirmation is re-sent next cycle
#   - snapshot write fails     -> abort, previous snapshot stays
# none of these ever produce an alert.

import asyncio
import logging
import time
from typing import Callable, Optional

import aiohttp

from incident_watch.config import (
    MAX_RETRIES,
    MAX_RETRY_DELAY_SECONDS,
    POLL_INTERVAL_SECONDS,
    RETRY_BASE_DELAY_SECONDS,
)
from incident_watch.errors import FeedError, NotificationError, SnapshotStoreError
from incident_watch.http_client import ConditionalHTTPClient
from incident_watch.models import Alert, Evaluation, Incident
from incident_watch.notifier import Notifier
from incident_watch.parser import parse_unresolved
from incident_watch.store import SnapshotStore
from incident_watch.tracker import evaluate


class IncidentWatcher:
    """
    Runs the check cycle for a single Statuspage.io page.

    Cycles are serialized by a lock: a slow fetch that overruns the next tick
    delays that tick instead of racing it on the snapshot.

    The tracker reports every incident that persists across two cycles.
    When each of those was delivered is kept in the store next to the
    snapshot, so a long incident is announced once even when every tick is
    a fresh process; with `renotify_after` set, it is announced again after
    that many seconds.

    Backoff formula: delay = RETRY_BASE_DELAY_SECONDS * 2^retry_count
    Capped at MAX_RETRY_DELAY_SECONDS.
    """

    def __init__(
        self,
        provider: str,
        api_base: str,
        http_client: ConditionalHTTPClient,
        store: SnapshotStore,
        notifier: Notifier,
        renotify_after: Optional[float] = None,
        poll_interval: float = POLL_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.provider = provider
        self.url = f"{api_base}/incidents/unresolved.json"
        self._http = http_client
        self._store = store
        self._notifier = notifier
        self._renotify_after = renotify_after
        self._poll_interval = poll_interval
        self._clock = clock
        self._lock = asyncio.Lock()
        self._log = logging.getLogger(f"watcher.{provider.lower()}")

    async def fetch(self) -> list[Incident]:
        data = await self._http.get_json(self.url)
        return parse_unresolved(data, url=self.url)

    def _due(self, alert: Alert, notified: dict[str, float]) -> Optional[Alert]:
        """Drop incidents already delivered (and not yet due for a reminder)."""
        now = self._clock()
        due = frozenset(
            i for i in alert.ids
            if i not in notified
            or (self._renotify_after is not None
                and now - notified[i] >= self._renotify_after)
        )
        return alert.only(due)

    async def run_cycle(self) -> Optional[Evaluation]:
        """
        Run one full cycle. Returns the Evaluation when the cycle completed,
        None when it was skipped or aborted.
        """
        async with self._lock:
            try:
                current = await self.fetch()
            except (aiohttp.ClientError, asyncio.TimeoutError, FeedError) as exc:
                self._log.warning("Feed fetch failed for %s, skipping cycle: %r", self.provider, exc)
                return None

            try:
                previous = self._store.read()
                notified = self._store.read_notified()
            except SnapshotStoreError as exc:
                self._log.error("Snapshot unavailable, aborting cycle: %s", exc)
                return None

            result = evaluate(previous, current)

            for err in result.skipped:
                self._log.warning("Ignored incident record from %s: %s", self.provider, err)

            if result.should_alert:
                due = self._due(result.decision, notified)
                if due is None:
                    self._log.info(
                        "%d confirmed incident(s) for %s, all already notified",
                        len(result.decision.incidents), self.provider,
                    )
                else:
                    try:
                        await self._notifier.notify(due)
                    except NotificationError as exc:
                        self._log.warning("Alert not delivered, will retry next cycle: %s", exc)
                        return None
                    now = self._clock()
                    for incident_id in due.ids:
                        notified[incident_id] = now
                    self._log.info("Alerted on %d incident(s) for %s", len(due.incidents), self.provider)
            elif result.snapshot:
                pending = result.snapshot - (previous or frozenset())
                self._log.info(
                    "%d new incident(s) for %s, awaiting confirmation",
                    len(pending), self.provider,
                )
            else:
                self._log.debug("No unresolved incidents for %s", self.provider)

            # the store forgets resolved incidents, so a recurrence is announced again
            try:
                self._store.write(result.snapshot, notified)
            except SnapshotStoreError as exc:
                self._log.error("Could not persist snapshot: %s", exc)
                return None

            return result

    async def run_forever(self) -> None:
        retry_count = 0
        self._log.info("Started watching %s → %s", self.provider, self.url)

        while True:
            try:
                completed = await self.run_cycle()
            except asyncio.CancelledError:
                self._log.info("Watcher for %s cancelled.", self.provider)
                raise
            except Exception as exc:
                self._log.exception("Unexpected error in watcher for %s: %s", self.provider, exc)
                completed = None

            if completed is None:
                retry_count = min(retry_count + 1, MAX_RETRIES)  # cap before formula
                delay = min(RETRY_BASE_DELAY_SECONDS * (2 ** retry_count), MAX_RETRY_DELAY_SECONDS)
                self._log.warning(
                    "Cycle incomplete for %s. Retry %d/%d in %ds.",
                    self.provider, retry_count, MAX_RETRIES, delay,
                )
                await asyncio.sleep(min(delay, self._poll_interval))
                continue

            retry_count = 0  # reset backoff on every completed cycle
            await asyncio.sleep(self._poll_interval)
