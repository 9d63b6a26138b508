"""
Snapshot stores: where the previous cycle's incident ids live between runs.

Alongside the ids, a store keeps when each confirmed incident was last
alerted on, so a process started fresh every tick (cron) still announces
an incident only once.

Both stores replace the whole state on write; nothing is merged.
A read that fails raises SnapshotStoreError rather than returning None,
because "no prior data" would silently restart every debounce window.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Mapping, Optional, Protocol

from incident_watch.errors import SnapshotStoreError
from incident_watch.models import Snapshot

log = logging.getLogger(__name__)


class SnapshotStore(Protocol):
    def read(self) -> Optional[Snapshot]: ...

    def read_notified(self) -> dict[str, float]: ...

    def write(self, snapshot: Snapshot, notified: Optional[Mapping[str, float]] = None) -> None: ...


def _prune(snapshot: Snapshot, notified: Optional[Mapping[str, float]]) -> dict[str, float]:
    # delivery times only matter for incidents still open
    return {k: float(v) for k, v in (notified or {}).items() if k in snapshot}


class MemorySnapshotStore:
    """In-process store, for tests and dry runs."""

    def __init__(self, initial: Optional[Snapshot] = None) -> None:
        self._snapshot = frozenset(initial) if initial else None
        self._notified: dict[str, float] = {}

    def read(self) -> Optional[Snapshot]:
        return self._snapshot

    def read_notified(self) -> dict[str, float]:
        return dict(self._notified)

    def write(self, snapshot: Snapshot, notified: Optional[Mapping[str, float]] = None) -> None:
        self._snapshot = frozenset(snapshot) or None
        self._notified = _prune(snapshot, notified)


class JsonFileSnapshotStore:
    """
    One JSON file:

        {"incidents": ["abc", "xyz"], "notified": {"abc": 1760862720.0}}

    A bare list of ids (older files) is read as a snapshot with nothing
    notified yet.

    Missing file  -> None (no prior data)
    Empty snapshot -> file removed, back to the cold baseline
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def _load(self) -> Optional[dict[str, Any]]:
        if not self.path.exists():
            return None

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise SnapshotStoreError(f"could not read snapshot {self.path}: {exc}") from exc

        if isinstance(data, list):
            data = {"incidents": data, "notified": {}}

        incidents = data.get("incidents") if isinstance(data, dict) else None
        notified = data.get("notified", {}) if isinstance(data, dict) else None
        if not isinstance(incidents, list) or not all(isinstance(i, str) for i in incidents):
            raise SnapshotStoreError(f"snapshot {self.path} is not a list of incident ids")
        if not isinstance(notified, dict) or not all(
            isinstance(v, (int, float)) and not isinstance(v, bool) for v in notified.values()
        ):
            raise SnapshotStoreError(f"snapshot {self.path} has a malformed 'notified' map")

        return {"incidents": incidents, "notified": notified}

    def read(self) -> Optional[Snapshot]:
        data = self._load()
        if data is None:
            return None
        return frozenset(data["incidents"]) or None

    def read_notified(self) -> dict[str, float]:
        data = self._load()
        if data is None:
            return {}
        return {str(k): float(v) for k, v in data["notified"].items()}

    def write(self, snapshot: Snapshot, notified: Optional[Mapping[str, float]] = None) -> None:
        try:
            if not snapshot:
                self.path.unlink(missing_ok=True)
                log.debug("Cleared snapshot %s", self.path)
                return

            body = {"incidents": sorted(snapshot), "notified": _prune(snapshot, notified)}
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self.path.with_name(self.path.name + ".tmp")
            tmp_path.write_text(json.dumps(body, indent=2, sort_keys=True), encoding="utf-8")
            os.replace(tmp_path, self.path)
        except OSError as exc:
            raise SnapshotStoreError(f"could not write snapshot {self.path}: {exc}") from exc

        log.debug("Wrote %d id(s) to %s", len(snapshot), self.path)
