import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

log = logging.getLogger(__name__)

# Statuspage statuses that mean the incident is over.
CLOSED_STATUSES: frozenset[str] = frozenset({"resolved", "postmortem", "completed"})

# Unresolved incident IDs observed at the end of a cycle.
Snapshot = frozenset[str]


def parse_dt(value: object) -> datetime | None:
    """
    Parse an ISO 8601 timestamp string into an aware UTC datetime.

    Statuspage returns strings like '2024-11-03T14:32:00.000Z'.
    """
    if not value or not isinstance(value, str):
        return None

    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).astimezone(timezone.utc)
    except ValueError:
        log.warning("Could not parse datetime string: %r", value)
        return None


@dataclass(frozen=True)
class Incident:
    """
    One unresolved incident as returned by a single fetch.

    `id` is the identity key. A later fetch may return the same id with a
    different status/impact; whoever reports it uses the latest copy.
    """
    id: str
    name: str
    status: str                    # investigating | identified | monitoring
    impact: str                    # none | minor | major | critical
    shortlink: str = ""
    updated_at: Optional[datetime] = field(default=None, compare=False)


@dataclass(frozen=True)
class Alert:
    """Incidents confirmed across two consecutive cycles, ordered by id."""
    incidents: tuple[Incident, ...]

    @property
    def ids(self) -> frozenset[str]:
        return frozenset(i.id for i in self.incidents)

    def only(self, ids: frozenset[str]) -> Optional["Alert"]:
        """Narrow the alert to `ids`; None when nothing is left."""
        kept = tuple(i for i in self.incidents if i.id in ids)
        return Alert(kept) if kept else None


@dataclass(frozen=True)
class Evaluation:
    """
    Result of evaluating one cycle.

    decision: None (nothing to say) or an Alert
    snapshot: the set of ids to persist for the next cycle
    skipped:  InvalidIncidentError for each record that was dropped
    """
    decision: Optional[Alert]
    snapshot: Snapshot
    skipped: tuple = field(default=(), compare=False)

    @property
    def should_alert(self) -> bool:
        return self.decision is not None
