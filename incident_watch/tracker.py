
# Persistence tracker: decides whether a set of unresolved incidents is worth
# telling anyone about.

# An incident is only reported once it has been seen in two consecutive
# cycles. Per incident id, implicitly:
#
#   Unseen  --(in current, not in previous)-->  Pending    (no alert)
#   Pending --(still in current)-------------->  Confirmed  (alert)
#   any     --(gone from current)------------->  Resolved   (dropped, no alert)
#
# The only state carried between cycles is the snapshot of ids returned here.
# The tracker never reads or writes it; the driver does, before and after.

import logging
from typing import Iterable, Optional

from incident_watch.errors import InvalidIncidentError
from incident_watch.models import Alert, Evaluation, Incident, Snapshot

log = logging.getLogger(__name__)


def _latest_by_id(
    current: Iterable[Incident],
) -> tuple[dict[str, Incident], list[InvalidIncidentError]]:
    """
    De-duplicate by id, keeping the last record seen for each id.
    Records without an id are collected as errors instead.
    """
    latest: dict[str, Incident] = {}
    skipped: list[InvalidIncidentError] = []

    for incident in current:
        incident_id = getattr(incident, "id", None)
        if not isinstance(incident_id, str) or not incident_id.strip():
            skipped.append(InvalidIncidentError(
                f"incident record has no id: {incident!r}",
                record=incident,
            ))
            continue
        latest[incident_id] = incident

    return latest, skipped


def evaluate(previous: Optional[Snapshot], current: Iterable[Incident]) -> Evaluation:
    """
    Compare this cycle's unresolved incidents against the previous snapshot.

    previous is None when there is no prior data (first run, after a reset).

    Returns an Evaluation whose snapshot is exactly the ids in `current`,
    whatever the decision. The decision is an Alert carrying every incident
    present in both cycles (current copy, sorted by id), or None.

    Malformed records are skipped, never fatal; they come back on
    Evaluation.skipped for the caller to log.
    """
    latest, skipped = _latest_by_id(current)

    if not latest:
        # Reset: everything we knew about is treated as resolved.
        return Evaluation(decision=None, snapshot=frozenset(), skipped=tuple(skipped))

    current_ids: Snapshot = frozenset(latest)
    persistent_ids = current_ids & (previous or frozenset())

    decision: Optional[Alert] = None
    if persistent_ids:
        decision = Alert(tuple(latest[i] for i in sorted(persistent_ids)))

    new_ids = current_ids - persistent_ids
    log.debug(
        "Evaluated %d incident(s): %d confirmed, %d pending",
        len(current_ids), len(persistent_ids), len(new_ids),
    )

    return Evaluation(decision=decision, snapshot=current_ids, skipped=tuple(skipped))
