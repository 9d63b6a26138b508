
# parses the Statuspage.io /api/v2/incidents/unresolved.json response into
# Incident objects, one per incident.

# Only the fields the tracker and the alert message need are read; the rest
# of the schema is ignored. Records with no id are passed through with
# id="" so the tracker can reject them and report why.

from typing import Any

from incident_watch.errors import FeedError
from incident_watch.models import CLOSED_STATUSES, Incident, parse_dt


def parse_unresolved(data: Any, url: str = "") -> list[Incident]:
    """
    Parse a Statuspage.io unresolved-incidents payload.

    Incidents already closed (resolved / postmortem) are dropped in case the
    endpoint lags behind the status change.

    Raises FeedError when the payload has no incidents list at all, so the
    caller can skip the cycle instead of mistaking it for "all clear".
    """
    if not isinstance(data, dict) or not isinstance(data.get("incidents"), list):
        raise FeedError("payload has no 'incidents' list", url=url)

    result: list[Incident] = []
    for incident in data["incidents"]:
        if not isinstance(incident, dict):
            result.append(Incident(id="", name=repr(incident), status="unknown", impact="unknown"))
            continue

        status = str(incident.get("status") or "unknown")
        if status.lower() in CLOSED_STATUSES:
            continue

        result.append(Incident(
            id=str(incident.get("id") or ""),
            name=str(incident.get("name") or "Unknown Incident"),
            status=status,
            impact=str(incident.get("impact") or "unknown"),
            shortlink=str(incident.get("shortlink") or ""),
            updated_at=parse_dt(incident.get("updated_at")),
        ))

    return result
