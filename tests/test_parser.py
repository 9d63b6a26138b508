from __future__ import annotations

from datetime import datetime, timezone

import pytest

from incident_watch.errors import FeedError
from incident_watch.parser import parse_unresolved

PAYLOAD = {
    "page": {"id": "kctbh9vrtdwd", "name": "GitHub", "url": "https://www.githubstatus.com"},
    "incidents": [
        {
            "id": "abc",
            "name": "Disruption with some GitHub services",
            "status": "investigating",
            "impact": "minor",
            "shortlink": "https://stspg.io/abc",
            "updated_at": "2026-10-19T08:12:00.000Z",
            "incident_updates": [{"id": "u1", "body": "We are investigating."}],
        },
        {
            "id": "def",
            "name": "Actions delays",
            "status": "resolved",
            "impact": "major",
        },
        {
            "name": "No id here",
            "status": "identified",
            "impact": "none",
        },
    ],
}


def test_parses_minimal_fields() -> None:
    incidents = parse_unresolved(PAYLOAD)

    first = incidents[0]
    assert first.id == "abc"
    assert first.name == "Disruption with some GitHub services"
    assert first.status == "investigating"
    assert first.impact == "minor"
    assert first.shortlink == "https://stspg.io/abc"
    assert first.updated_at == datetime(2026, 10, 19, 8, 12, tzinfo=timezone.utc)


def test_resolved_incidents_are_dropped() -> None:
    ids = [i.id for i in parse_unresolved(PAYLOAD)]

    assert "def" not in ids


def test_missing_id_is_kept_for_the_tracker_to_reject() -> None:
    incidents = parse_unresolved(PAYLOAD)

    assert incidents[-1].id == ""
    assert incidents[-1].name == "No id here"


def test_missing_fields_get_defaults() -> None:
    (incident,) = parse_unresolved({"incidents": [{"id": "x"}]})

    assert incident.name == "Unknown Incident"
    assert incident.status == "unknown"
    assert incident.impact == "unknown"
    assert incident.updated_at is None


def test_empty_incident_list_is_valid() -> None:
    assert parse_unresolved({"incidents": []}) == []


@pytest.mark.parametrize("payload", [None, [], {}, {"incidents": None}, {"incidents": "nope"}])
def test_payload_without_incident_list_is_a_feed_error(payload) -> None:
    with pytest.raises(FeedError):
        parse_unresolved(payload, url="https://example.test/api/v2/incidents/unresolved.json")


def test_non_string_fields_are_coerced() -> None:
    (incident,) = parse_unresolved({
        "incidents": [
            {"id": 1234, "name": 42, "status": "identified", "impact": 3, "updated_at": 1760862720},
        ]
    })

    assert incident.id == "1234"
    assert incident.name == "42"
    assert incident.impact == "3"
    assert incident.updated_at is None
