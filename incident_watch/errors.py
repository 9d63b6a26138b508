"""Exception hierarchy for incident_watch."""

from typing import Any


class IncidentWatchError(Exception):
    """Base exception for all incident_watch errors."""


class InvalidIncidentError(IncidentWatchError):
    """An incident record from the feed has no usable id."""

    def __init__(self, message: str, *, record: Any = None) -> None:
        self.record = record
        super().__init__(message)


class FeedError(IncidentWatchError):
    """The status feed answered, but not with an incidents payload."""

    def __init__(self, message: str, *, url: str = "") -> None:
        self.url = url
        super().__init__(message)


class SnapshotStoreError(IncidentWatchError):
    """The previous snapshot could not be read or the new one written."""


class NotificationError(IncidentWatchError):
    """An alert could not be delivered."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)
