"""Error taxonomy and result types - Pure data structures.

Components at the seams of the poller return these result objects instead
of raising, so one failing fetch, dispatch or permission request never
takes down the polling loop.
"""

from dataclasses import dataclass, field
from enum import Enum

from quake_watch.core.earthquake import EarthquakeRecord


class FetchErrorKind(str, Enum):
    """Why a feed fetch failed."""
    NETWORK = "network"
    PARSE = "parse"


class DispatchErrorKind(str, Enum):
    """Why a notification could not be scheduled."""
    SINK_UNAVAILABLE = "sink_unavailable"
    INVALID_PAYLOAD = "invalid_payload"


class PermissionErrorKind(str, Enum):
    """Why notification permission could not be acquired."""
    DENIED = "denied"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class FetchError:
    """A failed feed fetch.

    Attributes:
        kind: Network or parse failure
        detail: Human-readable description
        status_code: HTTP status code, if a response was received
    """
    kind: FetchErrorKind
    detail: str
    status_code: int | None = None

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.detail}"


@dataclass(frozen=True)
class DispatchError:
    """A failed notification dispatch.

    Attributes:
        kind: Sink unavailable or invalid payload
        detail: Human-readable description
    """
    kind: DispatchErrorKind
    detail: str

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.detail}"


@dataclass(frozen=True)
class PermissionFailure:
    """A failed permission or push-token acquisition.

    Attributes:
        kind: Denied by the user/config, or the provider was unavailable
        detail: Human-readable description
    """
    kind: PermissionErrorKind
    detail: str = ""

    def __str__(self) -> str:
        if self.detail:
            return f"{self.kind.value}: {self.detail}"
        return self.kind.value


@dataclass(frozen=True)
class FetchResult:
    """Result of fetching the earthquake feed.

    Attributes:
        records: Parsed records (empty on failure)
        error: Error descriptor if the fetch failed
    """
    records: tuple[EarthquakeRecord, ...] = field(default_factory=tuple)
    error: FetchError | None = None

    @property
    def success(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class DispatchResult:
    """Result of scheduling one notification.

    Attributes:
        notification_id: Identifier assigned by the sink on success
        error: Error descriptor if the dispatch failed
    """
    notification_id: str | None = None
    error: DispatchError | None = None

    @property
    def success(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class PermissionResult:
    """Result of acquiring notification permission.

    Attributes:
        token: Push registration token on success
        error: Error descriptor if permission was not obtained
    """
    token: str | None = None
    error: PermissionFailure | None = None

    @property
    def granted(self) -> bool:
        return self.error is None and self.token is not None
