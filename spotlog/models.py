"""
Value objects shared by the feed client, normalizer, mapper and harvester.

All timestamps are timezone-aware UTC datetimes with whole-second precision.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional, Tuple

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

# Opaque wire vocabulary ("GOOD", "LOW", ...); never validated.
BatteryState = str


def to_utc(dt: datetime) -> datetime:
    """Return ``dt`` as an aware UTC datetime truncated to the second."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).replace(microsecond=0)


def from_unix(seconds: int) -> datetime:
    return datetime.fromtimestamp(seconds, tz=timezone.utc)


@dataclass(frozen=True)
class FeedWindow:
    """Time range ``[after, before)`` bounding one fetch."""

    feed_id: str
    after: datetime
    before: datetime

    def __post_init__(self):
        object.__setattr__(self, "after", to_utc(self.after))
        object.__setattr__(self, "before", to_utc(self.before))
        if self.after > self.before:
            raise ValueError(
                f"Window lower bound {self.after.isoformat()} is after "
                f"upper bound {self.before.isoformat()}"
            )


def _as_int(value: Any) -> int:
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"expected a number, got {type(value).__name__}")
    if isinstance(value, float) and not value.is_integer():
        raise ValueError(f"expected an integer, got {value!r}")
    return int(value)


def _as_unix_time(value: Any) -> int:
    seconds = _as_int(value)
    try:
        from_unix(seconds)
    except (OverflowError, OSError, ValueError):
        raise ValueError(f"unix time {seconds} is out of range") from None
    return seconds


def _as_bool(value: Any) -> bool:
    if value is None:
        return False
    if not isinstance(value, bool):
        raise TypeError(f"expected a boolean, got {type(value).__name__}")
    return value


def _as_float(value: Any) -> float:
    if value is None:
        return 0.0
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"expected a number, got {type(value).__name__}")
    return float(value)


def _as_str(value: Any) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        raise TypeError(f"expected a string, got {type(value).__name__}")
    return value


@dataclass(frozen=True)
class RawMessage:
    """A feed message as received. Missing keys decode to zero values."""

    id: int = 0
    unix_time: int = 0
    messenger_id: str = ""
    messenger_name: str = ""
    model_id: str = ""
    message_type: str = ""
    latitude: float = 0.0
    longitude: float = 0.0
    battery_state: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RawMessage":
        """Decode a wire message object.

        Raises:
            TypeError: If a present field has an incompatible JSON type
            ValueError: If an integer field is fractional or unixTime is out of range
        """
        return cls(
            id=_as_int(data.get("id")),
            unix_time=_as_unix_time(data.get("unixTime")),
            messenger_id=_as_str(data.get("messengerId")),
            messenger_name=_as_str(data.get("messengerName")),
            model_id=_as_str(data.get("modelId")),
            message_type=_as_str(data.get("messageType")),
            latitude=_as_float(data.get("latitude")),
            longitude=_as_float(data.get("longitude")),
            battery_state=_as_str(data.get("batteryState")),
        )


@dataclass(frozen=True)
class Position:
    latitude: float
    longitude: float


@dataclass(frozen=True)
class Fix:
    """One normalized location/status record."""

    id: int
    time: datetime
    messenger_id: str
    message_type: str
    position: Position
    battery_state: BatteryState


@dataclass(frozen=True)
class BatchResult:
    """Fixes of one fetched window, in server order, with their time extremes."""

    oldest: datetime
    newest: datetime
    fixes: Tuple[Fix, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.fixes

    def __len__(self) -> int:
        return len(self.fixes)


@dataclass(frozen=True)
class FeedMetadata:
    id: str = ""
    name: str = ""
    description: str = ""
    status: str = ""
    usage: int = 0
    days_range: int = 0
    detailed_message_shown: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FeedMetadata":
        return cls(
            id=_as_str(data.get("id")),
            name=_as_str(data.get("name")),
            description=_as_str(data.get("description")),
            status=_as_str(data.get("status")),
            usage=_as_int(data.get("usage")),
            days_range=_as_int(data.get("daysRange")),
            detailed_message_shown=_as_bool(data.get("detailedMessageShown")),
        )


@dataclass(frozen=True)
class RemoteError:
    """Application error reported inside the feed envelope."""

    code: str
    text: str = ""
    description: str = ""

    @property
    def means_no_messages(self) -> bool:
        return self.code == NO_MESSAGES_ERROR_CODE


# Code the feed returns instead of a message list for an empty window.
NO_MESSAGES_ERROR_CODE = "E-0195"


class PayloadKind(Enum):
    EMPTY = "empty"
    SINGLE = "single"
    LIST = "list"


@dataclass(frozen=True)
class MessagePayload:
    """The ``messages.message`` field resolved to one of its three shapes."""

    kind: PayloadKind
    messages: Tuple[RawMessage, ...] = ()

    @classmethod
    def empty(cls) -> "MessagePayload":
        return cls(PayloadKind.EMPTY)

    @classmethod
    def single(cls, message: RawMessage) -> "MessagePayload":
        return cls(PayloadKind.SINGLE, (message,))

    @classmethod
    def of(cls, messages) -> "MessagePayload":
        return cls(PayloadKind.LIST, tuple(messages))


@dataclass(frozen=True)
class FeedEnvelope:
    """Parsed top-level response of one fetch."""

    payload: MessagePayload
    feed: Optional[FeedMetadata] = None
    count: int = 0
    total_count: int = 0
    activity_count: int = 0
    error: Optional[RemoteError] = None
