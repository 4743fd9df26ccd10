"""Map raw feed messages to ``Fix`` records and track batch time extremes."""

from datetime import datetime, timezone
from typing import Iterable, Optional

from .models import EPOCH, BatchResult, Fix, Position, RawMessage, from_unix, to_utc


def to_fix(message: RawMessage) -> Fix:
    return Fix(
        id=message.id,
        time=from_unix(message.unix_time),
        messenger_id=message.messenger_id,
        message_type=message.message_type,
        position=Position(message.latitude, message.longitude),
        battery_state=message.battery_state,
    )


def map_messages(messages: Iterable[RawMessage], now: Optional[datetime] = None) -> BatchResult:
    """
    Convert one batch of messages into a ``BatchResult``.

    The running oldest starts at ``now`` and the running newest at the Unix
    epoch, so an empty batch yields ``(now, epoch)``.

    Args:
        messages: Raw messages in server order
        now: Reference time (defaults to the current UTC time)
    """
    oldest = to_utc(now) if now is not None else to_utc(datetime.now(timezone.utc))
    newest = EPOCH
    fixes = []
    for message in messages:
        fix = to_fix(message)
        fixes.append(fix)
        if fix.time < oldest:
            oldest = fix.time
        if fix.time > newest:
            newest = fix.time
    return BatchResult(oldest=oldest, newest=newest, fixes=tuple(fixes))
