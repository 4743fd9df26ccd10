"""
Pytest configuration and shared fixtures.
"""

import io
from datetime import datetime, timezone
from typing import Any, Dict, List

import pytest

from spotlog.logger import get_logger, reset_logger
from spotlog.models import FeedEnvelope, MessagePayload, RawMessage, RemoteError


@pytest.fixture(autouse=True)
def quiet_logger(tmp_path):
    """Route the global logger to a temporary directory for every test."""
    reset_logger()
    logger = get_logger(log_dir=tmp_path / "logs", enable_console=False)
    yield logger
    reset_logger()


@pytest.fixture
def sample_message() -> Dict[str, Any]:
    """One message object as the feed serializes it."""
    return {
        "@clientUnicodeVersion": "1.0",
        "id": 1718294721,
        "messengerId": "0-2784321",
        "messengerName": "SPOT3",
        "unixTime": 1700000000,
        "messageType": "TRACK",
        "latitude": 46.51234,
        "longitude": -6.63321,
        "modelId": "SPOT3",
        "showCustomMsg": "Y",
        "dateTime": "2023-11-14T22:13:20+0000",
        "batteryState": "GOOD",
        "hidden": 0,
        "altitude": 412,
    }


@pytest.fixture
def make_body():
    """Build a response body around a ``messages.message`` value."""
    def _make_body(message=None, omit_message=False, errors=None):
        messages = {} if omit_message else {"message": message}
        body = {
            "response": {
                "feedMessageResponse": {
                    "count": len(message) if isinstance(message, list) else (1 if message else 0),
                    "feed": {
                        "id": "0abcDEF",
                        "name": "Expedition",
                        "description": "Expedition",
                        "status": "ACTIVE",
                        "usage": 0,
                        "daysRange": 7,
                        "detailedMessageShown": False,
                        "type": "SHARED_PAGE",
                    },
                    "totalCount": 0,
                    "activityCount": 0,
                    "messages": messages,
                }
            }
        }
        if errors is not None:
            body["response"]["errors"] = errors
        return body
    return _make_body


def _message_at(unix_time: int) -> RawMessage:
    return RawMessage(
        id=unix_time,
        unix_time=unix_time,
        messenger_id="0-2784321",
        message_type="TRACK",
        latitude=46.5,
        longitude=-6.6,
        battery_state="GOOD",
    )


def _envelope_of(times: List[int], error: RemoteError = None) -> FeedEnvelope:
    if not times:
        payload = MessagePayload.empty()
    elif len(times) == 1:
        payload = MessagePayload.single(_message_at(times[0]))
    else:
        payload = MessagePayload.of(_message_at(t) for t in times)
    return FeedEnvelope(payload=payload, error=error)


class ScriptedClient:
    """Feed client double that replays scripted batches and records windows.

    Each script entry is a list of unix times, a ``FeedEnvelope``, or an
    exception to raise. Once the script runs out every window is empty.
    """

    def __init__(self, script):
        self.script = list(script)
        self.windows = []

    def fetch_window(self, window):
        self.windows.append(window)
        if not self.script:
            return _envelope_of([])
        entry = self.script.pop(0)
        if isinstance(entry, Exception):
            raise entry
        if isinstance(entry, FeedEnvelope):
            return entry
        return _envelope_of(entry)


class FrozenClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def envelope_of():
    """Factory: unix times -> ``FeedEnvelope`` with fixes at those times."""
    return _envelope_of


@pytest.fixture
def message_at():
    return _message_at


@pytest.fixture
def scripted_client():
    """Factory for ``ScriptedClient``."""
    return ScriptedClient


@pytest.fixture
def now() -> datetime:
    return datetime(2024, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def clock(now) -> FrozenClock:
    return FrozenClock(now)


@pytest.fixture
def sleeps() -> List[float]:
    """Delays passed to the injected sleep function."""
    return []


@pytest.fixture
def output() -> io.StringIO:
    return io.StringIO()
