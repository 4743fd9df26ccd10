"""
Response normalization for the feed envelope.

The feed serializes ``messages.message`` as a list of objects, as a single
object when the window holds exactly one message, or leaves it out entirely
when the window is empty. ``classify_message_field`` resolves those shapes
into a ``MessagePayload`` by trying each decode in turn.
"""

from typing import Any, Dict, List, Optional, Union

from .exceptions import MalformedEnvelopeError
from .models import (
    FeedEnvelope,
    FeedMetadata,
    MessagePayload,
    RawMessage,
    RemoteError,
)


def _decode_one(value: Any) -> Optional[RawMessage]:
    if not isinstance(value, dict) or not value:
        return None
    try:
        return RawMessage.from_dict(value)
    except (TypeError, ValueError, OverflowError):
        return None


def _decode_list(value: Any) -> Optional[List[RawMessage]]:
    if not isinstance(value, list):
        return None
    messages = []
    for item in value:
        message = _decode_one(item)
        if message is None:
            return None
        messages.append(message)
    return messages


def classify_message_field(value: Any) -> MessagePayload:
    """Resolve the polymorphic ``message`` field.

    A list of decodable objects is LIST, one decodable object is SINGLE,
    and anything else (absent, null, empty, scalar, or a list holding an
    undecodable element) is EMPTY. Never raises.
    """
    messages = _decode_list(value)
    if messages is not None:
        return MessagePayload.of(messages) if messages else MessagePayload.empty()
    message = _decode_one(value)
    if message is not None:
        return MessagePayload.single(message)
    return MessagePayload.empty()


def _parse_remote_error(errors: Any) -> Optional[RemoteError]:
    if not isinstance(errors, dict):
        return None
    inner = errors.get("error", errors)
    if not isinstance(inner, dict) or not inner.get("code"):
        return None
    return RemoteError(
        code=str(inner["code"]),
        text=str(inner.get("text") or ""),
        description=str(inner.get("description") or ""),
    )


def _section(container: Dict[str, Any], key: str) -> Dict[str, Any]:
    value = container.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise MalformedEnvelopeError(
            f"Expected '{key}' to be an object, got {type(value).__name__}"
        )
    return value


def parse_envelope(body: Any) -> FeedEnvelope:
    """Parse a decoded response body into a ``FeedEnvelope``.

    Raises:
        MalformedEnvelopeError: If the body is not an object with a
            ``response`` object, or a known section has the wrong type
    """
    if not isinstance(body, dict):
        raise MalformedEnvelopeError(
            f"Expected a JSON object, got {type(body).__name__}"
        )
    if not isinstance(body.get("response"), dict):
        raise MalformedEnvelopeError("Envelope has no 'response' object")

    response = body["response"]
    feed_response = _section(response, "feedMessageResponse")
    messages = _section(feed_response, "messages")

    try:
        feed = None
        if feed_response.get("feed") is not None:
            feed = FeedMetadata.from_dict(_section(feed_response, "feed"))
        count = int(feed_response.get("count") or 0)
        total_count = int(feed_response.get("totalCount") or 0)
        activity_count = int(feed_response.get("activityCount") or 0)
    except (TypeError, ValueError) as e:
        raise MalformedEnvelopeError(f"Invalid feed metadata: {e}") from e

    return FeedEnvelope(
        payload=classify_message_field(messages.get("message")),
        feed=feed,
        count=count,
        total_count=total_count,
        activity_count=activity_count,
        error=_parse_remote_error(response.get("errors")),
    )


def normalize(envelope: Union[FeedEnvelope, Dict[str, Any]]) -> List[RawMessage]:
    """Return the envelope's messages in server order; empty windows give []."""
    if not isinstance(envelope, FeedEnvelope):
        envelope = parse_envelope(envelope)
    return list(envelope.payload.messages)
