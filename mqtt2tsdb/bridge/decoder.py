"""Topic and payload decoding for inbound sensor messages.

Topics carry the reading's identity as ``<location>/<room>/<sensor>/<measurement>``
and the payload is a plain decimal number in UTF-8 text.
"""

import math
import re
from typing import List

from mqtt2tsdb.shared.models import Reading

TOPIC_SEPARATOR = "/"
TOPIC_SEGMENTS = 4

# Plain decimal literal, optionally signed, optional exponent
_DECIMAL_RE = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?", re.ASCII)


class DecodeError(ValueError):
    """Base class for messages that cannot be turned into a Reading."""

    def __init__(self, message: str, topic: str):
        super().__init__(message)
        self.topic = topic


class MalformedTopic(DecodeError):
    """Topic has no separator or contains an empty segment."""


class WrongSegmentCount(DecodeError):
    """Topic does not split into exactly four segments."""

    def __init__(self, message: str, topic: str, count: int):
        super().__init__(message, topic)
        self.count = count


class InvalidNumber(DecodeError):
    """Payload is not a finite decimal number."""


def split_topic(topic: str) -> List[str]:
    """Split a topic into its four segments.

    Raises:
        MalformedTopic: If the topic has no separator or an empty segment.
        WrongSegmentCount: If there are not exactly four segments.
    """
    if TOPIC_SEPARATOR not in topic:
        raise MalformedTopic(f"Metric doesn't follow slash format: {topic}", topic)

    segments = topic.split(TOPIC_SEPARATOR)
    if len(segments) != TOPIC_SEGMENTS:
        raise WrongSegmentCount(
            f"Metric has {len(segments)} elements instead of {TOPIC_SEGMENTS} ({topic})",
            topic,
            len(segments),
        )

    if not all(segments):
        raise MalformedTopic(f"Metric has an empty segment: {topic}", topic)

    return segments


def parse_value(payload: bytes, topic: str = "") -> float:
    """Parse a payload as a finite float.

    Surrounding whitespace is stripped before parsing, so publishers that
    append a newline (`mosquitto_pub -l`, shell `echo`) are accepted.

    Raises:
        InvalidNumber: If the payload is not UTF-8, not a decimal literal,
            or not finite.
    """
    try:
        text = payload.decode("utf-8").strip()
    except UnicodeDecodeError as e:
        raise InvalidNumber(f"Payload is not valid UTF-8: {e}", topic) from e

    if not _DECIMAL_RE.fullmatch(text):
        raise InvalidNumber(f"Unable to convert payload to float: {text!r}", topic)

    value = float(text)
    if not math.isfinite(value):
        raise InvalidNumber(f"Payload is out of float range: {text!r}", topic)
    return value


def decode(topic: str, payload: bytes) -> Reading:
    """Decode one message into a Reading.

    Args:
        topic: The MQTT topic (e.g., "kitchen/main/dht22/temperature")
        payload: The message payload (e.g., b"21.5")

    Returns:
        Reading with the topic segments bound positionally and no timestamp.

    Raises:
        DecodeError: MalformedTopic, WrongSegmentCount or InvalidNumber.
    """
    location, room, sensor, measurement = split_topic(topic)
    value = parse_value(payload, topic)
    return Reading(
        location=location,
        room=room,
        sensor=sensor,
        measurement=measurement,
        value=value,
    )
