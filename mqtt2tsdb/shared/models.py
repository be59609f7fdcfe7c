"""Core data models for sensor readings."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass
class Reading:
    """A single decoded sensor reading.

    The four string fields come positionally from the topic
    ``<location>/<room>/<sensor>/<measurement>``. ``timestamp`` stays None
    until the row is written; the database assigns it with ``NOW()``.
    """
    location: str
    room: str
    sensor: str
    measurement: str
    value: float
    timestamp: Optional[datetime] = None

    def topic(self) -> str:
        """Rebuild the topic this reading was decoded from."""
        return "/".join((self.location, self.room, self.sensor, self.measurement))
