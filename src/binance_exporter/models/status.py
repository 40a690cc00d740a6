"""
Service status models for the Binance exporter.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Any


class ServiceStatus(IntEnum):
    """Binance API status. Either online or under maintenance."""
    ONLINE = 0
    MAINTENANCE = 1

    def __str__(self) -> str:
        if self is ServiceStatus.ONLINE:
            return "Online"
        return "Under maintenance"


@dataclass(frozen=True)
class StatusResponse:
    """Decoded body of the system status endpoint."""
    status: ServiceStatus
    message: str = ""

    @classmethod
    def from_dict(cls, data: Any) -> "StatusResponse":
        """
        Build a StatusResponse from a decoded JSON body.

        Raises:
            ValueError: If the body is not an object or the status is unknown
        """
        if not isinstance(data, dict):
            raise ValueError(f"Expected a JSON object, got {type(data).__name__}")

        raw_status = data.get("status")
        # bool is an int subclass, reject it explicitly
        if isinstance(raw_status, bool) or not isinstance(raw_status, int):
            raise ValueError(f"Invalid status value: {raw_status!r}")

        return cls(
            status=ServiceStatus(raw_status),
            message=str(data.get("msg", "")),
        )
