"""
PortPro status vocabulary -> internal load status.

Upstream vocabulary is not contractually stable, so the mapping is total:
anything unknown lands on LoadStatus.PENDING instead of raising.
"""
from enum import Enum
from typing import Any


class LoadStatus(str, Enum):
    """Internal shipment states."""
    BOOKED = "booked"
    AT_PORT = "at_port"
    IN_TRANSIT = "in_transit"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    PENDING = "pending"


PORTPRO_STATUS_MAP: dict[str, LoadStatus] = {
    "PENDING": LoadStatus.BOOKED,
    "CUSTOMS HOLD": LoadStatus.AT_PORT,
    "FREIGHT HOLD": LoadStatus.AT_PORT,
    "AVAILABLE": LoadStatus.AT_PORT,
    "DISPATCHED": LoadStatus.IN_TRANSIT,
    "DROPPED": LoadStatus.OUT_FOR_DELIVERY,
    "COMPLETED": LoadStatus.DELIVERED,
    "BILLING": LoadStatus.DELIVERED,
    "PARTIAL_PAID": LoadStatus.DELIVERED,
    "FULL_PAID": LoadStatus.DELIVERED,
    "CANCELLED": LoadStatus.CANCELLED,
    "CANCELED": LoadStatus.CANCELLED,
}

DEFAULT_STATUS = LoadStatus.PENDING


def map_portpro_status(raw: Any) -> LoadStatus:
    """
    Maps a PortPro status string to LoadStatus.

    Args:
        raw: Upstream status (may be None, empty or not a string)

    Returns:
        Mapped status, DEFAULT_STATUS when unknown
    """
    if not isinstance(raw, str):
        return DEFAULT_STATUS
    return PORTPRO_STATUS_MAP.get(raw.strip().upper(), DEFAULT_STATUS)
