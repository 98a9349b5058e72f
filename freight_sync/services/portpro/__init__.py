"""
PortPro integration: status vocabulary and webhook payload shapes.
"""

from freight_sync.services.portpro.status import (
    LoadStatus,
    PORTPRO_STATUS_MAP,
    map_portpro_status,
)
from freight_sync.services.portpro.events import (
    LoadEventType,
    LoadEventData,
)

__all__ = [
    "LoadStatus",
    "PORTPRO_STATUS_MAP",
    "map_portpro_status",
    "LoadEventType",
    "LoadEventData",
]
