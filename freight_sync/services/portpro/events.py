"""
PortPro webhook events.

- LoadEventType: the load events we know how to reconcile
- LoadEventData: flat view of a webhook payload

The upstream sends the same information in different places depending on
the event family (reference number at the top level or under `data`, status
under `data` or under `changedValues`). All of that lookup lives in
LoadEventData.from_payload so handlers only read flat fields.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class LoadEventType(str, Enum):
    """Load events handled by the reconciler."""
    CREATED = "load#created"
    STATUS_UPDATED = "load#status_updated"
    INFO_UPDATED = "load#info_updated"
    DATES_UPDATED = "load#dates_updated"
    EQUIPMENT_UPDATED = "load#equipment_updated"

    @classmethod
    def from_raw(cls, raw: Any) -> Optional["LoadEventType"]:
        """Returns the enum member for `raw`, or None when not handled."""
        try:
            return cls(raw)
        except ValueError:
            return None


def _present(value: Any) -> Any:
    """Normalizes empty values (None, "", whitespace) to None."""
    if value is None:
        return None
    if isinstance(value, str) and not value.strip():
        return None
    return value


def _as_dict(value: Any) -> dict:
    return value if isinstance(value, dict) else {}


def _first_of(items: Any, key: str) -> Any:
    """items[0][key] for a non-empty list of dicts, else None."""
    if not isinstance(items, list) or not items:
        return None
    return _present(_as_dict(items[0]).get(key))


@dataclass(frozen=True)
class LoadEventData:
    """Fields of a webhook payload relevant to reconciliation."""

    has_data: bool
    reference_number: Optional[str] = None
    load_id: Optional[str] = None
    status: Optional[str] = None
    container_number: Optional[str] = None
    container_size: Optional[str] = None
    chassis_number: Optional[str] = None
    seal_number: Optional[str] = None
    delivery_from_time: Optional[str] = None
    pickup_from_time: Optional[str] = None
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Any) -> "LoadEventData":
        """
        Builds the flat view of a webhook payload.

        Args:
            payload: Parsed webhook body

        Returns:
            LoadEventData; has_data is False when `data` is missing
        """
        payload = _as_dict(payload)
        data = payload.get("data")
        if not isinstance(data, dict):
            reference = _present(payload.get("reference_number"))
            return cls(
                has_data=False,
                reference_number=str(reference) if reference is not None else None,
            )

        changed = _as_dict(data.get("changedValues")) or _as_dict(payload.get("changedValues"))
        caller = _as_dict(data.get("caller"))

        reference = _present(payload.get("reference_number")) or _present(data.get("reference_number"))

        return cls(
            has_data=True,
            reference_number=str(reference) if reference is not None else None,
            load_id=_present(data.get("_id")),
            status=_present(data.get("status")) or _present(changed.get("status")),
            container_number=_present(data.get("containerNo")),
            container_size=_present(data.get("containerSize")),
            chassis_number=_present(data.get("chassisNo")),
            seal_number=_present(data.get("sealNo")),
            delivery_from_time=_first_of(data.get("deliveryTimes"), "deliveryFromTime"),
            pickup_from_time=_first_of(data.get("pickupTimes"), "pickupFromTime"),
            customer_name=_present(caller.get("company_name")),
            customer_email=_present(caller.get("email")),
        )
