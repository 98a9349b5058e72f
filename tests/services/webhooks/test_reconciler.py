"""
Tests for EventReconciler.
"""
from unittest.mock import AsyncMock, MagicMock

import pytest

from freight_sync.core.exceptions import DatabaseError
from freight_sync.repositories.load import LoadAlreadyExistsError
from freight_sync.services.webhooks.reconciler import (
    EventReconciler,
    ReconcileOutcome,
    generate_tracking_number,
)


@pytest.fixture
def loads():
    """LoadRepository mock; no load exists by default."""
    repo = MagicMock()
    repo.find_by_reference = AsyncMock(return_value=None)
    repo.create = AsyncMock(side_effect=lambda data: data)
    repo.update_by_reference = AsyncMock(return_value=1)
    return repo


@pytest.fixture
def reconciler(loads):
    return EventReconciler(loads)


class TestLoadCreated:
    """load#created."""

    @pytest.mark.asyncio
    async def test_creates_load(self, reconciler, loads, created_payload):
        result = await reconciler.reconcile("load#created", created_payload)

        assert result.outcome == ReconcileOutcome.APPLIED
        data = loads.create.call_args[0][0]
        assert data["portpro_reference"] == "POP-1001"
        assert data["portpro_load_id"] == "64f0c2a1b2"
        assert data["container_number"] == "MSCU1234567"
        assert data["status"] == "at_port"
        assert data["customer_name"] == "Acme Imports"
        assert data["customer_email"] == "ops@acme.test"
        assert data["tracking_number"].startswith("NSL")

    @pytest.mark.asyncio
    async def test_defaults_for_missing_container_and_status(self, reconciler, loads):
        payload = {"reference_number": "POP-2", "data": {"_id": "x"}}

        await reconciler.reconcile("load#created", payload)

        data = loads.create.call_args[0][0]
        assert data["container_number"] == "PENDING"
        assert data["status"] == "booked"

    @pytest.mark.asyncio
    async def test_existing_load_is_skipped(self, reconciler, loads, created_payload):
        loads.find_by_reference.return_value = {"id": "load-1"}

        result = await reconciler.reconcile("load#created", created_payload)

        assert result.outcome == ReconcileOutcome.SKIPPED
        assert result.succeeded is True
        loads.create.assert_not_called()

    @pytest.mark.asyncio
    async def test_replay_creates_once(self, reconciler, loads, created_payload):
        first = await reconciler.reconcile("load#created", created_payload)
        loads.find_by_reference.return_value = {"id": "load-1"}
        second = await reconciler.reconcile("load#created", created_payload)

        assert first.outcome == ReconcileOutcome.APPLIED
        assert second.outcome == ReconcileOutcome.SKIPPED
        assert loads.create.await_count == 1

    @pytest.mark.asyncio
    async def test_concurrent_insert_is_skipped(self, reconciler, loads, created_payload):
        loads.create.side_effect = LoadAlreadyExistsError("Load already exists")

        result = await reconciler.reconcile("load#created", created_payload)

        assert result.outcome == ReconcileOutcome.SKIPPED


class TestLoadUpdates:
    """status/info/dates/equipment updates."""

    @pytest.mark.asyncio
    async def test_status_update_from_changed_values(self, reconciler, loads):
        payload = {
            "reference_number": "POP-1",
            "data": {"changedValues": {"status": "dispatched"}},
        }

        result = await reconciler.reconcile("load#status_updated", payload)

        assert result.outcome == ReconcileOutcome.APPLIED
        loads.update_by_reference.assert_awaited_once_with("POP-1", {"status": "in_transit"})

    @pytest.mark.asyncio
    async def test_status_update_without_status_is_noop(self, reconciler, loads):
        payload = {"reference_number": "POP-1", "data": {"containerNo": "X"}}

        result = await reconciler.reconcile("load#status_updated", payload)

        assert result.outcome == ReconcileOutcome.SKIPPED
        loads.update_by_reference.assert_not_called()

    @pytest.mark.asyncio
    async def test_info_update_with_only_container_size(self, reconciler, loads):
        payload = {"reference_number": "POP-1", "data": {"containerSize": "45'"}}

        result = await reconciler.reconcile("load#info_updated", payload)

        assert result.outcome == ReconcileOutcome.APPLIED
        loads.update_by_reference.assert_awaited_once_with("POP-1", {"container_size": "45'"})

    @pytest.mark.asyncio
    async def test_info_update_writes_only_present_fields(self, reconciler, loads):
        payload = {
            "reference_number": "POP-1",
            "data": {
                "deliveryTimes": [{"deliveryFromTime": "2025-01-20T08:00:00Z"}],
                "pickupTimes": [],
            },
        }

        await reconciler.reconcile("load#info_updated", payload)

        loads.update_by_reference.assert_awaited_once_with(
            "POP-1", {"eta": "2025-01-20T08:00:00Z"}
        )

    @pytest.mark.asyncio
    async def test_dates_update_shares_info_handler(self, reconciler, loads):
        payload = {
            "reference_number": "POP-1",
            "data": {"pickupTimes": [{"pickupFromTime": "2025-01-18T10:00:00Z"}], "containerSize": "20'"},
        }

        await reconciler.reconcile("load#dates_updated", payload)

        loads.update_by_reference.assert_awaited_once_with(
            "POP-1", {"pickup_time": "2025-01-18T10:00:00Z", "container_size": "20'"}
        )

    @pytest.mark.asyncio
    async def test_equipment_update(self, reconciler, loads):
        payload = {
            "reference_number": "POP-1",
            "data": {"containerNo": "TGHU7654321", "chassisNo": "CH-9", "sealNo": ""},
        }

        await reconciler.reconcile("load#equipment_updated", payload)

        loads.update_by_reference.assert_awaited_once_with(
            "POP-1", {"container_number": "TGHU7654321", "chassis_number": "CH-9"}
        )

    @pytest.mark.asyncio
    async def test_update_for_unknown_load_is_skipped(self, reconciler, loads):
        loads.update_by_reference.return_value = 0
        payload = {"reference_number": "POP-404", "data": {"status": "DROPPED"}}

        result = await reconciler.reconcile("load#status_updated", payload)

        assert result.outcome == ReconcileOutcome.SKIPPED
        assert result.succeeded is True


class TestSkipsAndFailures:
    """Unhandled events, payload gaps and datastore errors."""

    @pytest.mark.asyncio
    async def test_unknown_event_type_touches_nothing(self, reconciler, loads, created_payload):
        result = await reconciler.reconcile("load#deleted", created_payload)

        assert result.outcome == ReconcileOutcome.SKIPPED
        loads.find_by_reference.assert_not_called()
        loads.create.assert_not_called()
        loads.update_by_reference.assert_not_called()

    @pytest.mark.asyncio
    async def test_payload_without_data(self, reconciler, loads):
        result = await reconciler.reconcile("load#created", {"reference_number": "POP-1"})

        assert result.outcome == ReconcileOutcome.SKIPPED
        loads.create.assert_not_called()

    @pytest.mark.asyncio
    async def test_payload_without_reference(self, reconciler, loads):
        result = await reconciler.reconcile("load#status_updated", {"data": {"status": "DROPPED"}})

        assert result.outcome == ReconcileOutcome.SKIPPED
        loads.update_by_reference.assert_not_called()

    @pytest.mark.asyncio
    async def test_database_error_fails(self, reconciler, loads):
        loads.update_by_reference.side_effect = DatabaseError("loads.update_by_reference failed: timeout")
        payload = {"reference_number": "POP-1", "data": {"status": "DROPPED"}}

        result = await reconciler.reconcile("load#status_updated", payload)

        assert result.outcome == ReconcileOutcome.FAILED
        assert result.succeeded is False
        assert "timeout" in result.error


class TestTrackingNumber:
    def test_format(self):
        tracking = generate_tracking_number()

        assert tracking.startswith("NSL")
        assert tracking == tracking.upper()
        assert len(tracking) > 7

    def test_unique(self):
        assert generate_tracking_number() != generate_tracking_number()
