"""Unit tests for transition dispatch handlers."""

from unittest.mock import AsyncMock

import pytest

from clinicbook.dispatch.handlers import TransitionHandlers
from clinicbook.domain.exceptions import PersistenceError
from clinicbook.domain.models import AppointmentStatus, TransitionAction
from clinicbook.lifecycle.adapters.memory import InMemoryAppointmentStore
from clinicbook.lifecycle.service import AppointmentService

# Fixtures (store, service, make_appointment) provided by tests/conftest.py


@pytest.fixture
def handlers(service: AppointmentService) -> TransitionHandlers:
    return TransitionHandlers(service)


class TestDispatch:
    @pytest.mark.asyncio
    async def test_approve_from_request_body(
        self, handlers: TransitionHandlers, store: InMemoryAppointmentStore, make_appointment
    ) -> None:
        store.add(make_appointment())

        result = await handlers.dispatch(
            "approve", "appt-1", {"consultationFee": 50, "veterinarianNotes": "ok"}
        )

        assert result["success"] is True
        assert result["message"] == "Appointment approved successfully."
        assert result["appointment"]["status"] == "APPROVED"
        assert result["appointment"]["consultationFee"] == 50
        assert result["appointment"]["veterinarianNotes"] == "ok"

    @pytest.mark.asyncio
    async def test_accepts_enum_action_and_no_payload(
        self, handlers: TransitionHandlers, store: InMemoryAppointmentStore, make_appointment
    ) -> None:
        store.add(make_appointment(AppointmentStatus.APPROVED))

        result = await handlers.dispatch(TransitionAction.CONFIRM, "appt-1")

        assert result["success"] is True
        assert result["appointment"]["status"] == "CONFIRMED"

    @pytest.mark.asyncio
    async def test_complete_payload(
        self, handlers: TransitionHandlers, store: InMemoryAppointmentStore, make_appointment
    ) -> None:
        store.add(make_appointment(AppointmentStatus.CONFIRMED))

        result = await handlers.dispatch(
            "complete",
            "appt-1",
            {"diagnosis": " flu ", "treatment": " rest ", "followUpRequired": True},
        )

        appointment = result["appointment"]
        assert appointment["status"] == "COMPLETED"
        assert appointment["diagnosis"] == "flu"
        assert appointment["followUpRequired"] is True
        assert appointment["completedAt"] is not None

    @pytest.mark.asyncio
    async def test_reschedule_and_reject(
        self, handlers: TransitionHandlers, store: InMemoryAppointmentStore, make_appointment
    ) -> None:
        store.add(make_appointment(AppointmentStatus.CONFIRMED))

        moved = await handlers.dispatch(
            "reschedule", "appt-1", {"date": "2026-04-01", "time": "08:30", "reason": "surgery"}
        )
        rejected = await handlers.dispatch("reject", "appt-1", {"reason": "fully booked"})

        assert moved["appointment"]["status"] == "PENDING"
        assert moved["appointment"]["time"] == "08:30"
        assert rejected["appointment"]["status"] == "REJECTED"
        assert rejected["appointment"]["veterinarianNotes"] == "Rejected: fully booked"

    @pytest.mark.asyncio
    async def test_unknown_action(self, handlers: TransitionHandlers) -> None:
        result = await handlers.dispatch("archive", "appt-1")

        assert result["error"] is True
        assert result["error_type"] == "unknown_action"

    @pytest.mark.asyncio
    async def test_missing_appointment_id(self, handlers: TransitionHandlers) -> None:
        result = await handlers.dispatch("confirm", "")

        assert result["error_type"] == "validation"


class TestErrorMapping:
    @pytest.mark.asyncio
    async def test_invalid_transition(
        self, handlers: TransitionHandlers, store: InMemoryAppointmentStore, make_appointment
    ) -> None:
        store.add(make_appointment(AppointmentStatus.CANCELLED))

        result = await handlers.dispatch("cancel", "appt-1", {"reason": "again"})

        assert result["success"] is False
        assert result["error_type"] == "invalid_transition"
        assert "cannot cancel" in result["message"]

    @pytest.mark.asyncio
    async def test_not_found(self, handlers: TransitionHandlers) -> None:
        result = await handlers.dispatch("confirm", "missing")

        assert result["error_type"] == "not_found"

    @pytest.mark.asyncio
    async def test_schema_validation(
        self, handlers: TransitionHandlers, store: InMemoryAppointmentStore, make_appointment
    ) -> None:
        store.add(make_appointment())

        result = await handlers.dispatch("approve", "appt-1", {"consultationFee": -5})

        assert result["error_type"] == "validation"
        assert store.saved == []

    @pytest.mark.asyncio
    async def test_missing_completion_details(
        self, handlers: TransitionHandlers, store: InMemoryAppointmentStore, make_appointment
    ) -> None:
        store.add(make_appointment(AppointmentStatus.APPROVED))

        result = await handlers.dispatch("complete", "appt-1", {"diagnosis": "flu"})

        assert result["error_type"] == "validation"
        assert "treatment" in result["message"]

    @pytest.mark.asyncio
    async def test_past_reschedule_date(
        self, handlers: TransitionHandlers, store: InMemoryAppointmentStore, make_appointment
    ) -> None:
        store.add(make_appointment(AppointmentStatus.APPROVED))

        result = await handlers.dispatch(
            "reschedule", "appt-1", {"date": "2001-01-01", "time": "10:00"}
        )

        assert result["error_type"] == "validation"
        assert "must be in the future" in result["message"]
        assert store.saved == []

    @pytest.mark.asyncio
    async def test_oversized_completion_text(
        self, handlers: TransitionHandlers, store: InMemoryAppointmentStore, make_appointment
    ) -> None:
        store.add(make_appointment(AppointmentStatus.CONFIRMED))

        result = await handlers.dispatch(
            "complete",
            "appt-1",
            {"diagnosis": "x" * 5000, "treatment": "y", "veterinarianNotes": "n" * 5000},
        )

        assert result["error_type"] == "validation"
        assert store.saved == []

    @pytest.mark.asyncio
    async def test_cancel_note_over_notes_limit(
        self, handlers: TransitionHandlers, store: InMemoryAppointmentStore, make_appointment
    ) -> None:
        store.add(make_appointment(AppointmentStatus.APPROVED))

        result = await handlers.dispatch("cancel", "appt-1", {"reason": "c" * 1995})

        assert result["error_type"] == "validation"
        assert store.saved == []

    @pytest.mark.asyncio
    async def test_persistence_failure(
        self, handlers: TransitionHandlers, store: InMemoryAppointmentStore, make_appointment
    ) -> None:
        store.add(make_appointment(AppointmentStatus.APPROVED))
        store.save_error = PersistenceError(reason="disk full")

        result = await handlers.dispatch("confirm", "appt-1")

        assert result["error_type"] == "persistence"
        assert "disk full" in result["message"]

    @pytest.mark.asyncio
    async def test_conflict(
        self,
        handlers: TransitionHandlers,
        store: InMemoryAppointmentStore,
        make_appointment,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        store.add(make_appointment(AppointmentStatus.APPROVED))
        stale = await store.get("appt-1")
        stale.status = AppointmentStatus.CONFIRMED
        await store.save(await store.get("appt-1"))
        monkeypatch.setattr(store, "get", AsyncMock(return_value=stale))

        result = await handlers.dispatch("cancel", "appt-1")

        assert result["error_type"] == "conflict"

    @pytest.mark.asyncio
    async def test_unexpected_error_is_reported_generically(self) -> None:
        service = AsyncMock()
        service.confirm.side_effect = RuntimeError("boom")
        handlers = TransitionHandlers(service)

        result = await handlers.dispatch("confirm", "appt-1")

        assert result["error_type"] == "internal"
        assert "unexpected error" in result["message"]
        assert "boom" not in result["message"]
