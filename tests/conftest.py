import datetime as dt
from typing import Callable

import pytest

from clinicbook.domain.models import Appointment, AppointmentStatus
from clinicbook.lifecycle.adapters.memory import InMemoryAppointmentStore
from clinicbook.lifecycle.service import AppointmentService

MakeAppointment = Callable[..., Appointment]


@pytest.fixture
def now() -> dt.datetime:
    return dt.datetime(2026, 3, 15, 16, 45, tzinfo=dt.timezone.utc)


@pytest.fixture
def make_appointment() -> MakeAppointment:
    """Build an appointment in the given status with sensible defaults."""

    def _make(
        status: AppointmentStatus | str | None = AppointmentStatus.PENDING, **overrides: object
    ) -> Appointment:
        fields: dict[str, object] = {
            "appointment_id": "appt-1",
            "status": status,
            "date": dt.date(2026, 3, 15),
            "time": "14:30",
            "reason": "Annual vaccination",
            "veterinarian_notes": "Bring vaccination card",
        }
        fields.update(overrides)
        return Appointment.model_validate(fields)

    return _make


@pytest.fixture
def store() -> InMemoryAppointmentStore:
    return InMemoryAppointmentStore()


@pytest.fixture
def service(store: InMemoryAppointmentStore, now: dt.datetime) -> AppointmentService:
    return AppointmentService(store, clock=lambda: now)
