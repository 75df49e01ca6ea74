from loguru import logger

from clinicbook.domain.exceptions import AppointmentNotFoundError, ConcurrentUpdateError
from clinicbook.domain.models import Appointment


class InMemoryAppointmentStore:
    """In-memory implementation of ``AppointmentStoreProtocol``.

    Records are kept as private copies, so callers only see changes they
    ``save``.  Every save must carry the version it was loaded with; a stale
    version raises ``ConcurrentUpdateError``.

    Set ``get_error`` or ``save_error`` to make the corresponding method
    raise on the next call.  After calls, inspect ``saved`` to see every
    record that was written.
    """

    def __init__(self, appointments: list[Appointment] | None = None) -> None:
        self._records: dict[str, Appointment] = {}
        self.saved: list[Appointment] = []
        self.closed: bool = False

        self.get_error: Exception | None = None
        self.save_error: Exception | None = None

        for appointment in appointments or []:
            self.add(appointment)

    def add(self, appointment: Appointment) -> None:
        """Seed a record without going through the version check."""
        self._records[appointment.appointment_id] = appointment.model_copy(deep=True)

    async def get(self, appointment_id: str) -> Appointment:
        if self.get_error:
            raise self.get_error
        record = self._records.get(appointment_id)
        if record is None:
            raise AppointmentNotFoundError(appointment_id)
        return record.model_copy(deep=True)

    async def save(self, appointment: Appointment) -> None:
        if self.save_error:
            raise self.save_error

        current = self._records.get(appointment.appointment_id)
        if current is not None and current.version != appointment.version:
            raise ConcurrentUpdateError(
                reason=(
                    f"stale version {appointment.version}, stored version is {current.version}"
                ),
                appointment_id=appointment.appointment_id,
            )

        appointment.version += 1
        snapshot = appointment.model_copy(deep=True)
        self._records[appointment.appointment_id] = snapshot
        self.saved.append(snapshot)
        logger.debug(
            "Stored appointment {} at version {}", appointment.appointment_id, appointment.version
        )

    async def close(self) -> None:
        self.closed = True
