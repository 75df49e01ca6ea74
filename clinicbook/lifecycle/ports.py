from abc import ABC, abstractmethod
from typing import Protocol

from clinicbook.domain.models import (
    Appointment,
    ApprovalDetails,
    CompletionDetails,
    RescheduleDetails,
)


class AppointmentStoreProtocol(Protocol):
    """Persistence collaborator the lifecycle writes through."""

    async def get(self, appointment_id: str) -> Appointment:
        """Load an appointment by ID."""
        ...

    async def save(self, appointment: Appointment) -> None:
        """Durably save the mutated record."""
        ...

    async def close(self) -> None:
        """Release resources."""
        ...


class AbstractAppointmentService(ABC):
    """Abstract base class for appointment lifecycle operations."""

    @abstractmethod
    async def get(self, appointment_id: str) -> Appointment:
        """Load an appointment.

        Raises:
            AppointmentNotFoundError: If no such appointment exists.
            PersistenceError: If the store is unreachable.
        """

    @abstractmethod
    async def approve(self, appointment_id: str, details: ApprovalDetails) -> Appointment:
        """Approve a pending booking request, setting the consultation fee.

        Raises:
            InvalidTransitionError: If the appointment is not pending.
            PersistenceError: If the approved record cannot be saved.
        """

    @abstractmethod
    async def confirm(self, appointment_id: str) -> Appointment:
        """Confirm an approved appointment on behalf of the pet owner."""

    @abstractmethod
    async def complete(self, appointment_id: str, details: CompletionDetails) -> Appointment:
        """Record the visit outcome and close the appointment.

        Raises:
            InvalidTransitionError: If the appointment is not approved or confirmed.
            CompletionDetailsError: If diagnosis or treatment is missing.
            PersistenceError: If the completed record cannot be saved.
        """

    @abstractmethod
    async def cancel(self, appointment_id: str, reason: str | None = None) -> Appointment:
        """Cancel an approved or confirmed appointment."""

    @abstractmethod
    async def reject(self, appointment_id: str, reason: str | None = None) -> Appointment:
        """Reject a pending booking request."""

    @abstractmethod
    async def reschedule(self, appointment_id: str, details: RescheduleDetails) -> Appointment:
        """Move the appointment to a new slot.

        Approved and confirmed appointments fall back to pending and must be
        approved again.

        Raises:
            InvalidTransitionError: If the appointment is completed, cancelled or rejected.
            PastAppointmentDateError: If the new date is before today in the clinic timezone.
            ValidationError: If the rescheduling note would exceed the notes limit.
        """

    @abstractmethod
    async def close(self) -> None:
        """Release resources held by this service."""
