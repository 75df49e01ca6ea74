"""Per-status behaviour of an appointment.

Each state class overrides only the transitions that are legal from its
status. Everything else falls through to ``AppointmentState`` and raises
``InvalidTransitionError``.
"""

from typing import Any

from loguru import logger

from clinicbook.domain.exceptions import (
    CompletionDetailsError,
    InvalidTransitionError,
    PastAppointmentDateError,
    PersistenceError,
)
from clinicbook.domain.models import (
    Appointment,
    AppointmentStatus,
    ApprovalDetails,
    CompletionDetails,
    RescheduleDetails,
    TransitionAction,
)
from clinicbook.lifecycle.adapters.datetime_helpers import Clock, utc_now
from clinicbook.lifecycle.ports import AppointmentStoreProtocol


class AppointmentState:
    """Base state: every transition is invalid."""

    status: AppointmentStatus

    def __init__(
        self,
        appointment: Appointment,
        store: AppointmentStoreProtocol,
        *,
        clock: Clock = utc_now,
    ) -> None:
        self.appointment = appointment
        self._store = store
        self._clock = clock

    @property
    def name(self) -> str:
        return self.status.value

    async def approve(self, details: ApprovalDetails) -> Appointment:
        raise InvalidTransitionError(TransitionAction.APPROVE.value, self.status)

    async def confirm(self) -> Appointment:
        raise InvalidTransitionError(TransitionAction.CONFIRM.value, self.status)

    async def complete(self, details: CompletionDetails) -> Appointment:
        raise InvalidTransitionError(TransitionAction.COMPLETE.value, self.status)

    async def cancel(self, reason: str | None = None) -> Appointment:
        raise InvalidTransitionError(TransitionAction.CANCEL.value, self.status)

    async def reject(self, reason: str | None = None) -> Appointment:
        raise InvalidTransitionError(TransitionAction.REJECT.value, self.status)

    async def reschedule(self, details: RescheduleDetails) -> Appointment:
        raise InvalidTransitionError(TransitionAction.RESCHEDULE.value, self.status)

    async def persist(self) -> Appointment:
        try:
            await self._store.save(self.appointment)
        except PersistenceError:
            raise
        except Exception as exc:
            raise PersistenceError(
                reason=str(exc), appointment_id=self.appointment.appointment_id
            ) from exc
        logger.debug(
            "Saved appointment {} (status={})",
            self.appointment.appointment_id,
            self.appointment.status_label,
        )
        return self.appointment

    def _slot_changes(self, details: RescheduleDetails) -> dict[str, Any]:
        today = self._clock().date()
        if details.date < today:
            raise PastAppointmentDateError(details.date, today)
        changes: dict[str, Any] = {"date": details.date, "time": details.time}
        if details.reason:
            changes["veterinarian_notes"] = f"Rescheduled: {details.reason}"
        return changes


class ActiveState(AppointmentState):
    """Shared transitions of approved and confirmed appointments."""

    async def complete(self, details: CompletionDetails) -> Appointment:
        diagnosis = (details.diagnosis or "").strip()
        treatment = (details.treatment or "").strip()
        missing = [
            name for name, value in (("diagnosis", diagnosis), ("treatment", treatment)) if not value
        ]
        if missing:
            raise CompletionDetailsError(missing)

        notes = (details.veterinarian_notes or "").strip()
        self.appointment.apply(
            status=AppointmentStatus.COMPLETED,
            diagnosis=diagnosis,
            treatment=treatment,
            follow_up_required=details.follow_up_required is True,
            veterinarian_notes=notes or self.appointment.veterinarian_notes,
            completed_at=self._clock(),
        )
        return await self.persist()

    async def cancel(self, reason: str | None = None) -> Appointment:
        changes: dict[str, Any] = {"status": AppointmentStatus.CANCELLED}
        if reason:
            changes["veterinarian_notes"] = f"Cancelled: {reason}"
        self.appointment.apply(**changes)
        return await self.persist()

    async def reschedule(self, details: RescheduleDetails) -> Appointment:
        # A moved slot has to be approved again.
        self.appointment.apply(**self._slot_changes(details), status=AppointmentStatus.PENDING)
        return await self.persist()


class PendingState(AppointmentState):
    status = AppointmentStatus.PENDING

    async def approve(self, details: ApprovalDetails) -> Appointment:
        self.appointment.apply(
            status=AppointmentStatus.APPROVED,
            consultation_fee=(
                details.consultation_fee if details.consultation_fee is not None else 0
            ),
            veterinarian_notes=details.veterinarian_notes or "",
        )
        return await self.persist()

    async def reschedule(self, details: RescheduleDetails) -> Appointment:
        self.appointment.apply(**self._slot_changes(details))
        return await self.persist()


class ApprovedState(ActiveState):
    status = AppointmentStatus.APPROVED

    async def confirm(self) -> Appointment:
        self.appointment.apply(status=AppointmentStatus.CONFIRMED)
        return await self.persist()


class ConfirmedState(ActiveState):
    status = AppointmentStatus.CONFIRMED


class CompletedState(AppointmentState):
    status = AppointmentStatus.COMPLETED


class CancelledState(AppointmentState):
    status = AppointmentStatus.CANCELLED


class RejectedState(AppointmentState):
    status = AppointmentStatus.REJECTED
