import asyncio
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager

from loguru import logger

from clinicbook.domain.exceptions import (
    AppointmentError,
    InvalidTransitionError,
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
from clinicbook.lifecycle.adapters.datetime_helpers import Clock, format_slot, utc_now
from clinicbook.lifecycle.ports import AbstractAppointmentService, AppointmentStoreProtocol
from clinicbook.lifecycle.resolver import resolve_state
from clinicbook.lifecycle.states import AppointmentState

Transition = Callable[[AppointmentState], Awaitable[Appointment]]


class AppointmentService(AbstractAppointmentService):
    """Loads an appointment, resolves its state and applies one transition.

    Transitions on the same appointment are serialised with a per-record
    lock; the store's version check catches writers in other processes.
    """

    def __init__(self, store: AppointmentStoreProtocol, *, clock: Clock = utc_now) -> None:
        self._store = store
        self._clock = clock
        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_users: dict[str, int] = {}

    async def get(self, appointment_id: str) -> Appointment:
        try:
            return await self._store.get(appointment_id)
        except AppointmentError:
            raise
        except Exception as exc:
            raise PersistenceError(
                reason=f"Appointment lookup failed: {exc}", appointment_id=appointment_id
            ) from exc

    @asynccontextmanager
    async def _record_lock(self, appointment_id: str) -> AsyncIterator[None]:
        """Hold the lock of one appointment; drop it once nobody holds or awaits it."""
        lock = self._locks.setdefault(appointment_id, asyncio.Lock())
        self._lock_users[appointment_id] = self._lock_users.get(appointment_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[appointment_id] -= 1
            if not self._lock_users[appointment_id]:
                del self._lock_users[appointment_id]
                del self._locks[appointment_id]

    async def _transition(
        self, appointment_id: str, action: TransitionAction, apply: Transition
    ) -> Appointment:
        async with self._record_lock(appointment_id):
            appointment = await self.get(appointment_id)
            state = resolve_state(appointment, self._store, clock=self._clock)
            previous = appointment.status_label
            logger.debug(
                "Applying {} to appointment {} in {}", action.value, appointment_id, state.name
            )

            updated = await apply(state)

        logger.info(
            "Appointment {}: {} -> {} ({})",
            appointment_id,
            previous,
            updated.status_label,
            action.value,
        )
        return updated

    async def approve(self, appointment_id: str, details: ApprovalDetails) -> Appointment:
        return await self._transition(
            appointment_id, TransitionAction.APPROVE, lambda state: state.approve(details)
        )

    async def confirm(self, appointment_id: str) -> Appointment:
        return await self._transition(
            appointment_id, TransitionAction.CONFIRM, lambda state: state.confirm()
        )

    async def complete(self, appointment_id: str, details: CompletionDetails) -> Appointment:
        return await self._transition(
            appointment_id, TransitionAction.COMPLETE, lambda state: state.complete(details)
        )

    async def cancel(self, appointment_id: str, reason: str | None = None) -> Appointment:
        return await self._transition(
            appointment_id, TransitionAction.CANCEL, lambda state: state.cancel(reason)
        )

    async def reject(self, appointment_id: str, reason: str | None = None) -> Appointment:
        """Reject a pending booking request.

        The lifecycle states do not offer ``reject``; the veterinarian's
        rejection is applied here, and only to pending requests.
        """

        async def _reject(state: AppointmentState) -> Appointment:
            if state.status is not AppointmentStatus.PENDING:
                raise InvalidTransitionError(TransitionAction.REJECT.value, state.status)
            state.appointment.apply(
                status=AppointmentStatus.REJECTED,
                veterinarian_notes=f"Rejected: {reason}" if reason else "Rejected by veterinarian",
            )
            return await state.persist()

        return await self._transition(appointment_id, TransitionAction.REJECT, _reject)

    async def reschedule(self, appointment_id: str, details: RescheduleDetails) -> Appointment:
        updated = await self._transition(
            appointment_id, TransitionAction.RESCHEDULE, lambda state: state.reschedule(details)
        )
        logger.info(
            "Appointment {} moved to {}", appointment_id, format_slot(updated.date, updated.time)
        )
        return updated

    async def close(self) -> None:
        await self._store.close()
