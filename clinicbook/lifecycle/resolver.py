from loguru import logger

from clinicbook.domain.models import Appointment, AppointmentStatus
from clinicbook.lifecycle.adapters.datetime_helpers import Clock, utc_now
from clinicbook.lifecycle.ports import AppointmentStoreProtocol
from clinicbook.lifecycle.states import (
    AppointmentState,
    ApprovedState,
    CancelledState,
    CompletedState,
    ConfirmedState,
    PendingState,
    RejectedState,
)

_STATES: dict[AppointmentStatus, type[AppointmentState]] = {
    AppointmentStatus.PENDING: PendingState,
    AppointmentStatus.APPROVED: ApprovedState,
    AppointmentStatus.CONFIRMED: ConfirmedState,
    AppointmentStatus.COMPLETED: CompletedState,
    AppointmentStatus.CANCELLED: CancelledState,
    AppointmentStatus.REJECTED: RejectedState,
}


def resolve_state(
    appointment: Appointment,
    store: AppointmentStoreProtocol,
    *,
    clock: Clock = utc_now,
) -> AppointmentState:
    """Return the state bound to ``appointment`` for its current status.

    An unrecognised or missing status resolves to ``PendingState``. The
    fallback is logged so such records can be found and cleaned up.
    """
    state_cls = _STATES.get(appointment.status)  # type: ignore[arg-type]
    if state_cls is None:
        logger.warning(
            "Unrecognised status {!r} on appointment {}; treating it as PENDING",
            appointment.status,
            appointment.appointment_id,
        )
        state_cls = PendingState
    return state_cls(appointment, store, clock=clock)
