from collections.abc import Awaitable, Callable
from typing import Any

from loguru import logger
from pydantic import BaseModel, Field, ValidationError

from clinicbook.domain.exceptions import (
    AppointmentNotFoundError,
    AppointmentValidationError,
    ConcurrentUpdateError,
    InvalidTransitionError,
    PersistenceError,
)
from clinicbook.domain.models import (
    MAX_NOTES_LENGTH,
    Appointment,
    ApprovalDetails,
    CompletionDetails,
    RescheduleDetails,
    TransitionAction,
)
from clinicbook.lifecycle.ports import AbstractAppointmentService

Payload = dict[str, Any]
Handler = Callable[[str, Payload], Awaitable[Payload]]

# Most specific first: ConcurrentUpdateError is a PersistenceError.
_ERROR_TYPES: tuple[tuple[type[Exception], str], ...] = (
    (ValidationError, "validation"),
    (AppointmentValidationError, "validation"),
    (AppointmentNotFoundError, "not_found"),
    (InvalidTransitionError, "invalid_transition"),
    (ConcurrentUpdateError, "conflict"),
    (PersistenceError, "persistence"),
)

SUCCESS_MESSAGES: dict[TransitionAction, str] = {
    TransitionAction.APPROVE: "Appointment approved successfully.",
    TransitionAction.CONFIRM: "Appointment confirmed successfully.",
    TransitionAction.COMPLETE: "Appointment completed successfully.",
    TransitionAction.CANCEL: "Appointment cancelled successfully.",
    TransitionAction.REJECT: "Appointment rejected successfully.",
    TransitionAction.RESCHEDULE: "Appointment rescheduled successfully.",
}


class _ReasonPayload(BaseModel):
    reason: str | None = Field(default=None, max_length=MAX_NOTES_LENGTH)


def _error(error_type: str, message: str) -> Payload:
    return {"success": False, "error": True, "error_type": error_type, "message": message}


def _success(action: TransitionAction, appointment: Appointment) -> Payload:
    return {
        "success": True,
        "message": SUCCESS_MESSAGES[action],
        "appointment": appointment.to_payload(),
    }


class TransitionHandlers:
    """Turns raw transition requests into service calls and result payloads.

    Payloads are plain dicts as they arrive in a request body, with
    camelCase or snake_case keys.  Every handler returns a dict and never
    raises for a known failure.
    """

    def __init__(self, service: AbstractAppointmentService) -> None:
        self._service = service
        self._handlers: dict[TransitionAction, Handler] = {
            TransitionAction.APPROVE: self.handle_approve,
            TransitionAction.CONFIRM: self.handle_confirm,
            TransitionAction.COMPLETE: self.handle_complete,
            TransitionAction.CANCEL: self.handle_cancel,
            TransitionAction.REJECT: self.handle_reject,
            TransitionAction.RESCHEDULE: self.handle_reschedule,
        }

    async def dispatch(
        self,
        action: TransitionAction | str,
        appointment_id: str,
        payload: Payload | None = None,
    ) -> Payload:
        try:
            action = TransitionAction(action)
        except ValueError:
            return _error("unknown_action", f"Unknown action '{action}'.")

        if not appointment_id:
            return _error("validation", "'appointment_id' is required.")

        logger.debug("Dispatching {} for appointment {}", action.value, appointment_id)
        return await self._handlers[action](appointment_id, payload or {})

    async def _run(
        self,
        action: TransitionAction,
        call: Callable[[], Awaitable[Appointment]],
    ) -> Payload:
        try:
            appointment = await call()
        except Exception as exc:
            for exc_type, error_type in _ERROR_TYPES:
                if isinstance(exc, exc_type):
                    return _error(error_type, str(exc))
            logger.exception("Unexpected error in {}", action.value)
            return _error(
                "internal",
                f"An unexpected error occurred while trying to {action.value} the appointment.",
            )
        return _success(action, appointment)

    async def handle_approve(self, appointment_id: str, payload: Payload) -> Payload:
        async def call() -> Appointment:
            details = ApprovalDetails.model_validate(payload)
            return await self._service.approve(appointment_id, details)

        return await self._run(TransitionAction.APPROVE, call)

    async def handle_confirm(self, appointment_id: str, payload: Payload) -> Payload:
        return await self._run(
            TransitionAction.CONFIRM, lambda: self._service.confirm(appointment_id)
        )

    async def handle_complete(self, appointment_id: str, payload: Payload) -> Payload:
        async def call() -> Appointment:
            details = CompletionDetails.model_validate(payload)
            return await self._service.complete(appointment_id, details)

        return await self._run(TransitionAction.COMPLETE, call)

    async def handle_cancel(self, appointment_id: str, payload: Payload) -> Payload:
        async def call() -> Appointment:
            reason = _ReasonPayload.model_validate(payload).reason
            return await self._service.cancel(appointment_id, reason)

        return await self._run(TransitionAction.CANCEL, call)

    async def handle_reject(self, appointment_id: str, payload: Payload) -> Payload:
        async def call() -> Appointment:
            reason = _ReasonPayload.model_validate(payload).reason
            return await self._service.reject(appointment_id, reason)

        return await self._run(TransitionAction.REJECT, call)

    async def handle_reschedule(self, appointment_id: str, payload: Payload) -> Payload:
        async def call() -> Appointment:
            details = RescheduleDetails.model_validate(payload)
            return await self._service.reschedule(appointment_id, details)

        return await self._run(TransitionAction.RESCHEDULE, call)
