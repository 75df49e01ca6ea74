class AppointmentError(Exception):
    """Base exception for all appointment lifecycle errors."""


class InvalidTransitionError(AppointmentError):
    """Raised when the current status does not permit the requested action."""

    def __init__(self, action: str, status: object = None) -> None:
        self.action = action
        self.status = getattr(status, "value", status)
        super().__init__(
            f"Invalid transition: cannot {action} an appointment in status {self.status}"
        )


class AppointmentValidationError(AppointmentError):
    """Raised when a transition request carries values the clinic does not accept."""


class CompletionDetailsError(AppointmentValidationError):
    """Raised when an appointment is completed without diagnosis or treatment."""

    def __init__(self, missing: list[str]) -> None:
        self.missing = missing
        super().__init__(f"Required to complete the appointment: {', '.join(missing)}")


class PastAppointmentDateError(AppointmentValidationError):
    """Raised when an appointment is moved to a day that has already passed."""

    def __init__(self, date: object, today: object) -> None:
        self.date = date
        self.today = today
        super().__init__(f"Appointment date must be in the future (got {date}, today is {today})")


class AppointmentNotFoundError(AppointmentError):
    """Raised when the store holds no appointment with the given ID."""

    def __init__(self, appointment_id: str) -> None:
        self.appointment_id = appointment_id
        super().__init__(f"Appointment not found: {appointment_id}")


class PersistenceError(AppointmentError):
    """Raised when an appointment cannot be saved or loaded."""

    def __init__(self, reason: str, appointment_id: str | None = None) -> None:
        self.reason = reason
        self.appointment_id = appointment_id
        super().__init__(f"Failed to persist appointment: {reason}")


class ConcurrentUpdateError(PersistenceError):
    """Raised when the stored record changed since it was loaded."""
