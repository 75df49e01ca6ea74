import datetime as dt
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

TIME_PATTERN = r"^([01]?[0-9]|2[0-3]):[0-5][0-9]$"
MAX_CONSULTATION_FEE = 10000
MAX_REASON_LENGTH = 500
MAX_COMMENTS_LENGTH = 1000
MAX_NOTES_LENGTH = 2000
MAX_DIAGNOSIS_LENGTH = 1000
MAX_TREATMENT_LENGTH = 1000


class AppointmentStatus(str, Enum):
    """Possible states of an appointment in its lifecycle."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    CONFIRMED = "CONFIRMED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    REJECTED = "REJECTED"


class TransitionAction(str, Enum):
    APPROVE = "approve"
    CONFIRM = "confirm"
    COMPLETE = "complete"
    CANCEL = "cancel"
    REJECT = "reject"
    RESCHEDULE = "reschedule"


def _coerce_date(value: Any) -> Any:
    """Accept ``2026-03-15`` as well as a full ISO timestamp like ``2026-03-15T00:00:00Z``."""
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, str) and "T" in value:
        return dt.datetime.fromisoformat(value.replace("Z", "+00:00")).date()
    return value


class ApprovalDetails(BaseModel):
    """What a veterinarian supplies when approving a booking request."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    consultation_fee: float | None = Field(default=None, ge=0, le=MAX_CONSULTATION_FEE)
    veterinarian_notes: str | None = Field(default=None, max_length=MAX_NOTES_LENGTH)


class CompletionDetails(BaseModel):
    """Outcome of the visit, recorded when the appointment is completed.

    Diagnosis and treatment are optional here so that a missing value
    surfaces as a ``CompletionDetailsError`` from the lifecycle rather than a
    schema error.
    """

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    diagnosis: str | None = Field(default=None, max_length=MAX_DIAGNOSIS_LENGTH)
    treatment: str | None = Field(default=None, max_length=MAX_TREATMENT_LENGTH)
    follow_up_required: bool | None = None
    veterinarian_notes: str | None = Field(default=None, max_length=MAX_NOTES_LENGTH)


class RescheduleDetails(BaseModel):
    """A new slot for the appointment."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    date: dt.date
    time: str = Field(pattern=TIME_PATTERN)
    reason: str | None = Field(default=None, max_length=MAX_NOTES_LENGTH)

    @field_validator("date", mode="before")
    @classmethod
    def parse_date(cls, value: Any) -> Any:
        return _coerce_date(value)


class Appointment(BaseModel):
    """A clinic appointment record.

    Mutable on purpose: lifecycle states update the one instance they are
    given and hand it to the store.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    appointment_id: str
    status: AppointmentStatus | str | None = AppointmentStatus.PENDING
    date: dt.date
    time: str = Field(pattern=TIME_PATTERN)
    reason: str = Field(default="", max_length=MAX_REASON_LENGTH)
    comments: str | None = Field(default=None, max_length=MAX_COMMENTS_LENGTH)
    consultation_fee: float | None = Field(default=None, ge=0, le=MAX_CONSULTATION_FEE)
    veterinarian_notes: str | None = Field(default=None, max_length=MAX_NOTES_LENGTH)
    diagnosis: str | None = Field(default=None, max_length=MAX_DIAGNOSIS_LENGTH)
    treatment: str | None = Field(default=None, max_length=MAX_TREATMENT_LENGTH)
    follow_up_required: bool = False
    completed_at: dt.datetime | None = None
    version: int = 0

    @field_validator("date", mode="before")
    @classmethod
    def parse_date(cls, value: Any) -> Any:
        return _coerce_date(value)

    @field_validator("status", mode="before")
    @classmethod
    def known_status(cls, value: Any) -> Any:
        # Unknown values are kept as-is; the resolver decides what they mean.
        if isinstance(value, str) and not isinstance(value, AppointmentStatus):
            try:
                return AppointmentStatus(value)
            except ValueError:
                return value
        return value

    @property
    def status_label(self) -> str:
        return str(getattr(self.status, "value", self.status))

    def apply(self, **changes: Any) -> None:
        """Set several fields at once, after checking the result against the schema.

        Raises ``ValidationError`` and leaves the record untouched when a
        changed value breaks a field constraint.
        """
        type(self).model_validate({**self.model_dump(), **changes})
        for name, value in changes.items():
            setattr(self, name, value)

    def to_payload(self) -> dict[str, Any]:
        """Serialise for the wire: camelCase keys, ISO dates."""
        return self.model_dump(mode="json", by_alias=True)
