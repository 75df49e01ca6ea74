from typing import Any

import httpx
from loguru import logger
from pydantic import ValidationError

from clinicbook.domain.exceptions import (
    AppointmentNotFoundError,
    ConcurrentUpdateError,
    PersistenceError,
)
from clinicbook.domain.models import Appointment

_CONFLICT_STATUSES = {409, 412}
_AUTH_STATUSES = {401, 403}


class HttpAppointmentStore:
    """Appointment store backed by the clinic's REST API.

    Reads ``GET {base_url}/appointments/{id}`` and writes
    ``PUT {base_url}/appointments/{id}``.  Writes send the loaded version in
    ``If-Match``; the API answers 409 or 412 when someone else saved first.
    """

    def __init__(
        self,
        base_url: str,
        *,
        api_token: str = "",
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._api_token = api_token
        self._client = client or httpx.AsyncClient(timeout=timeout)

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json", "Content-Type": "application/json"}
        if self._api_token:
            headers["Authorization"] = f"Bearer {self._api_token}"
        return headers

    def _url(self, appointment_id: str) -> str:
        return f"{self._base_url}/appointments/{appointment_id}"

    async def _request(
        self,
        method: str,
        appointment_id: str,
        *,
        json: dict[str, Any] | None = None,
        extra_headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        headers = self._headers()
        if extra_headers:
            headers.update(extra_headers)
        try:
            resp = await self._client.request(
                method, self._url(appointment_id), headers=headers, json=json
            )
            resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            if status == 404:
                raise AppointmentNotFoundError(appointment_id) from exc
            if status in _CONFLICT_STATUSES:
                raise ConcurrentUpdateError(
                    reason=f"appointment changed on the server (status {status})",
                    appointment_id=appointment_id,
                ) from exc
            if status in _AUTH_STATUSES:
                logger.warning("Appointment API rejected credentials (status {})", status)
            raise PersistenceError(
                reason=f"{method} request failed: {exc}", appointment_id=appointment_id
            ) from exc
        except httpx.HTTPError as exc:
            raise PersistenceError(
                reason=f"{method} request failed: {exc}", appointment_id=appointment_id
            ) from exc
        return resp

    @staticmethod
    def _unwrap(data: dict[str, Any]) -> dict[str, Any]:
        """Accept a bare record or the ``{"data": {"appointment": {...}}}`` envelope."""
        envelope = data.get("data")
        if isinstance(envelope, dict):
            inner = envelope.get("appointment", envelope)
            if isinstance(inner, dict):
                return inner
        return data

    async def get(self, appointment_id: str) -> Appointment:
        logger.debug("Fetching appointment {}", appointment_id)
        resp = await self._request("GET", appointment_id)
        try:
            payload = resp.json()
            if not isinstance(payload, dict):
                raise ValueError(f"expected a JSON object, got {type(payload).__name__}")
            raw = self._unwrap(payload)
            raw.setdefault("appointmentId", appointment_id)
            return Appointment.model_validate(raw)
        except (ValueError, ValidationError) as exc:
            raise PersistenceError(
                reason=f"malformed appointment payload: {exc}", appointment_id=appointment_id
            ) from exc

    async def save(self, appointment: Appointment) -> None:
        await self._request(
            "PUT",
            appointment.appointment_id,
            json=appointment.to_payload(),
            extra_headers={"If-Match": str(appointment.version)},
        )
        appointment.version += 1
        logger.debug(
            "Saved appointment {} via API, now at version {}",
            appointment.appointment_id,
            appointment.version,
        )

    async def close(self) -> None:
        await self._client.aclose()
        logger.info("Appointment API client closed")
