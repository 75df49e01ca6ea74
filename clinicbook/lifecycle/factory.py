from typing import Callable

from loguru import logger

from clinicbook.config import AppConfig, StoreAdapter
from clinicbook.lifecycle.adapters.datetime_helpers import clinic_clock
from clinicbook.lifecycle.adapters.http import HttpAppointmentStore
from clinicbook.lifecycle.adapters.memory import InMemoryAppointmentStore
from clinicbook.lifecycle.ports import AppointmentStoreProtocol
from clinicbook.lifecycle.service import AppointmentService


def _build_memory(config: AppConfig) -> AppointmentStoreProtocol:
    return InMemoryAppointmentStore()


def _build_http(config: AppConfig) -> AppointmentStoreProtocol:
    return HttpAppointmentStore(
        config.store.base_url,
        api_token=config.store.api_token,
        timeout=config.store.timeout,
    )


_BUILDERS: dict[StoreAdapter, Callable[[AppConfig], AppointmentStoreProtocol]] = {
    StoreAdapter.MEMORY: _build_memory,
    StoreAdapter.HTTP: _build_http,
}


def build_appointment_service(config: AppConfig) -> AppointmentService:
    """Build the appointment service with the store selected in config."""
    adapter = config.store.adapter
    logger.info("Building appointment service with store adapter: {}", adapter.value)
    store = _BUILDERS[adapter](config)
    return AppointmentService(store, clock=clinic_clock(config.clinic_timezone))
