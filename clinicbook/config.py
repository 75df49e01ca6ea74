from enum import Enum

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class StoreAdapter(Enum):
    MEMORY = "memory"
    HTTP = "http"


class StoreConfig(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="CLINICBOOK_STORE_", env_file=".env", extra="ignore"
    )

    adapter: StoreAdapter = StoreAdapter.MEMORY
    base_url: str = "http://localhost:5000/api"
    api_token: str = ""
    timeout: float = Field(default=10.0, gt=0)


class AppConfig(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="CLINICBOOK_", env_file=".env", extra="ignore")

    clinic_timezone: str = "UTC"
    store: StoreConfig = Field(default_factory=lambda: StoreConfig())
