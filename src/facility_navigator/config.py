from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict

from facility_navigator.models import Coordinates


class NavigatorSettings(BaseSettings):
    model_config = SettingsConfigDict(extra="ignore")

    SERVICE_NAME: str = "facility-navigator"
    FACILITY_SERVICE_BASE_URL: str = "https://hospitalgisapi.onrender.com/api"
    FACILITY_SERVICE_TIMEOUT_SECONDS: float = 10.0
    FACILITY_FETCH_ATTEMPTS: int = 1
    DIRECTIONS_API_KEY: str | None = None
    DIRECTIONS_BASE_URL: str = "https://maps.googleapis.com/maps/api/directions/json"
    DIRECTIONS_MODE: str = "driving"
    DIRECTIONS_TIMEOUT_SECONDS: float = 10.0
    LOCATION_TIMEOUT_SECONDS: float = 15.0
    DEFAULT_REGION_LAT: float = 5.0382
    DEFAULT_REGION_LNG: float = 7.8340
    DEFAULT_REGION_DELTA: float = 0.1

    @property
    def default_region_center(self) -> Coordinates:
        return Coordinates(latitude=self.DEFAULT_REGION_LAT, longitude=self.DEFAULT_REGION_LNG)


def load_settings(service_name: str | None = None) -> NavigatorSettings:
    if service_name:
        return NavigatorSettings(SERVICE_NAME=service_name)
    return NavigatorSettings()
