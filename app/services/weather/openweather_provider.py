import logging
from typing import Any, Dict, Optional

import requests

from app.core.settings import settings
from app.models.verification import WeatherConditions
from app.services.errors import ProviderError
from .base import GeoPoint, WeatherProvider

logger = logging.getLogger(__name__)


class OpenWeatherProvider(WeatherProvider):
    """
    OpenWeather current-conditions and direct-geocoding provider.

    - Requires OPENWEATHER_API_KEY; without it every call raises ProviderError.
    - Requests metric units, so temperatures arrive in °C.
    - Every request is bounded by `timeout` seconds; a timeout is a ProviderError.
    """

    name = "openweather"

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.OPENWEATHER_API_KEY
        self.base_url = (base_url or settings.OPENWEATHER_BASE_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.WEATHER_TIMEOUT_SECONDS
        self.session = session or requests.Session()

    def _get(self, path: str, params: Dict[str, Any]) -> Any:
        if not self.api_key:
            raise ProviderError("OPENWEATHER_API_KEY not configured")

        try:
            resp = self.session.get(
                f"{self.base_url}{path}",
                params={**params, "appid": self.api_key},
                timeout=self.timeout,
            )
        except requests.Timeout as e:
            raise ProviderError(f"OpenWeather request timed out after {self.timeout}s") from e
        except requests.RequestException as e:
            raise ProviderError(f"OpenWeather request failed: {e}") from e

        if resp.status_code != 200:
            raise ProviderError(f"OpenWeather returned status {resp.status_code}")

        try:
            return resp.json()
        except ValueError as e:
            raise ProviderError("OpenWeather returned a non-JSON body") from e

    def current_conditions(self, latitude: float, longitude: float) -> WeatherConditions:
        data = self._get(
            "/data/2.5/weather",
            {"lat": latitude, "lon": longitude, "units": "metric"},
        )
        try:
            main = data["main"]
            return WeatherConditions(
                condition_text=data["weather"][0]["description"],
                temperature_celsius=float(main["temp"]),
                wind_speed=float((data.get("wind") or {}).get("speed", 0.0)),
                humidity=main.get("humidity"),
            )
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise ProviderError(f"Unexpected OpenWeather payload: {e}") from e

    def geocode_city(self, city: str) -> GeoPoint:
        data = self._get("/geo/1.0/direct", {"q": city, "limit": 1})
        if not data:
            raise ProviderError(f"Could not geocode city: {city}")

        first = data[0]
        try:
            return GeoPoint(
                name=first.get("name", city),
                latitude=float(first["lat"]),
                longitude=float(first["lon"]),
                country=first.get("country", ""),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ProviderError(f"Unexpected OpenWeather geocoding payload: {e}") from e
