from abc import ABC, abstractmethod
from dataclasses import dataclass
import logging

from app.models.verification import WeatherConditions

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GeoPoint:
    name: str
    latitude: float
    longitude: float
    country: str = ""


class WeatherProvider(ABC):
    """
    Abstract weather-data provider.

    Contract:
    - current_conditions(lat, lon) -> WeatherConditions (temperature in °C)
    - geocode_city(name) -> GeoPoint for the best match
    - MUST raise ProviderError on any failure (unreachable, timeout,
      missing credential, malformed payload). Callers decide the fallback.
    - Implementations should enforce a network timeout.
    """

    name: str = "unknown"

    @abstractmethod
    def current_conditions(self, latitude: float, longitude: float) -> WeatherConditions:
        raise NotImplementedError

    @abstractmethod
    def geocode_city(self, city: str) -> GeoPoint:
        raise NotImplementedError
