import logging
from typing import Optional

from app.core.settings import settings
from .base import WeatherProvider
from .cache import CachedWeatherProvider, WeatherCache
from .openweather_provider import OpenWeatherProvider

logger = logging.getLogger(__name__)

_provider_instance: Optional[WeatherProvider] = None


def get_weather_provider() -> WeatherProvider:
    """
    Resolve the active weather provider.

    OpenWeather wrapped in a TTL cache. A missing API key is not an
    initialization error: lookups raise ProviderError and the weather
    check degrades to its error entry.
    """
    global _provider_instance
    if _provider_instance is not None:
        return _provider_instance

    if not settings.OPENWEATHER_API_KEY:
        logger.warning("OPENWEATHER_API_KEY is not set. Weather cross-validation will report errors.")

    _provider_instance = CachedWeatherProvider(
        OpenWeatherProvider(),
        WeatherCache(ttl_seconds=settings.WEATHER_CACHE_TTL_SECONDS),
    )
    logger.info(f"Weather provider initialized: {_provider_instance.name}")
    return _provider_instance
