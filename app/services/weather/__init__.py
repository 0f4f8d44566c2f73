"""
Weather data providers used for report cross-validation.
"""

from app.services.weather.base import GeoPoint, WeatherProvider
from app.services.weather.cache import CachedWeatherProvider, WeatherCache
from app.services.weather.openweather_provider import OpenWeatherProvider
from app.services.weather.resolver import get_weather_provider

__all__ = [
    "GeoPoint",
    "WeatherProvider",
    "CachedWeatherProvider",
    "WeatherCache",
    "OpenWeatherProvider",
    "get_weather_provider",
]
