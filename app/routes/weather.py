"""
Weather endpoints - city lookup so clients can attach coordinates to a report.
"""

from dataclasses import asdict
import asyncio
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.services.errors import ProviderError
from app.services.weather import WeatherProvider, get_weather_provider

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/weather", tags=["Weather"])


@router.get("/geocode")
async def geocode_city(
    city: str = Query(..., min_length=1, max_length=100),
    provider: WeatherProvider = Depends(get_weather_provider),
):
    """Resolve a city name to coordinates via the weather provider."""
    try:
        point = await asyncio.to_thread(provider.geocode_city, city.strip())
    except ProviderError as e:
        logger.warning(f"Geocoding failed for {city!r}: {e}")
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Could not resolve city: {city}",
        )
    return asdict(point)
