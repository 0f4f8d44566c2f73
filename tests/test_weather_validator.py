from datetime import timedelta

import pytest
import requests

from app.models.verification import CheckStatus, WeatherConditions
from app.services.errors import ProviderError
from app.services.weather.cache import CachedWeatherProvider, WeatherCache
from app.services.weather.openweather_provider import OpenWeatherProvider
from app.services.weather_validator import WeatherCrossValidator

from conftest import LAHORE, FakeClock, FakeWeatherProvider


def conditions(text="clear sky", temp=22.0, wind=2.0):
    return WeatherConditions(condition_text=text, temperature_celsius=temp, wind_speed=wind)


@pytest.mark.asyncio
async def test_missing_coordinates_skips_provider(clock):
    provider = FakeWeatherProvider()
    outcome = await WeatherCrossValidator(provider, clock=clock).validate("It is raining", None)

    assert provider.calls == 0
    assert outcome.ledger.total == 0
    [gps] = outcome.ledger.checks
    assert (gps.name, gps.status, gps.points) == ("GPS Coordinates", CheckStatus.FAILED, 0)
    assert outcome.ledger.warnings
    assert outcome.snapshot is None


@pytest.mark.asyncio
async def test_matching_description_earns_full_credit_and_snapshot(clock):
    provider = FakeWeatherProvider(conditions("light rain", temp=21.5, wind=3.0))
    outcome = await WeatherCrossValidator(provider, clock=clock).validate("It is raining heavily here", LAHORE)

    assert outcome.ledger.points_for("GPS Coordinates") == 20
    assert outcome.ledger.points_for("Weather Condition Match") == 30
    assert outcome.snapshot.description == "light rain"
    assert outcome.snapshot.temperature == 21.5
    assert outcome.snapshot.observed_at == clock.now


@pytest.mark.parametrize(
    "description,live",
    [
        ("A big storm is passing", conditions("thunderstorm with rain")),
        ("Thunder storm overhead", conditions("storm")),
        ("It is so hot today", conditions("haze", temp=34.0)),
        ("Freezing cold morning", conditions("mist", temp=9.0)),
        ("Very windy out here", conditions("haze", wind=7.5)),
        ("Clear skies all day", conditions("clear sky")),
        ("Cloudy and grey", conditions("broken clouds")),
    ],
)
def test_match_rules(description, live):
    assert WeatherCrossValidator(FakeWeatherProvider()).matches(description, live)


@pytest.mark.parametrize(
    "description,live",
    [
        ("It is so hot today", conditions(temp=30.0)),
        ("Freezing cold morning", conditions(temp=15.0)),
        ("Very windy out here", conditions(wind=5.0)),
        ("It is raining", conditions("clear sky")),
    ],
)
def test_boundaries_do_not_match(description, live):
    assert not WeatherCrossValidator(FakeWeatherProvider()).matches(description, live)


@pytest.mark.asyncio
async def test_mismatch_earns_partial_credit(clock):
    provider = FakeWeatherProvider(conditions("clear sky"))
    outcome = await WeatherCrossValidator(provider, clock=clock).validate("Snowing heavily", LAHORE)

    match = outcome.ledger.checks[-1]
    assert (match.status, match.points) == (CheckStatus.PARTIAL, 10)
    assert any("does not fully match" in warning for warning in outcome.ledger.warnings)


@pytest.mark.asyncio
async def test_provider_error_degrades_to_error_check(clock):
    provider = FakeWeatherProvider(error=ProviderError("OPENWEATHER_API_KEY not configured"))
    outcome = await WeatherCrossValidator(provider, clock=clock).validate("It is raining", LAHORE)

    match = outcome.ledger.checks[-1]
    assert (match.name, match.status, match.points) == ("Weather Condition Match", CheckStatus.ERROR, 0)
    assert outcome.ledger.total == 20
    assert "Unable to verify against weather API" in outcome.ledger.warnings
    assert outcome.provider_error
    assert outcome.snapshot is None


@pytest.mark.asyncio
async def test_timeout_is_treated_like_provider_error(clock):
    provider = FakeWeatherProvider(delay=0.3)
    outcome = await WeatherCrossValidator(provider, timeout_seconds=0.05, clock=clock).validate(
        "It is raining", LAHORE
    )

    assert outcome.ledger.checks[-1].status is CheckStatus.ERROR
    assert "timed out" in outcome.provider_error


def test_cache_serves_repeat_lookups_until_ttl_expires():
    clock = FakeClock()
    inner = FakeWeatherProvider()
    provider = CachedWeatherProvider(inner, WeatherCache(ttl_seconds=600, clock=clock))

    provider.current_conditions(31.5204, 74.3587)
    provider.current_conditions(31.52041, 74.35871)
    assert inner.calls == 1

    clock.advance(seconds=601)
    provider.current_conditions(31.5204, 74.3587)
    assert inner.calls == 2


def test_cache_does_not_store_failures():
    inner = FakeWeatherProvider(error=ProviderError("down"))
    provider = CachedWeatherProvider(inner, WeatherCache(ttl_seconds=600, clock=FakeClock()))

    for _ in range(2):
        with pytest.raises(ProviderError):
            provider.current_conditions(31.5, 74.3)
    assert inner.calls == 2
    assert len(provider.cache) == 0


def test_cache_drops_expired_entries_for_other_coordinates():
    clock = FakeClock()
    provider = CachedWeatherProvider(FakeWeatherProvider(), WeatherCache(ttl_seconds=600, clock=clock))

    for offset in range(1000):
        provider.current_conditions(30.0 + offset * 0.01, 70.0)
    assert len(provider.cache) == 1000

    clock.advance(hours=5)
    provider.current_conditions(LAHORE.latitude, LAHORE.longitude)

    assert len(provider.cache) == 1


def test_cache_is_capped_and_evicts_oldest_entry():
    clock = FakeClock()
    inner = FakeWeatherProvider()
    provider = CachedWeatherProvider(inner, WeatherCache(ttl_seconds=600, clock=clock, max_entries=2))

    provider.current_conditions(31.0, 74.0)
    clock.advance(seconds=1)
    provider.current_conditions(32.0, 74.0)
    clock.advance(seconds=1)
    provider.current_conditions(33.0, 74.0)

    assert len(provider.cache) == 2
    assert provider.cache.get(31.0, 74.0) is None
    assert provider.cache.get(33.0, 74.0) is not None


class FakeResponse:
    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self._payload = payload

    def json(self):
        if self._payload is None:
            raise ValueError("no body")
        return self._payload


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.requests = []

    def get(self, url, params=None, timeout=None):
        self.requests.append((url, params, timeout))
        if self.error is not None:
            raise self.error
        return self.response


def test_openweather_parses_current_conditions():
    session = FakeSession(FakeResponse(payload={
        "weather": [{"description": "light rain"}],
        "main": {"temp": 24.3, "humidity": 88},
        "wind": {"speed": 4.1},
    }))
    provider = OpenWeatherProvider(api_key="key", base_url="https://weather.test", timeout=2.0, session=session)

    result = provider.current_conditions(31.5, 74.3)

    assert result.condition_text == "light rain"
    assert result.temperature_celsius == 24.3
    assert result.wind_speed == 4.1
    assert result.humidity == 88
    url, params, timeout = session.requests[0]
    assert url == "https://weather.test/data/2.5/weather"
    assert params["units"] == "metric"
    assert params["appid"] == "key"
    assert timeout == 2.0


def test_openweather_geocodes_city():
    session = FakeSession(FakeResponse(payload=[{"name": "Lahore", "lat": 31.55, "lon": 74.34, "country": "PK"}]))
    provider = OpenWeatherProvider(api_key="key", base_url="https://weather.test", session=session)

    point = provider.geocode_city("Lahore")

    assert (point.name, point.country) == ("Lahore", "PK")
    assert session.requests[0][1]["q"] == "Lahore"


@pytest.mark.parametrize(
    "session",
    [
        FakeSession(error=requests.Timeout("slow")),
        FakeSession(error=requests.ConnectionError("unreachable")),
        FakeSession(FakeResponse(status_code=401, payload={"message": "bad key"})),
        FakeSession(FakeResponse(payload={"unexpected": True})),
        FakeSession(FakeResponse(payload=None)),
    ],
)
def test_openweather_failures_raise_provider_error(session):
    provider = OpenWeatherProvider(api_key="key", base_url="https://weather.test", session=session)
    with pytest.raises(ProviderError):
        provider.current_conditions(31.5, 74.3)


def test_openweather_without_key_raises_before_any_request():
    session = FakeSession(FakeResponse(payload={}))
    provider = OpenWeatherProvider(api_key="", session=session)
    with pytest.raises(ProviderError):
        provider.current_conditions(31.5, 74.3)
    assert session.requests == []


def test_openweather_empty_geocode_result_raises():
    provider = OpenWeatherProvider(api_key="key", session=FakeSession(FakeResponse(payload=[])))
    with pytest.raises(ProviderError):
        provider.geocode_city("Atlantis")
