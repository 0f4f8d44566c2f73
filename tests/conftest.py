import os
import time
from datetime import datetime, timedelta, timezone

import pytest

# Tests never touch Firestore or the network
os.environ.setdefault("USE_MOCK_DB", "true")
os.environ.setdefault("OPENWEATHER_API_KEY", "")

from app.models.report import Coordinates, ReportRecord
from app.models.verification import WeatherConditions
from app.services.content_checks import ContentPlausibilityChecker
from app.services.duplicate_detection import DuplicateDetectionService
from app.services.errors import HistoryLookupFailed, ProviderError
from app.services.notifications import InMemoryBroadcaster
from app.services.report_service import ReportService
from app.services.report_store import InMemoryReportStore, ReportStore
from app.services.trust_estimator import ReporterTrustEstimator
from app.services.verification_engine import VerificationEngine
from app.services.weather.base import GeoPoint, WeatherProvider
from app.services.weather_validator import WeatherCrossValidator

START = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)
LAHORE = Coordinates(latitude=31.5204, longitude=74.3587)


class FakeClock:
    def __init__(self, now: datetime = START):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class FakeWeatherProvider(WeatherProvider):
    name = "fake"

    def __init__(self, conditions=None, error=None, delay=0.0):
        self.conditions = conditions or WeatherConditions(
            condition_text="light rain", temperature_celsius=22.0, wind_speed=3.0, humidity=80
        )
        self.error = error
        self.delay = delay
        self.calls = 0

    def current_conditions(self, latitude, longitude):
        self.calls += 1
        if self.delay:
            time.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.conditions

    def geocode_city(self, city):
        return GeoPoint(name=city, latitude=LAHORE.latitude, longitude=LAHORE.longitude, country="PK")


class FailingReportStore(ReportStore):
    def find_recent(self, report_filter, limit=None):
        raise HistoryLookupFailed("store unavailable")

    def insert(self, record):
        raise HistoryLookupFailed("store unavailable")


def make_record(created_at, identity="identity-x", coordinates=None, verified=False, auto_verified=False):
    return ReportRecord(
        reporter="someone",
        description="Earlier observation from the area",
        location="Gulberg, Lahore",
        coordinates=coordinates,
        network_identity=identity,
        verified=verified,
        auto_verified=auto_verified,
        created_at=created_at,
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    return InMemoryReportStore()


@pytest.fixture
def weather():
    return FakeWeatherProvider()


@pytest.fixture
def broadcaster():
    return InMemoryBroadcaster()


def build_engine(store, weather, clock, timeout_seconds=1.0):
    return VerificationEngine(
        weather_validator=WeatherCrossValidator(weather, timeout_seconds=timeout_seconds, clock=clock),
        duplicate_detector=DuplicateDetectionService(store, clock=clock),
        trust_estimator=ReporterTrustEstimator(store),
        content_checker=ContentPlausibilityChecker(),
    )


@pytest.fixture
def engine(store, weather, clock):
    return build_engine(store, weather, clock)


@pytest.fixture
def report_service(engine, store, broadcaster, clock):
    return ReportService(engine=engine, store=store, broadcaster=broadcaster, clock=clock)
