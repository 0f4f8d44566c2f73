"""
Weather Cross-Validator.

Compares a report's description against live conditions at its
coordinates. The provider call is the only network round-trip in the
pipeline: it runs in a worker thread, bounded by a timeout, and any
failure degrades to a zero-point "error" check instead of propagating.
"""

from dataclasses import dataclass, field
from typing import Callable, Optional, Tuple
import asyncio
import logging

from app.models.report import Coordinates
from app.models.verification import CheckStatus, WeatherConditions, WeatherSnapshot
from app.services.check_ledger import CheckLedger
from app.services.errors import ProviderError
from app.services.weather.base import WeatherProvider
from app.utils.clock import Clock, utc_now

logger = logging.getLogger(__name__)

MatchRule = Tuple[str, Callable[[WeatherConditions], bool]]


@dataclass(frozen=True)
class WeatherOutcome:
    ledger: CheckLedger = field(default_factory=CheckLedger)
    snapshot: Optional[WeatherSnapshot] = None
    provider_error: Optional[str] = None


class WeatherCrossValidator:

    GPS_POINTS = 20
    MATCH_POINTS = 30
    PARTIAL_POINTS = 10  # conditions can be hyper-local

    HOT_ABOVE_CELSIUS = 30.0
    COLD_BELOW_CELSIUS = 15.0
    WINDY_ABOVE_SPEED = 5.0

    # (keyword in description, predicate over live conditions)
    MATCH_RULES: Tuple[MatchRule, ...] = (
        ("rain", lambda c: "rain" in c.condition_text.lower()),
        ("storm", lambda c: "storm" in c.condition_text.lower() or "thunder" in c.condition_text.lower()),
        ("hot", lambda c: c.temperature_celsius > WeatherCrossValidator.HOT_ABOVE_CELSIUS),
        ("cold", lambda c: c.temperature_celsius < WeatherCrossValidator.COLD_BELOW_CELSIUS),
        ("wind", lambda c: c.wind_speed > WeatherCrossValidator.WINDY_ABOVE_SPEED),
        ("clear", lambda c: "clear" in c.condition_text.lower()),
        ("cloud", lambda c: "cloud" in c.condition_text.lower()),
    )

    def __init__(self, provider: WeatherProvider, timeout_seconds: float = 5.0, clock: Clock = utc_now):
        self.provider = provider
        self.timeout_seconds = timeout_seconds
        self.clock = clock

    async def validate(self, description: str, coordinates: Optional[Coordinates]) -> WeatherOutcome:
        ledger = CheckLedger()

        if coordinates is None:
            ledger = ledger.add(
                "GPS Coordinates",
                CheckStatus.FAILED,
                0,
                warning="No GPS coordinates provided - location may be inaccurate",
            )
            return WeatherOutcome(ledger=ledger)

        ledger = ledger.add("GPS Coordinates", CheckStatus.PASSED, self.GPS_POINTS)

        try:
            conditions = await asyncio.wait_for(
                asyncio.to_thread(self.provider.current_conditions, coordinates.latitude, coordinates.longitude),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError:
            return self._degraded(ledger, f"weather lookup timed out after {self.timeout_seconds}s")
        except ProviderError as e:
            return self._degraded(ledger, str(e))

        snapshot = WeatherSnapshot(
            temperature=conditions.temperature_celsius,
            description=conditions.condition_text,
            humidity=conditions.humidity,
            wind_speed=conditions.wind_speed,
            observed_at=self.clock(),
        )

        if self.matches(description, conditions):
            ledger = ledger.add("Weather Condition Match", CheckStatus.PASSED, self.MATCH_POINTS)
        else:
            ledger = ledger.add(
                "Weather Condition Match",
                CheckStatus.PARTIAL,
                self.PARTIAL_POINTS,
                warning="Report description does not fully match current weather conditions",
            )

        return WeatherOutcome(ledger=ledger, snapshot=snapshot)

    def matches(self, description: str, conditions: WeatherConditions) -> bool:
        text = (description or "").lower()
        return any(keyword in text and predicate(conditions) for keyword, predicate in self.MATCH_RULES)

    def _degraded(self, ledger: CheckLedger, reason: str) -> WeatherOutcome:
        logger.warning(f"Weather verification failed: {reason}")
        ledger = ledger.add(
            "Weather Condition Match",
            CheckStatus.ERROR,
            0,
            warning="Unable to verify against weather API",
        )
        return WeatherOutcome(ledger=ledger, provider_error=reason)
