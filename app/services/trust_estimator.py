"""
Reporter Trust Estimator.

Reputation of a network identity, recomputed on demand from its most
recent reports:

    trust = round(100 × verified-or-auto-verified / reports fetched)

No history (or an unreadable history) yields the neutral midpoint.
"""

from typing import Optional
import logging
import math

from app.models.verification import TrustScore
from app.services.errors import HistoryLookupFailed
from app.services.report_store import ReportFilter, ReportStore
from app.utils.security import mask_ip_address

logger = logging.getLogger(__name__)


class ReporterTrustEstimator:

    HISTORY_LIMIT = 50
    NEUTRAL_TRUST = 50

    def __init__(self, store: ReportStore):
        self.store = store

    def estimate(self, network_identity: Optional[str]) -> TrustScore:
        if not network_identity:
            return TrustScore(value=self.NEUTRAL_TRUST)

        try:
            history = self.store.find_recent(
                ReportFilter(network_identity=network_identity),
                limit=self.HISTORY_LIMIT,
            )
        except HistoryLookupFailed as e:
            logger.warning(f"Trust history lookup failed for {mask_ip_address(network_identity)}: {e}")
            return TrustScore(value=self.NEUTRAL_TRUST, degraded=True)

        if not history:
            return TrustScore(value=self.NEUTRAL_TRUST)

        verified_count = sum(1 for record in history if record.verified or record.auto_verified)
        # Half-up rounding (12.5 → 13), not banker's rounding
        value = int(math.floor(100 * verified_count / len(history) + 0.5))
        return TrustScore(value=value, history_size=len(history))


_estimator: Optional[ReporterTrustEstimator] = None


def get_trust_estimator() -> ReporterTrustEstimator:
    global _estimator
    if _estimator is None:
        from app.services.report_store import get_report_store
        _estimator = ReporterTrustEstimator(get_report_store())
    return _estimator
