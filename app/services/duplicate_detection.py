"""
Duplicate Detection Service - anti-flood and cluster rejection.

DESIGN PRINCIPLES:
- Runs before any scoring work; a duplicate verdict short-circuits evaluation
- Per-identity flood check and per-area cluster check within a time window
- Fails open: a history lookup failure never blocks a submission on its own
"""

from datetime import timedelta
from typing import Optional
import logging

from app.models.report import ReportSubmission
from app.models.verification import DuplicateVerdict
from app.services.errors import HistoryLookupFailed
from app.services.report_store import BoundingBox, ReportFilter, ReportStore
from app.utils.clock import Clock, utc_now
from app.utils.security import mask_ip_address

logger = logging.getLogger(__name__)


class DuplicateDetectionService:
    """
    Service for detecting flooding and clustered reports.
    """

    # Configuration constants
    DUPLICATE_TIME_WINDOW_MINUTES = 30
    MAX_REPORTS_PER_IDENTITY = 3  # prior reports in window that trigger rejection
    MAX_REPORTS_PER_AREA = 5
    AREA_DELTA_DEGREES = 0.01  # ±0.01° box around the submission

    IDENTITY_FLOOD_REASON = "Too many reports from same identity in 30 minutes"
    AREA_CLUSTER_REASON = "Multiple reports from same area"

    def __init__(self, store: ReportStore, clock: Clock = utc_now):
        self.store = store
        self.clock = clock

    def check_duplicate(self, submission: ReportSubmission) -> DuplicateVerdict:
        """
        Decide whether a submission must be rejected before scoring.

        Criteria:
        1. >= MAX_REPORTS_PER_IDENTITY prior reports from the same network
           identity within the window
        2. >= MAX_REPORTS_PER_AREA prior reports inside the coordinate box
           within the window (only when coordinates are present)

        Returns:
            DuplicateVerdict; degraded=True when the store could not be read
        """
        since = self.clock() - timedelta(minutes=self.DUPLICATE_TIME_WINDOW_MINUTES)

        try:
            if submission.network_identity:
                recent = self.store.find_recent(
                    ReportFilter(network_identity=submission.network_identity, since=since),
                    limit=self.MAX_REPORTS_PER_IDENTITY,
                )
                if len(recent) >= self.MAX_REPORTS_PER_IDENTITY:
                    logger.warning(
                        f"Duplicate report rejected: identity flood from {mask_ip_address(submission.network_identity)}"
                    )
                    return DuplicateVerdict(is_duplicate=True, reason=self.IDENTITY_FLOOD_REASON)

            if submission.coordinates is not None:
                nearby = self.store.find_recent(
                    ReportFilter(
                        since=since,
                        bounding_box=BoundingBox.around(submission.coordinates, self.AREA_DELTA_DEGREES),
                    ),
                    limit=self.MAX_REPORTS_PER_AREA,
                )
                if len(nearby) >= self.MAX_REPORTS_PER_AREA:
                    logger.warning(f"Duplicate report rejected: area cluster around {submission.coordinates}")
                    return DuplicateVerdict(is_duplicate=True, reason=self.AREA_CLUSTER_REASON)

        except HistoryLookupFailed as e:
            logger.error(f"Duplicate check failed, allowing submission: {e}")
            return DuplicateVerdict(is_duplicate=False, degraded=True)

        return DuplicateVerdict(is_duplicate=False)


# Global service instance (singleton pattern)
_duplicate_service: Optional[DuplicateDetectionService] = None


def get_duplicate_detection_service() -> DuplicateDetectionService:
    """
    Get or create DuplicateDetectionService singleton instance.
    """
    global _duplicate_service
    if _duplicate_service is None:
        from app.services.report_store import get_report_store
        _duplicate_service = DuplicateDetectionService(get_report_store())
    return _duplicate_service
