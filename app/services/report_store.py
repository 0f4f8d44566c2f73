"""
Report history store.

The verification engine reads recent reports (duplicate detection, trust
history) and the submission workflow writes new ones. Two backends:

- FirestoreReportStore: production, backed by firebase-admin
- InMemoryReportStore: USE_MOCK_DB and tests

Contract:
- find_recent() returns records matching ALL set filter fields
- any backend failure is raised as HistoryLookupFailed
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional
import logging
import threading
import uuid

from firebase_admin import firestore

from app.core.settings import settings
from app.models.report import Coordinates, ReportRecord
from app.services.errors import HistoryLookupFailed
from app.utils.clock import ensure_aware
from app.utils.firestore_helpers import where_filter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BoundingBox:
    min_latitude: float
    max_latitude: float
    min_longitude: float
    max_longitude: float

    @classmethod
    def around(cls, coordinates: Coordinates, delta: float) -> "BoundingBox":
        return cls(
            min_latitude=coordinates.latitude - delta,
            max_latitude=coordinates.latitude + delta,
            min_longitude=coordinates.longitude - delta,
            max_longitude=coordinates.longitude + delta,
        )

    def contains(self, coordinates: Optional[Coordinates]) -> bool:
        if coordinates is None:
            return False
        return (
            self.min_latitude <= coordinates.latitude <= self.max_latitude
            and self.min_longitude <= coordinates.longitude <= self.max_longitude
        )


@dataclass(frozen=True)
class ReportFilter:
    network_identity: Optional[str] = None
    since: Optional[datetime] = None
    bounding_box: Optional[BoundingBox] = None
    newest_first: bool = True

    def matches(self, record: ReportRecord) -> bool:
        if self.network_identity is not None and record.network_identity != self.network_identity:
            return False
        if self.since is not None and ensure_aware(record.created_at) < self.since:
            return False
        if self.bounding_box is not None and not self.bounding_box.contains(record.coordinates):
            return False
        return True


class ReportStore(ABC):
    """Abstract report history store."""

    @abstractmethod
    def find_recent(self, report_filter: ReportFilter, limit: Optional[int] = None) -> List[ReportRecord]:
        raise NotImplementedError

    @abstractmethod
    def insert(self, record: ReportRecord) -> str:
        raise NotImplementedError

    def list_published(self, limit: int = 100) -> List[ReportRecord]:
        """Verified reports, newest first (public feed)."""
        records = self.find_recent(ReportFilter(), limit=None)
        return [record for record in records if record.verified][:limit]


class InMemoryReportStore(ReportStore):
    """Thread-safe list-backed store."""

    def __init__(self, records: Optional[List[ReportRecord]] = None):
        self._lock = threading.Lock()
        self._records: List[ReportRecord] = []
        for record in records or []:
            self.insert(record)

    def find_recent(self, report_filter: ReportFilter, limit: Optional[int] = None) -> List[ReportRecord]:
        with self._lock:
            matches = [record for record in self._records if report_filter.matches(record)]
        matches.sort(key=lambda record: ensure_aware(record.created_at), reverse=report_filter.newest_first)
        return matches[:limit] if limit is not None else matches

    def insert(self, record: ReportRecord) -> str:
        record_id = record.id or uuid.uuid4().hex
        with self._lock:
            self._records.append(record.model_copy(update={"id": record_id}))
        return record_id

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)


class FirestoreReportStore(ReportStore):
    """
    Firestore-backed store.

    Equality on network identity and the created_at lower bound go into the
    query; Firestore cannot range-filter two coordinate fields at once, so the
    bounding box is applied to the streamed documents.
    """

    def __init__(self, db=None, collection: Optional[str] = None):
        if db is None:
            from app.config.firebase import get_db
            db = get_db()
        self.db = db
        self.collection = collection or settings.REPORTS_COLLECTION

    def find_recent(self, report_filter: ReportFilter, limit: Optional[int] = None) -> List[ReportRecord]:
        try:
            query = self.db.collection(self.collection)
            if report_filter.network_identity is not None:
                query = where_filter(query, "network_identity", "==", report_filter.network_identity)
            if report_filter.since is not None:
                query = where_filter(query, "created_at", ">=", report_filter.since)

            direction = firestore.Query.DESCENDING if report_filter.newest_first else firestore.Query.ASCENDING
            query = query.order_by("created_at", direction=direction)
            if limit is not None and report_filter.bounding_box is None:
                query = query.limit(limit)

            records = []
            for doc in query.stream():
                record = ReportRecord.from_document(doc.id, doc.to_dict())
                if report_filter.matches(record):
                    records.append(record)
                    if limit is not None and len(records) >= limit:
                        break
            return records
        except Exception as e:
            logger.warning(f"Report history query failed: {e}")
            raise HistoryLookupFailed(str(e)) from e

    def insert(self, record: ReportRecord) -> str:
        try:
            doc_ref = self.db.collection(self.collection).document()
            doc_ref.set(record.to_document())
            logger.info(f"Report saved to Firestore: {doc_ref.id}")
            return doc_ref.id
        except Exception as e:
            logger.error(f"Failed to save report to Firestore: {e}", exc_info=True)
            raise HistoryLookupFailed(str(e)) from e

    def list_published(self, limit: int = 100) -> List[ReportRecord]:
        try:
            query = where_filter(self.db.collection(self.collection), "verified", "==", True)
            query = query.order_by("created_at", direction=firestore.Query.DESCENDING).limit(limit)
            return [ReportRecord.from_document(doc.id, doc.to_dict()) for doc in query.stream()]
        except Exception as e:
            raise HistoryLookupFailed(str(e)) from e


_store: Optional[ReportStore] = None


def get_report_store() -> ReportStore:
    """
    Resolve the active report store based on settings.

    USE_MOCK_DB=true selects the in-memory store; otherwise Firestore.
    """
    global _store
    if _store is None:
        if settings.USE_MOCK_DB:
            logger.info("[REPORT STORE] USING IN-MEMORY STORE")
            _store = InMemoryReportStore()
        else:
            _store = FirestoreReportStore()
    return _store
