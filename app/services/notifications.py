"""
Broadcast channel for report events.

Fan-out to connected clients is owned by the transport layer; this module
only decides WHICH events a verification outcome produces and hands them to
a Broadcaster.
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Tuple
import logging
import threading

from app.models.verification import Admission

logger = logging.getLogger(__name__)

# Admission tier → events emitted after the report is stored
ADMISSION_EVENTS: Dict[Admission, Tuple[str, ...]] = {
    Admission.AUTO_VERIFIED: ("report:new", "report:verified"),
    Admission.PENDING_REVIEW: ("report:pending_review",),
    Admission.FLAGGED: ("report:flagged",),
}


def events_for(admission: Admission) -> Tuple[str, ...]:
    return ADMISSION_EVENTS[admission]


class Broadcaster(ABC):

    @abstractmethod
    def publish(self, event: str, payload: Dict) -> None:
        raise NotImplementedError


class LoggingBroadcaster(Broadcaster):
    """Default channel: records events in the application log."""

    def publish(self, event: str, payload: Dict) -> None:
        logger.info(f"📣 {event} (report {payload.get('id')})")


class InMemoryBroadcaster(Broadcaster):
    """Keeps published events in order; used by tests and local tooling."""

    def __init__(self):
        self._lock = threading.Lock()
        self.events: List[Tuple[str, Dict]] = []

    def publish(self, event: str, payload: Dict) -> None:
        with self._lock:
            self.events.append((event, payload))

    @property
    def names(self) -> List[str]:
        with self._lock:
            return [name for name, _ in self.events]


_broadcaster: Optional[Broadcaster] = None


def get_broadcaster() -> Broadcaster:
    global _broadcaster
    if _broadcaster is None:
        _broadcaster = LoggingBroadcaster()
    return _broadcaster
