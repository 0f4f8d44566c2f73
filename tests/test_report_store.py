from datetime import timedelta

import pytest

from app.models.report import Coordinates
from app.services.errors import HistoryLookupFailed
from app.services.report_store import BoundingBox, FirestoreReportStore, InMemoryReportStore, ReportFilter

from conftest import LAHORE, make_record


class FakeDocument:
    def __init__(self, doc_id, data):
        self.id = doc_id
        self._data = data

    def to_dict(self):
        return dict(self._data)


class FakeQuery:
    """Just enough of the Firestore query API for the store."""

    def __init__(self, collection, filters=(), order=None, limit_to=None):
        self.collection = collection
        self.filters = filters
        self.order = order
        self.limit_to = limit_to

    def where(self, filter):
        return FakeQuery(self.collection, self.filters + (filter,), self.order, self.limit_to)

    def order_by(self, field, direction):
        return FakeQuery(self.collection, self.filters, (field, direction), self.limit_to)

    def limit(self, count):
        return FakeQuery(self.collection, self.filters, self.order, count)

    def stream(self):
        if self.collection.broken:
            raise RuntimeError("deadline exceeded")
        docs = list(self.collection.docs.items())
        for field_filter in self.filters:
            ops = {"==": lambda a, b: a == b, ">=": lambda a, b: a is not None and a >= b}
            docs = [
                (doc_id, data) for doc_id, data in docs
                if ops[field_filter.op_string](data.get(field_filter.field_path), field_filter.value)
            ]
        if self.order is not None:
            field, direction = self.order
            docs.sort(key=lambda item: item[1][field], reverse=direction == "DESCENDING")
        if self.limit_to is not None:
            docs = docs[:self.limit_to]
        return [FakeDocument(doc_id, data) for doc_id, data in docs]


class FakeDocumentRef:
    def __init__(self, collection, doc_id):
        self.collection = collection
        self.id = doc_id

    def set(self, data):
        if self.collection.broken:
            raise RuntimeError("permission denied")
        self.collection.docs[self.id] = data


class FakeCollection(FakeQuery):
    def __init__(self):
        self.docs = {}
        self.broken = False
        super().__init__(self)

    def document(self):
        return FakeDocumentRef(self, f"doc-{len(self.docs) + 1}")


class FakeFirestore:
    def __init__(self):
        self.collections = {}

    def collection(self, name):
        return self.collections.setdefault(name, FakeCollection())


@pytest.fixture
def firestore_store():
    return FirestoreReportStore(db=FakeFirestore(), collection="reports")


def test_firestore_insert_and_identity_window_query(firestore_store, clock):
    for minutes in (5, 20, 45):
        firestore_store.insert(make_record(clock.now - timedelta(minutes=minutes)))
    firestore_store.insert(make_record(clock.now - timedelta(minutes=1), identity="other"))

    recent = firestore_store.find_recent(
        ReportFilter(network_identity="identity-x", since=clock.now - timedelta(minutes=30))
    )

    assert len(recent) == 2
    assert recent[0].created_at > recent[1].created_at
    assert all(record.id for record in recent)


def test_firestore_bounding_box_is_applied_after_query(firestore_store, clock):
    far = Coordinates(latitude=LAHORE.latitude + 1, longitude=LAHORE.longitude)
    firestore_store.insert(make_record(clock.now, coordinates=LAHORE))
    firestore_store.insert(make_record(clock.now, coordinates=far))
    firestore_store.insert(make_record(clock.now, coordinates=None))

    nearby = firestore_store.find_recent(
        ReportFilter(bounding_box=BoundingBox.around(LAHORE, 0.01)), limit=5
    )

    assert len(nearby) == 1
    assert nearby[0].coordinates == LAHORE


def test_firestore_published_feed(firestore_store, clock):
    firestore_store.insert(make_record(clock.now, verified=True))
    firestore_store.insert(make_record(clock.now, verified=False))

    assert [record.verified for record in firestore_store.list_published()] == [True]


def test_firestore_failures_raise_history_lookup_failed(firestore_store, clock):
    firestore_store.db.collection("reports").broken = True

    with pytest.raises(HistoryLookupFailed):
        firestore_store.find_recent(ReportFilter(network_identity="identity-x"))
    with pytest.raises(HistoryLookupFailed):
        firestore_store.insert(make_record(clock.now))


def test_in_memory_store_limit_and_order(clock):
    store = InMemoryReportStore([make_record(clock.now - timedelta(minutes=m)) for m in (3, 1, 2)])

    newest = store.find_recent(ReportFilter(), limit=2)
    oldest = store.find_recent(ReportFilter(newest_first=False), limit=1)

    assert [clock.now - r.created_at for r in newest] == [timedelta(minutes=1), timedelta(minutes=2)]
    assert clock.now - oldest[0].created_at == timedelta(minutes=3)
