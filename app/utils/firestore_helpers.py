"""
Firestore query helpers.

Wraps the keyword `filter=` API so call sites stay one-liners and the
positional-argument deprecation warning never fires.
"""

from google.cloud.firestore_v1.base_query import FieldFilter


def where_filter(query, field_path: str, op_string: str, value):
    """
    Usage:
        query = where_filter(collection, "network_identity", "==", identity)
        query = where_filter(query, "created_at", ">=", since)
    """
    return query.where(filter=FieldFilter(field_path, op_string, value))
