"""Persistence adapters for courses, enrolled sets, intents and messages."""

from .base import EnrollmentStore, MessagePredicate
from .cassandra import CassandraEnrollmentStore
from .memory import InMemoryEnrollmentStore


__all__ = [
    "CassandraEnrollmentStore",
    "EnrollmentStore",
    "InMemoryEnrollmentStore",
    "MessagePredicate",
]
