"""Relationship status and event names."""

from __future__ import annotations

from enum import Enum


class Status(str, Enum):
    """Lifecycle state of an edge."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    DENIED = "denied"
    BLOCKED = "blocked"


class RelationshipEvent(str, Enum):
    """Names emitted on the event bus after a committed change."""

    REQUESTED = "relationship.requested"
    ACCEPTED = "relationship.accepted"
    DENIED = "relationship.denied"
    BLOCKED = "relationship.blocked"
    UNBLOCKED = "relationship.unblocked"
    CANCELLED = "relationship.cancelled"
