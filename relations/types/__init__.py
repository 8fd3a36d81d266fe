"""Typed relationship payload models."""

from relations.types.entity import EntityRef, pair_key
from relations.types.status import RelationshipEvent, Status

__all__ = [
    "EntityRef",
    "RelationshipEvent",
    "Status",
    "pair_key",
]
