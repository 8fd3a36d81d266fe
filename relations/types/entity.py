"""Entity reference model."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class EntityRef(BaseModel):
    """Opaque identity of a participant in the relationship graph."""

    model_config = ConfigDict(frozen=True)

    # The type never contains ":" so the key below splits back unambiguously.
    entity_type: str = Field(pattern=r"^[^:]+$", max_length=64)
    entity_id: str = Field(min_length=1, max_length=128)

    @property
    def key(self) -> str:
        """Canonical string key, also used to order the two ends of a pair."""
        return f"{self.entity_type}:{self.entity_id}"

    @classmethod
    def from_key(cls, key: str) -> EntityRef:
        """Parse a ``type:id`` key."""
        entity_type, sep, entity_id = key.partition(":")
        if not sep or not entity_type or not entity_id:
            raise ValueError(f"Entity key must look like 'type:id': {key!r}")
        return cls(entity_type=entity_type, entity_id=entity_id)

    def __str__(self) -> str:
        return self.key


def pair_key(first: EntityRef, second: EntityRef) -> tuple[str, str]:
    """Return the sorted key pair identifying the edge between two entities."""
    a, b = first.key, second.key
    return (a, b) if a <= b else (b, a)
