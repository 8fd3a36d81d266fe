"""Entity providers used to materialize friend lists."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any, Protocol

from relations.types.entity import EntityRef

logger = logging.getLogger("fg.entities")


class EntityProvider(Protocol):
    """Resolves entity references into host-application objects."""

    def get(self, ref: EntityRef) -> Any | None: ...

    def get_many(self, refs: Sequence[EntityRef]) -> list[Any]: ...


class PassthroughEntityProvider:
    """Returns the references themselves."""

    def get(self, ref: EntityRef) -> EntityRef:
        return ref

    def get_many(self, refs: Sequence[EntityRef]) -> list[EntityRef]:
        return list(refs)


class InMemoryEntityProvider:
    """Dictionary-backed registry of entities keyed by reference."""

    def __init__(self) -> None:
        self._entities: dict[EntityRef, Any] = {}

    def register(self, ref: EntityRef, entity: Any) -> None:
        self._entities[ref] = entity

    def get(self, ref: EntityRef) -> Any | None:
        return self._entities.get(ref)

    def get_many(self, refs: Sequence[EntityRef]) -> list[Any]:
        """Resolve refs in order, skipping ones the registry does not know.

        A page can therefore come back shorter than requested while counts
        still include the unregistered entities.
        """
        missing = [ref for ref in refs if ref not in self._entities]
        if missing:
            logger.debug("%d refs not registered: %s", len(missing), ", ".join(map(str, missing)))
        return [self._entities[ref] for ref in refs if ref in self._entities]
