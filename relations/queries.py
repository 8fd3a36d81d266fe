"""Read side: friend lists, counts, mutual friends and friends-of-friends."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from typing import Any, TypeVar

from sqlalchemy import or_
from sqlalchemy.orm import Query, Session

from relations.entities import EntityProvider, PassthroughEntityProvider
from relations.schemas import EdgeRecord
from relations.stores.edge_store import EdgeStore
from relations.stores.group_store import GroupTagStore
from relations.stores.sql_store import SQLStore
from relations.types.entity import EntityRef
from relations.types.status import Status

logger = logging.getLogger("fg.queries")

T = TypeVar("T")


def _slice(items: Sequence[T], per_page: int, page: int) -> list[T]:
    if per_page <= 0:
        return list(items)
    start = (max(page, 1) - 1) * per_page
    return list(items[start : start + per_page])


class RelationshipQueries:
    """Derives relationship views from the edge and group tag tables.

    List results are ordered most recently updated edge first, ties broken by
    edge id. ``per_page`` of 0 returns everything; a positive value returns at
    most that many items starting at 1-based ``page``.
    """

    def __init__(
        self,
        sql_store: SQLStore,
        entity_provider: EntityProvider | None = None,
        edge_store: EdgeStore | None = None,
        group_store: GroupTagStore | None = None,
    ) -> None:
        self.sql_store = sql_store
        self.entities: EntityProvider = entity_provider or PassthroughEntityProvider()
        self.edges = edge_store or EdgeStore()
        self.groups = group_store or GroupTagStore()

    @staticmethod
    def _paginate(query: Query[EdgeRecord], per_page: int, page: int) -> list[EdgeRecord]:
        if per_page > 0:
            query = query.limit(per_page).offset((max(page, 1) - 1) * per_page)
        return query.all()

    def _edge_query(
        self,
        sess: Session,
        entity: EntityRef,
        statuses: Iterable[Status] | None,
        group: str | None,
    ) -> Query[EdgeRecord]:
        query = self.edges.touching(sess, entity, statuses)
        if group is not None:
            query = self.groups.filter_group(query, entity, group)
        return query

    def _edges(
        self,
        entity: EntityRef,
        statuses: Iterable[Status] | None = None,
        group: str | None = None,
        per_page: int = 0,
        page: int = 1,
    ) -> list[dict[str, Any]]:
        with self.sql_store.session() as sess:
            query = self.edges.recent_first(self._edge_query(sess, entity, statuses, group))
            return [self.edges.to_dict(row) for row in self._paginate(query, per_page, page)]

    def _friend_refs(self, sess: Session, entity: EntityRef, group: str | None = None) -> list[EntityRef]:
        query = self.edges.recent_first(self._edge_query(sess, entity, [Status.ACCEPTED], group))
        return [row.other_party(entity) for row in query.all()]

    def _friend_keys(self, sess: Session, entity: EntityRef) -> set[str]:
        key = entity.key
        rows = (
            sess.query(EdgeRecord.pair_low, EdgeRecord.pair_high)
            .filter(
                EdgeRecord.status == Status.ACCEPTED.value,
                or_(EdgeRecord.pair_low == key, EdgeRecord.pair_high == key),
            )
            .all()
        )
        return {high if low == key else low for low, high in rows}

    def _find(self, entity: EntityRef, other: EntityRef) -> EdgeRecord | None:
        with self.sql_store.session() as sess:
            return self.edges.find(sess, entity, other)

    # Single-pair checks

    def get_friendship(self, entity: EntityRef, other: EntityRef) -> dict[str, Any] | None:
        """Return the edge between the pair, whatever its status."""
        row = self._find(entity, other)
        return None if row is None else self.edges.to_dict(row)

    def is_friend_with(self, entity: EntityRef, other: EntityRef) -> bool:
        row = self._find(entity, other)
        return row is not None and row.status == Status.ACCEPTED.value

    def has_sent_friend_request_to(self, entity: EntityRef, other: EntityRef) -> bool:
        row = self._find(entity, other)
        return row is not None and row.status == Status.PENDING.value and row.sender == entity

    def has_friend_request_from(self, entity: EntityRef, other: EntityRef) -> bool:
        row = self._find(entity, other)
        return row is not None and row.status == Status.PENDING.value and row.sender == other

    def is_blocked_by(self, entity: EntityRef, other: EntityRef) -> bool:
        """True when ``other`` holds a block against ``entity``."""
        row = self._find(entity, other)
        return row is not None and row.status == Status.BLOCKED.value and row.is_blocked_by(other)

    def has_blocked(self, entity: EntityRef, other: EntityRef) -> bool:
        """True when ``entity`` holds a block against ``other``."""
        row = self._find(entity, other)
        return row is not None and row.status == Status.BLOCKED.value and row.is_blocked_by(entity)

    def get_groups(self, owner: EntityRef, other: EntityRef) -> list[str]:
        """Labels ``owner`` applied to the edge with ``other``."""
        with self.sql_store.session() as sess:
            row = self.edges.find(sess, owner, other)
            return [] if row is None else self.groups.labels(sess, owner, row)

    # Edge lists

    def get_friend_requests(self, entity: EntityRef, per_page: int = 0, page: int = 1) -> list[dict[str, Any]]:
        """Pending edges addressed to ``entity``."""
        with self.sql_store.session() as sess:
            query = self.edges.touching(sess, entity, [Status.PENDING]).filter(
                EdgeRecord.recipient_type == entity.entity_type,
                EdgeRecord.recipient_id == entity.entity_id,
            )
            rows = self._paginate(self.edges.recent_first(query), per_page, page)
            return [self.edges.to_dict(row) for row in rows]

    def get_sent_friend_requests(
        self, entity: EntityRef, per_page: int = 0, page: int = 1
    ) -> list[dict[str, Any]]:
        """Pending edges ``entity`` initiated."""
        with self.sql_store.session() as sess:
            query = self.edges.touching(sess, entity, [Status.PENDING]).filter(
                EdgeRecord.sender_type == entity.entity_type,
                EdgeRecord.sender_id == entity.entity_id,
            )
            rows = self._paginate(self.edges.recent_first(query), per_page, page)
            return [self.edges.to_dict(row) for row in rows]

    def get_all_friendships(
        self, entity: EntityRef, group: str | None = None, per_page: int = 0, page: int = 1
    ) -> list[dict[str, Any]]:
        return self._edges(entity, None, group, per_page, page)

    def get_pending_friendships(
        self, entity: EntityRef, group: str | None = None, per_page: int = 0, page: int = 1
    ) -> list[dict[str, Any]]:
        return self._edges(entity, [Status.PENDING], group, per_page, page)

    def get_accepted_friendships(
        self, entity: EntityRef, group: str | None = None, per_page: int = 0, page: int = 1
    ) -> list[dict[str, Any]]:
        return self._edges(entity, [Status.ACCEPTED], group, per_page, page)

    def get_denied_friendships(
        self, entity: EntityRef, group: str | None = None, per_page: int = 0, page: int = 1
    ) -> list[dict[str, Any]]:
        return self._edges(entity, [Status.DENIED], group, per_page, page)

    def get_blocked_friendships(
        self, entity: EntityRef, group: str | None = None, per_page: int = 0, page: int = 1
    ) -> list[dict[str, Any]]:
        return self._edges(entity, [Status.BLOCKED], group, per_page, page)

    # Entity lists

    def get_friends(
        self, entity: EntityRef, per_page: int = 0, group: str | None = None, page: int = 1
    ) -> list[Any]:
        """Other parties of ``entity``'s accepted edges, resolved by the entity provider."""
        with self.sql_store.session() as sess:
            query = self.edges.recent_first(self._edge_query(sess, entity, [Status.ACCEPTED], group))
            refs = [row.other_party(entity) for row in self._paginate(query, per_page, page)]
        return self.entities.get_many(refs)

    def get_friends_count(self, entity: EntityRef, group: str | None = None) -> int:
        with self.sql_store.session() as sess:
            return self._edge_query(sess, entity, [Status.ACCEPTED], group).count()

    def get_friends_of_friends(self, entity: EntityRef, per_page: int = 0, page: int = 1) -> list[Any]:
        """Friends of ``entity``'s friends who are neither ``entity`` nor its direct friends."""
        with self.sql_store.session() as sess:
            direct = self._friend_keys(sess, entity)
            if not direct:
                return []
            rows = self.edges.recent_first(self.edges.touching_any(sess, direct, Status.ACCEPTED)).all()
        seen = set(direct)
        seen.add(entity.key)
        found: list[EntityRef] = []
        for row in rows:
            for ref in (row.sender, row.recipient):
                if ref.key not in seen:
                    seen.add(ref.key)
                    found.append(ref)
        logger.debug("%s has %d friends of friends via %d friends", entity, len(found), len(direct))
        return self.entities.get_many(_slice(found, per_page, page))

    def get_mutual_friends(
        self, entity: EntityRef, other: EntityRef, per_page: int = 0, page: int = 1
    ) -> list[Any]:
        """Friends shared by both entities, in ``entity``'s friend order."""
        excluded = {entity.key, other.key}
        with self.sql_store.session() as sess:
            others = self._friend_keys(sess, other)
            mutual = [
                ref
                for ref in self._friend_refs(sess, entity)
                if ref.key in others and ref.key not in excluded
            ]
        return self.entities.get_many(_slice(mutual, per_page, page))

    def get_mutual_friends_count(self, entity: EntityRef, other: EntityRef) -> int:
        with self.sql_store.session() as sess:
            shared = self._friend_keys(sess, entity) & self._friend_keys(sess, other)
        return len(shared - {entity.key, other.key})
