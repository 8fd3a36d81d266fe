"""Relationship state machine over the edge and group tag stores.

Every mutating call takes the acting entity first and the counterpart second.
Illegal calls (self pairs, accepting one's own request, unblocking without
holding a block) are no-ops that return a falsy value; the event bus is only
notified after a change has been committed.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, TypeVar

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from core.event_bus import EventBus
from relations.schemas import EdgeRecord
from relations.stores.edge_store import EdgeStore
from relations.stores.group_store import GroupTagStore
from relations.stores.sql_store import SQLStore
from relations.types.entity import EntityRef, pair_key
from relations.types.status import RelationshipEvent, Status

logger = logging.getLogger("fg.state_machine")

T = TypeVar("T")


@dataclass
class _PairLock:
    lock: threading.Lock = field(default_factory=threading.Lock)
    holders: int = 0


class RelationshipStateMachine:
    """Enforces legal transitions and one edge per unordered pair."""

    def __init__(
        self,
        sql_store: SQLStore,
        event_bus: EventBus | None = None,
        group_store: GroupTagStore | None = None,
        edge_store: EdgeStore | None = None,
    ) -> None:
        self.sql_store = sql_store
        self.event_bus = event_bus or EventBus()
        self.groups = group_store or GroupTagStore()
        self.edges = edge_store or EdgeStore()
        self._locks: dict[tuple[str, str], _PairLock] = {}
        self._locks_guard = threading.Lock()

    @contextmanager
    def _pair_lock(self, first: EntityRef, second: EntityRef) -> Iterator[None]:
        key = pair_key(first, second)
        with self._locks_guard:
            entry = self._locks.get(key)
            if entry is None:
                entry = self._locks[key] = _PairLock()
            entry.holders += 1
        try:
            with entry.lock:
                yield
        finally:
            # Drop the entry once nobody holds or waits on it.
            with self._locks_guard:
                entry.holders -= 1
                if entry.holders == 0:
                    del self._locks[key]

    def _transact(
        self,
        op: str,
        first: EntityRef,
        second: EntityRef,
        action: Callable[[Session], T],
    ) -> T | None:
        """Run ``action`` in one transaction while holding the pair lock."""
        with self._pair_lock(first, second):
            try:
                with self.sql_store.session() as sess:
                    return action(sess)
            except IntegrityError as exc:
                logger.warning("%s %s -> %s hit a constraint race: %s", op, first, second, exc.orig)
                return None

    def _commit_and_emit(
        self,
        op: str,
        event: RelationshipEvent,
        actor: EntityRef,
        other: EntityRef,
        action: Callable[[Session], dict[str, Any] | None],
    ) -> dict[str, Any] | None:
        edge = self._transact(op, actor, other, action)
        if edge is None:
            logger.debug("%s %s -> %s was a no-op", op, actor, other)
            return None
        logger.info("%s %s -> %s (edge %s, %s)", op, actor, other, edge["id"], edge["status"].value)
        self.event_bus.emit(event.value, {"edge": edge, "actor": actor, "other": other})
        return edge

    @staticmethod
    def _replaceable_by_request(row: EdgeRecord, initiator: EntityRef) -> bool:
        if row.status == Status.DENIED.value:
            return True
        if row.status == Status.BLOCKED.value:
            # A blocker may still send a request; the blocked party may not.
            other = row.other_party(initiator)
            return row.is_blocked_by(initiator) and not row.is_blocked_by(other)
        return False

    def can_request(self, initiator: EntityRef, target: EntityRef) -> bool:
        """Whether ``request_relationship`` would create an edge right now."""
        if initiator == target:
            return False
        with self.sql_store.session() as sess:
            row = self.edges.find(sess, initiator, target)
            return row is None or self._replaceable_by_request(row, initiator)

    def request_relationship(self, initiator: EntityRef, target: EntityRef) -> dict[str, Any] | None:
        """Create a pending edge from ``initiator`` to ``target``."""
        if initiator == target:
            logger.debug("request rejected for self pair %s", initiator)
            return None

        def action(sess: Session) -> dict[str, Any] | None:
            row = self.edges.find(sess, initiator, target)
            if row is not None:
                if not self._replaceable_by_request(row, initiator):
                    return None
                self.groups.purge(sess, row)
                self.edges.delete(sess, row)
            created = self.edges.create(sess, initiator, target, Status.PENDING)
            return self.edges.to_dict(created)

        return self._commit_and_emit("request", RelationshipEvent.REQUESTED, initiator, target, action)

    def _answer(
        self,
        op: str,
        event: RelationshipEvent,
        status: Status,
        responder: EntityRef,
        requester: EntityRef,
    ) -> dict[str, Any] | None:
        if responder == requester:
            return None

        def action(sess: Session) -> dict[str, Any] | None:
            row = self.edges.find(sess, responder, requester)
            if row is None or row.status != Status.PENDING.value or row.recipient != responder:
                return None
            return self.edges.to_dict(self.edges.set_status(sess, row, status))

        return self._commit_and_emit(op, event, responder, requester, action)

    def accept_relationship(self, accepter: EntityRef, requester: EntityRef) -> dict[str, Any] | None:
        """Accept a pending request addressed to ``accepter``."""
        return self._answer("accept", RelationshipEvent.ACCEPTED, Status.ACCEPTED, accepter, requester)

    def deny_relationship(self, denier: EntityRef, requester: EntityRef) -> dict[str, Any] | None:
        """Deny a pending request addressed to ``denier``."""
        return self._answer("deny", RelationshipEvent.DENIED, Status.DENIED, denier, requester)

    def block_relationship(self, blocker: EntityRef, target: EntityRef) -> dict[str, Any] | None:
        """Record a block held by ``blocker``, creating the edge if needed."""
        if blocker == target:
            return None

        def action(sess: Session) -> dict[str, Any] | None:
            row = self.edges.find(sess, blocker, target)
            if row is None:
                row = self.edges.create(sess, blocker, target, Status.BLOCKED, blocked_by_sender=True)
                return self.edges.to_dict(row)
            if row.is_blocked_by(blocker):
                return None
            if row.status != Status.BLOCKED.value:
                # Group tags only live on accepted edges.
                self.groups.purge(sess, row)
                self.edges.set_status(sess, row, Status.BLOCKED)
            return self.edges.to_dict(self.edges.set_block(sess, row, blocker, True))

        return self._commit_and_emit("block", RelationshipEvent.BLOCKED, blocker, target, action)

    def unblock_relationship(self, unblocker: EntityRef, target: EntityRef) -> dict[str, Any] | None:
        """Clear the block held by ``unblocker``.

        The edge is deleted once neither party blocks any more; if the other
        party still holds a block the edge stays blocked.
        """
        if unblocker == target:
            return None

        def action(sess: Session) -> dict[str, Any] | None:
            row = self.edges.find(sess, unblocker, target)
            if row is None or row.status != Status.BLOCKED.value or not row.is_blocked_by(unblocker):
                return None
            self.edges.set_block(sess, row, unblocker, False)
            snapshot = self.edges.to_dict(row)
            if not row.is_blocked_by(row.other_party(unblocker)):
                self.edges.delete(sess, row)
            return snapshot

        return self._commit_and_emit("unblock", RelationshipEvent.UNBLOCKED, unblocker, target, action)

    def remove_relationship(self, party: EntityRef, other: EntityRef) -> int:
        """Delete the edge between the pair in any status; returns edges removed."""
        if party == other:
            return 0

        def action(sess: Session) -> dict[str, Any] | None:
            row = self.edges.find(sess, party, other)
            if row is None:
                return None
            snapshot = self.edges.to_dict(row)
            self.groups.purge(sess, row)
            self.edges.delete(sess, row)
            return snapshot

        edge = self._commit_and_emit("remove", RelationshipEvent.CANCELLED, party, other, action)
        return 0 if edge is None else 1

    def tag_group(self, owner: EntityRef, other: EntityRef, label: str) -> bool:
        """Put ``other`` into ``owner``'s group ``label``; requires an accepted edge."""
        if owner == other:
            return False

        def action(sess: Session) -> bool:
            row = self.edges.find(sess, owner, other)
            if row is None:
                return False
            return self.groups.tag(sess, owner, row, label)

        return bool(self._transact("tag", owner, other, action))

    def untag_group(self, owner: EntityRef, other: EntityRef, label: str | None = None) -> int:
        """Take ``other`` out of one of ``owner``'s groups, or all of them."""
        if owner == other:
            return 0

        def action(sess: Session) -> int:
            row = self.edges.find(sess, owner, other)
            if row is None:
                return 0
            return self.groups.untag(sess, owner, row, label)

        return self._transact("untag", owner, other, action) or 0
