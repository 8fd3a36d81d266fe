"""Edge persistence helpers."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from sqlalchemy import or_
from sqlalchemy.orm import Query, Session

from relations.schemas import EdgeRecord, utc_now
from relations.types.entity import EntityRef, pair_key
from relations.types.status import Status


class EdgeStore:
    """Reads and writes relationship edges inside a caller-owned session.

    Every edge is addressed by its sorted pair key, so the lookup is the same
    regardless of which end asks. Methods flush but never commit; the caller's
    transaction decides whether a change sticks.
    """

    def find(self, sess: Session, first: EntityRef, second: EntityRef) -> EdgeRecord | None:
        """Return the edge between two entities, if any."""
        low, high = pair_key(first, second)
        return (
            sess.query(EdgeRecord)
            .filter(EdgeRecord.pair_low == low, EdgeRecord.pair_high == high)
            .first()
        )

    def create(
        self,
        sess: Session,
        sender: EntityRef,
        recipient: EntityRef,
        status: Status,
        blocked_by_sender: bool = False,
    ) -> EdgeRecord:
        """Insert a new edge with ``sender`` as the initiating party."""
        low, high = pair_key(sender, recipient)
        now = utc_now()
        row = EdgeRecord(
            sender_type=sender.entity_type,
            sender_id=sender.entity_id,
            recipient_type=recipient.entity_type,
            recipient_id=recipient.entity_id,
            pair_low=low,
            pair_high=high,
            status=status.value,
            blocked_by_sender=blocked_by_sender,
            blocked_by_recipient=False,
            created_at=now,
            updated_at=now,
        )
        sess.add(row)
        sess.flush()
        return row

    def set_status(self, sess: Session, row: EdgeRecord, status: Status) -> EdgeRecord:
        """Move an edge to ``status`` and refresh its update time."""
        row.status = status.value
        row.updated_at = utc_now()
        sess.flush()
        return row

    def set_block(self, sess: Session, row: EdgeRecord, entity: EntityRef, blocked: bool) -> EdgeRecord:
        """Set or clear the block flag held by ``entity`` on the edge."""
        if row.sender == entity:
            row.blocked_by_sender = blocked
        else:
            row.blocked_by_recipient = blocked
        row.updated_at = utc_now()
        sess.flush()
        return row

    def delete(self, sess: Session, row: EdgeRecord) -> None:
        """Delete an edge; its group tags go with it."""
        sess.delete(row)
        sess.flush()

    def touching(
        self,
        sess: Session,
        entity: EntityRef,
        statuses: Iterable[Status] | None = None,
    ) -> Query[EdgeRecord]:
        """Query every edge with ``entity`` at either end."""
        key = entity.key
        query = sess.query(EdgeRecord).filter(
            or_(EdgeRecord.pair_low == key, EdgeRecord.pair_high == key)
        )
        if statuses is not None:
            query = query.filter(EdgeRecord.status.in_([status.value for status in statuses]))
        return query

    def touching_any(self, sess: Session, keys: Iterable[str], status: Status) -> Query[EdgeRecord]:
        """Query edges in ``status`` with any of ``keys`` at either end."""
        key_list = list(keys)
        return sess.query(EdgeRecord).filter(
            EdgeRecord.status == status.value,
            or_(EdgeRecord.pair_low.in_(key_list), EdgeRecord.pair_high.in_(key_list)),
        )

    @staticmethod
    def recent_first(query: Query[EdgeRecord]) -> Query[EdgeRecord]:
        return query.order_by(EdgeRecord.updated_at.desc(), EdgeRecord.id.desc())

    @staticmethod
    def to_dict(row: EdgeRecord) -> dict[str, Any]:
        return {
            "id": row.id,
            "sender": row.sender,
            "recipient": row.recipient,
            "status": Status(row.status),
            "blocked_by_sender": bool(row.blocked_by_sender),
            "blocked_by_recipient": bool(row.blocked_by_recipient),
            "created_at": row.created_at,
            "updated_at": row.updated_at,
        }
