"""Group tag persistence helpers."""

from __future__ import annotations

from sqlalchemy.orm import Query, Session

from relations.schemas import EdgeRecord, GroupTagRecord
from relations.types.entity import EntityRef
from relations.types.status import Status


class GroupTagStore:
    """Per-owner labels on accepted edges."""

    def __init__(self, allowed_groups: list[str] | None = None) -> None:
        self.allowed_groups = set(allowed_groups) if allowed_groups is not None else None

    def is_known(self, label: str) -> bool:
        """Whether ``label`` may be used for tagging."""
        return self.allowed_groups is None or label in self.allowed_groups

    def _owned(self, sess: Session, edge: EdgeRecord, owner: EntityRef) -> Query[GroupTagRecord]:
        return sess.query(GroupTagRecord).filter(
            GroupTagRecord.edge_id == edge.id,
            GroupTagRecord.owner_type == owner.entity_type,
            GroupTagRecord.owner_id == owner.entity_id,
        )

    def tag(self, sess: Session, owner: EntityRef, edge: EdgeRecord, label: str) -> bool:
        """Attach ``label`` to ``edge`` for ``owner``; False when nothing was inserted."""
        if edge.status != Status.ACCEPTED.value or not self.is_known(label):
            return False
        exists = self._owned(sess, edge, owner).filter(GroupTagRecord.group_label == label).first()
        if exists is not None:
            return False
        row = GroupTagRecord(
            edge_id=edge.id,
            owner_type=owner.entity_type,
            owner_id=owner.entity_id,
            group_label=label,
        )
        sess.add(row)
        sess.flush()
        return True

    def untag(self, sess: Session, owner: EntityRef, edge: EdgeRecord, label: str | None = None) -> int:
        """Remove one label, or every label ``owner`` holds on the edge."""
        query = self._owned(sess, edge, owner)
        if label is not None:
            query = query.filter(GroupTagRecord.group_label == label)
        return query.delete(synchronize_session="fetch")

    def purge(self, sess: Session, edge: EdgeRecord) -> int:
        """Remove every tag on the edge, for both owners."""
        return (
            sess.query(GroupTagRecord)
            .filter(GroupTagRecord.edge_id == edge.id)
            .delete(synchronize_session="fetch")
        )

    def labels(self, sess: Session, owner: EntityRef, edge: EdgeRecord) -> list[str]:
        rows = self._owned(sess, edge, owner).order_by(GroupTagRecord.group_label.asc()).all()
        return [row.group_label for row in rows]

    @staticmethod
    def filter_group(query: Query[EdgeRecord], owner: EntityRef, label: str) -> Query[EdgeRecord]:
        """Restrict an edge query to edges ``owner`` tagged with ``label``."""
        return query.join(GroupTagRecord, GroupTagRecord.edge_id == EdgeRecord.id).filter(
            GroupTagRecord.owner_type == owner.entity_type,
            GroupTagRecord.owner_id == owner.entity_id,
            GroupTagRecord.group_label == label,
        )
