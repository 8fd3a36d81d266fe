"""SQLAlchemy schemas for relationship edges and group tags."""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from relations.types.entity import EntityRef
from relations.types.status import Status


def utc_now() -> datetime:
    """Return UTC datetime for default timestamps."""
    return datetime.now(UTC)


class Base(DeclarativeBase):
    """Declarative base."""


class EdgeRecord(Base):
    """One relationship edge per unordered pair of entities."""

    __tablename__ = "relationship_edges"
    __table_args__ = (UniqueConstraint("pair_low", "pair_high", name="uq_edge_pair"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    sender_type: Mapped[str] = mapped_column(String(64))
    sender_id: Mapped[str] = mapped_column(String(128))
    recipient_type: Mapped[str] = mapped_column(String(64))
    recipient_id: Mapped[str] = mapped_column(String(128))
    pair_low: Mapped[str] = mapped_column(String(200), index=True)
    pair_high: Mapped[str] = mapped_column(String(200), index=True)
    status: Mapped[str] = mapped_column(String(16), default=Status.PENDING.value, index=True)
    blocked_by_sender: Mapped[bool] = mapped_column(Boolean, default=False)
    blocked_by_recipient: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now, index=True
    )

    tags: Mapped[list[GroupTagRecord]] = relationship(
        back_populates="edge", cascade="all, delete-orphan", passive_deletes=True
    )

    @property
    def sender(self) -> EntityRef:
        return EntityRef(entity_type=self.sender_type, entity_id=self.sender_id)

    @property
    def recipient(self) -> EntityRef:
        return EntityRef(entity_type=self.recipient_type, entity_id=self.recipient_id)

    def other_party(self, entity: EntityRef) -> EntityRef:
        """Return the end of the edge that is not ``entity``."""
        return self.recipient if self.sender == entity else self.sender

    def is_blocked_by(self, entity: EntityRef) -> bool:
        """True when ``entity`` holds a block on this edge."""
        if self.sender == entity:
            return bool(self.blocked_by_sender)
        if self.recipient == entity:
            return bool(self.blocked_by_recipient)
        return False


class GroupTagRecord(Base):
    """Per-owner group label on an accepted edge."""

    __tablename__ = "relationship_group_tags"
    __table_args__ = (
        UniqueConstraint("edge_id", "owner_type", "owner_id", "group_label", name="uq_group_tag"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    edge_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("relationship_edges.id", ondelete="CASCADE"), index=True
    )
    owner_type: Mapped[str] = mapped_column(String(64))
    owner_id: Mapped[str] = mapped_column(String(128))
    group_label: Mapped[str] = mapped_column(String(64), index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)

    edge: Mapped[EdgeRecord] = relationship(back_populates="tags")
