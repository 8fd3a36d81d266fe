"""Relationship event emission and audit trail tests."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from core.event_bus import EventBus
from governance.audit_logger import AuditLogger
from relations.state_machine import RelationshipStateMachine
from relations.stores.sql_store import SQLStore
from relations.types import EntityRef, RelationshipEvent, Status

SENDER = EntityRef(entity_type="user", entity_id="sender")
RECIPIENT = EntityRef(entity_type="user", entity_id="recipient")


def build(tmp_path: Path) -> tuple[RelationshipStateMachine, list[tuple[str, dict[str, Any]]]]:
    store = SQLStore(db_path=tmp_path / "fg.db")
    store.create_all()
    bus = EventBus()
    machine = RelationshipStateMachine(sql_store=store, event_bus=bus)
    events: list[tuple[str, dict[str, Any]]] = []
    bus.subscribe_all(lambda name, payload: events.append((name, payload)))
    return machine, events


def test_request_emits_requested_once(tmp_path: Path) -> None:
    machine, events = build(tmp_path)

    machine.request_relationship(SENDER, RECIPIENT)
    machine.request_relationship(SENDER, RECIPIENT)

    assert [name for name, _ in events] == [RelationshipEvent.REQUESTED.value]
    payload = events[0][1]
    assert payload["actor"] == SENDER
    assert payload["other"] == RECIPIENT
    assert payload["edge"]["status"] is Status.PENDING


def test_accept_emits_accepted(tmp_path: Path) -> None:
    machine, events = build(tmp_path)
    machine.request_relationship(SENDER, RECIPIENT)
    events.clear()

    machine.accept_relationship(RECIPIENT, SENDER)

    assert [name for name, _ in events] == ["relationship.accepted"]
    assert events[0][1]["actor"] == RECIPIENT


def test_deny_emits_denied(tmp_path: Path) -> None:
    machine, events = build(tmp_path)
    machine.request_relationship(SENDER, RECIPIENT)
    events.clear()

    machine.deny_relationship(RECIPIENT, SENDER)

    assert [name for name, _ in events] == ["relationship.denied"]


def test_block_and_unblock_emit_once_each(tmp_path: Path) -> None:
    machine, events = build(tmp_path)
    machine.request_relationship(SENDER, RECIPIENT)
    machine.accept_relationship(RECIPIENT, SENDER)
    events.clear()

    machine.block_relationship(RECIPIENT, SENDER)
    machine.block_relationship(RECIPIENT, SENDER)
    assert [name for name, _ in events] == ["relationship.blocked"]

    events.clear()
    machine.unblock_relationship(RECIPIENT, SENDER)
    machine.unblock_relationship(RECIPIENT, SENDER)
    assert [name for name, _ in events] == ["relationship.unblocked"]


def test_unfriend_emits_cancelled(tmp_path: Path) -> None:
    machine, events = build(tmp_path)
    machine.request_relationship(SENDER, RECIPIENT)
    machine.accept_relationship(RECIPIENT, SENDER)
    events.clear()

    machine.remove_relationship(RECIPIENT, SENDER)
    machine.remove_relationship(RECIPIENT, SENDER)

    assert [name for name, _ in events] == ["relationship.cancelled"]


def test_no_ops_emit_nothing(tmp_path: Path) -> None:
    machine, events = build(tmp_path)
    machine.request_relationship(SENDER, RECIPIENT)
    events.clear()

    machine.accept_relationship(SENDER, RECIPIENT)
    machine.deny_relationship(SENDER, RECIPIENT)
    machine.unblock_relationship(SENDER, RECIPIENT)
    machine.request_relationship(SENDER, SENDER)

    assert events == []


def test_named_subscription_receives_payload(tmp_path: Path) -> None:
    machine, _ = build(tmp_path)
    received: list[dict[str, Any]] = []
    machine.event_bus.subscribe(RelationshipEvent.REQUESTED.value, received.append)

    machine.request_relationship(SENDER, RECIPIENT)

    assert len(received) == 1
    assert received[0]["edge"]["recipient"] == RECIPIENT


def test_audit_logger_writes_one_line_per_event(tmp_path: Path) -> None:
    machine, _ = build(tmp_path)
    audit = AuditLogger(tmp_path / "logs" / "audit.jsonl")
    audit.attach(machine.event_bus)

    machine.request_relationship(SENDER, RECIPIENT)
    machine.request_relationship(SENDER, RECIPIENT)
    machine.accept_relationship(RECIPIENT, SENDER)

    lines = (tmp_path / "logs" / "audit.jsonl").read_text(encoding="utf-8").splitlines()
    records = [json.loads(line) for line in lines]
    assert [record["event"] for record in records] == [
        "relationship.requested",
        "relationship.accepted",
    ]
    assert records[0]["actor"] == "user:sender"
    assert records[1]["status"] == "accepted"
    assert records[0]["edge_id"] == records[1]["edge_id"]


def test_failing_handler_does_not_undo_committed_change(tmp_path: Path, caplog) -> None:
    machine, events = build(tmp_path)
    received: list[dict[str, Any]] = []

    def broken(_payload: dict[str, Any]) -> None:
        raise RuntimeError("sink down")

    machine.event_bus.subscribe(RelationshipEvent.REQUESTED.value, broken)
    machine.event_bus.subscribe(RelationshipEvent.REQUESTED.value, received.append)

    with caplog.at_level("ERROR", logger="fg.event_bus"):
        edge = machine.request_relationship(SENDER, RECIPIENT)

    assert edge is not None and edge["status"] is Status.PENDING
    assert len(received) == 1
    assert [name for name, _ in events] == [RelationshipEvent.REQUESTED.value]
    assert "sink down" in caplog.text
    assert machine.request_relationship(SENDER, RECIPIENT) is None
