"""Friend group tagging tests."""

from __future__ import annotations

from pathlib import Path

from relations.queries import RelationshipQueries
from relations.state_machine import RelationshipStateMachine
from relations.stores.group_store import GroupTagStore
from relations.stores.sql_store import SQLStore
from relations.types import EntityRef


def user(n: int) -> EntityRef:
    return EntityRef(entity_type="user", entity_id=str(n))


def build(
    tmp_path: Path, allowed_groups: list[str] | None = None
) -> tuple[RelationshipStateMachine, RelationshipQueries]:
    store = SQLStore(db_path=tmp_path / "fg.db")
    store.create_all()
    groups = GroupTagStore(allowed_groups=allowed_groups)
    machine = RelationshipStateMachine(sql_store=store, group_store=groups)
    return machine, RelationshipQueries(sql_store=store, group_store=groups)


def befriend(machine: RelationshipStateMachine, sender: EntityRef, recipient: EntityRef) -> None:
    machine.request_relationship(sender, recipient)
    machine.accept_relationship(recipient, sender)


def test_friend_can_be_added_to_group(tmp_path: Path) -> None:
    machine, queries = build(tmp_path)
    sender, recipient = user(1), user(2)
    befriend(machine, sender, recipient)

    assert machine.tag_group(recipient, sender, "acquaintances") is True
    assert machine.tag_group(sender, recipient, "family") is True
    assert machine.tag_group(sender, recipient, "family") is False

    assert queries.get_friends(sender, 0, "family") == [recipient]
    assert queries.get_friends(recipient, 0, "acquaintances") == [sender]


def test_tags_are_per_owner(tmp_path: Path) -> None:
    machine, queries = build(tmp_path)
    befriend(machine, user(1), user(2))

    machine.tag_group(user(2), user(1), "family")

    assert queries.get_friends(user(2), 0, "family") == [user(1)]
    assert queries.get_friends(user(1), 0, "family") == []
    assert queries.get_groups(user(2), user(1)) == ["family"]
    assert queries.get_groups(user(1), user(2)) == []


def test_non_friend_cannot_be_grouped(tmp_path: Path) -> None:
    machine, queries = build(tmp_path)
    sender, stranger = user(1), user(2)

    assert machine.tag_group(sender, stranger, "family") is False
    assert queries.get_friends(sender, 0, "family") == []

    machine.request_relationship(sender, stranger)
    assert machine.tag_group(sender, stranger, "family") is False


def test_friend_can_be_removed_from_one_group(tmp_path: Path) -> None:
    machine, queries = build(tmp_path)
    befriend(machine, user(1), user(2))
    machine.tag_group(user(2), user(1), "acquaintances")
    machine.tag_group(user(2), user(1), "family")

    assert machine.untag_group(user(2), user(1), "acquaintances") == 1

    assert queries.get_friends(user(1), 0, "acquaintances") == []
    assert queries.get_friends(user(2), 0, "acquaintances") == []
    assert len(queries.get_friends(user(2), 0, "family")) == 1


def test_ungrouping_missing_tag_returns_zero(tmp_path: Path) -> None:
    machine, _ = build(tmp_path)
    machine.request_relationship(user(1), user(2))

    assert machine.untag_group(user(2), user(1), "acquaintances") == 0
    assert machine.untag_group(user(3), user(1), "acquaintances") == 0


def test_friend_can_be_removed_from_all_groups(tmp_path: Path) -> None:
    machine, queries = build(tmp_path)
    befriend(machine, user(1), user(2))
    machine.tag_group(user(1), user(2), "family")
    machine.tag_group(user(1), user(2), "acquaintances")

    assert machine.untag_group(user(1), user(2)) == 2

    assert queries.get_friends(user(1), 0, "family") == []
    assert queries.get_friends(user(1), 0, "acquaintances") == []


def test_get_friends_filtered_by_group(tmp_path: Path) -> None:
    machine, queries = build(tmp_path)
    sender = user(0)
    for n in range(1, 11):
        befriend(machine, sender, user(n))
        if n % 2 == 0:
            machine.tag_group(sender, user(n), "family")

    assert len(queries.get_friends(sender, 0, "family")) == 5
    assert len(queries.get_friends(sender)) == 10


def test_all_friendships_filtered_by_group(tmp_path: Path) -> None:
    machine, queries = build(tmp_path)
    sender = user(0)
    for n in range(1, 6):
        machine.request_relationship(sender, user(n))
        if n < 5:
            machine.accept_relationship(user(n), sender)
            machine.tag_group(sender, user(n), "acquaintances" if n < 4 else "family")
        else:
            machine.deny_relationship(user(n), sender)

    assert len(queries.get_all_friendships(sender, "acquaintances")) == 3
    assert len(queries.get_all_friendships(sender, "family")) == 1
    assert queries.get_all_friendships(sender, "close_friends") == []
    assert queries.get_all_friendships(sender, "whatever") == []
    assert len(queries.get_all_friendships(sender)) == 5


def test_accepted_friendships_by_group(tmp_path: Path) -> None:
    machine, queries = build(tmp_path)
    sender = user(0)
    for n in range(1, 5):
        machine.request_relationship(sender, user(n))
    machine.accept_relationship(user(1), sender)
    machine.accept_relationship(user(2), sender)
    machine.deny_relationship(user(3), sender)
    machine.tag_group(sender, user(1), "family")
    machine.tag_group(sender, user(2), "family")

    assert len(queries.get_accepted_friendships(sender, "family")) == 2


def test_friends_count_by_group(tmp_path: Path) -> None:
    machine, queries = build(tmp_path)
    sender = user(0)
    for n in range(1, 6):
        befriend(machine, sender, user(n))
        machine.tag_group(sender, user(n), "acquaintances")

    assert queries.get_friends_count(sender, "acquaintances") == 5
    assert queries.get_friends_count(sender, "family") == 0
    assert queries.get_friends_count(user(5), "acquaintances") == 0
    assert queries.get_friends_count(user(5)) == 1


def test_friends_by_group_per_page(tmp_path: Path) -> None:
    machine, queries = build(tmp_path)
    sender = user(0)
    for n in range(1, 7):
        machine.request_relationship(sender, user(n))
    for n in (1, 2, 4, 5):
        machine.accept_relationship(user(n), sender)
    machine.deny_relationship(user(3), sender)
    for n in (1, 2, 4, 5):
        machine.tag_group(sender, user(n), "acquaintances")
    machine.tag_group(sender, user(1), "close_friends")
    machine.tag_group(sender, user(4), "close_friends")
    machine.tag_group(sender, user(5), "family")

    assert len(queries.get_friends(sender, 2, "acquaintances")) == 2
    assert len(queries.get_friends(sender, 0, "acquaintances")) == 4
    assert len(queries.get_friends(sender, 10, "acquaintances")) == 4
    assert len(queries.get_friends(sender, 0, "close_friends")) == 2
    assert len(queries.get_friends(sender, 1, "close_friends")) == 1
    assert len(queries.get_friends(sender, 0, "family")) == 1


def test_unfriend_drops_tags(tmp_path: Path) -> None:
    machine, queries = build(tmp_path)
    befriend(machine, user(1), user(2))
    machine.tag_group(user(1), user(2), "family")
    machine.tag_group(user(2), user(1), "family")

    machine.remove_relationship(user(2), user(1))
    befriend(machine, user(1), user(2))

    assert queries.get_friends(user(1), 0, "family") == []
    assert queries.get_groups(user(2), user(1)) == []


def test_block_drops_tags(tmp_path: Path) -> None:
    machine, queries = build(tmp_path)
    befriend(machine, user(1), user(2))
    machine.tag_group(user(1), user(2), "family")

    machine.block_relationship(user(2), user(1))

    assert queries.get_groups(user(1), user(2)) == []
    assert queries.get_blocked_friendships(user(1), "family") == []


def test_group_vocabulary_limits_tagging(tmp_path: Path) -> None:
    machine, queries = build(tmp_path, allowed_groups=["family", "acquaintances"])
    befriend(machine, user(1), user(2))

    assert machine.tag_group(user(1), user(2), "family") is True
    assert machine.tag_group(user(1), user(2), "coworkers") is False
    assert queries.get_friends(user(1), 0, "coworkers") == []
