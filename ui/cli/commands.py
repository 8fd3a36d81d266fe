"""Typer command handlers."""

from __future__ import annotations

import json
import logging
from enum import Enum
from pathlib import Path

import typer
from pydantic import BaseModel

from core.orchestrator import Orchestrator, RuntimeBundle
from relations.types.entity import EntityRef

logger = logging.getLogger("fg.cli")


def _runtime(root: Path | None = None) -> RuntimeBundle:
    bundle = Orchestrator(root=root).build()
    return bundle


def _entity(key: str) -> EntityRef:
    try:
        return EntityRef.from_key(key)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc


def _report(op: str, result: object) -> None:
    if not result:
        logger.debug("%s changed nothing", op)
        typer.echo(f"{op}: no change")
        return
    typer.echo(json.dumps(_json_safe(result), indent=2))


def request(actor: str, other: str) -> None:
    """Send a friend request."""
    _report("request", _runtime().state_machine.request_relationship(_entity(actor), _entity(other)))


def accept(actor: str, other: str) -> None:
    """Accept a pending request from ``other``."""
    _report("accept", _runtime().state_machine.accept_relationship(_entity(actor), _entity(other)))


def deny(actor: str, other: str) -> None:
    """Deny a pending request from ``other``."""
    _report("deny", _runtime().state_machine.deny_relationship(_entity(actor), _entity(other)))


def block(actor: str, other: str) -> None:
    """Block ``other``."""
    _report("block", _runtime().state_machine.block_relationship(_entity(actor), _entity(other)))


def unblock(actor: str, other: str) -> None:
    """Lift the block ``actor`` holds on ``other``."""
    _report("unblock", _runtime().state_machine.unblock_relationship(_entity(actor), _entity(other)))


def remove(actor: str, other: str) -> None:
    """Remove the relationship in any status."""
    removed = _runtime().state_machine.remove_relationship(_entity(actor), _entity(other))
    typer.echo(f"removed: {removed}")


def group_add(actor: str, other: str, label: str) -> None:
    """Tag a friend with a group label."""
    added = _runtime().state_machine.tag_group(_entity(actor), _entity(other), label)
    typer.echo(f"grouped: {added}")


def group_remove(actor: str, other: str, label: str | None) -> None:
    """Remove one group label, or all of them."""
    removed = _runtime().state_machine.untag_group(_entity(actor), _entity(other), label)
    typer.echo(f"ungrouped: {removed}")


def friends_list(actor: str, per_page: int, page: int, group: str | None) -> None:
    """List friends of ``actor``."""
    friends = _runtime().queries.get_friends(_entity(actor), per_page=per_page, group=group, page=page)
    typer.echo(json.dumps(_json_safe(friends), indent=2))


def friends_count(actor: str, group: str | None) -> None:
    typer.echo(str(_runtime().queries.get_friends_count(_entity(actor), group=group)))


def friends_requests(actor: str) -> None:
    """List pending requests addressed to ``actor``."""
    requests = _runtime().queries.get_friend_requests(_entity(actor))
    typer.echo(json.dumps(_json_safe(requests), indent=2))


def friends_mutual(actor: str, other: str, per_page: int) -> None:
    queries = _runtime().queries
    mutual = queries.get_mutual_friends(_entity(actor), _entity(other), per_page=per_page)
    typer.echo(json.dumps(_json_safe(mutual), indent=2))


def friends_of_friends(actor: str, per_page: int) -> None:
    fof = _runtime().queries.get_friends_of_friends(_entity(actor), per_page=per_page)
    typer.echo(json.dumps(_json_safe(fof), indent=2))


def config_show() -> None:
    """Show effective runtime config."""
    bundle = _runtime()
    typer.echo(json.dumps(_json_safe(bundle.config), indent=2))


def _json_safe(payload: object) -> object:
    """Convert datetimes, enums and entity refs to JSON-friendly values."""
    if isinstance(payload, dict):
        return {k: _json_safe(v) for k, v in payload.items()}
    if isinstance(payload, list):
        return [_json_safe(v) for v in payload]
    if isinstance(payload, EntityRef):
        return payload.key
    if isinstance(payload, BaseModel):
        return _json_safe(payload.model_dump())
    if isinstance(payload, Enum):
        return payload.value
    if hasattr(payload, "isoformat"):
        return payload.isoformat()
    return payload
