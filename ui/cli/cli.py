"""CLI entrypoint for friendgraph."""

from __future__ import annotations

from typing import Optional

import typer

from ui.cli import commands

app = typer.Typer(help="Relationship graph admin console")
group_app = typer.Typer(help="Friend group commands")
friends_app = typer.Typer(help="Relationship queries")
config_app = typer.Typer(help="Configuration commands")

ACTOR = typer.Argument(..., help="Acting entity as type:id")
OTHER = typer.Argument(..., help="Counterpart entity as type:id")


@app.command("request")
def request_cmd(actor: str = ACTOR, other: str = OTHER) -> None:
    """Send a friend request."""
    commands.request(actor=actor, other=other)


@app.command("accept")
def accept_cmd(actor: str = ACTOR, other: str = OTHER) -> None:
    """Accept a pending friend request."""
    commands.accept(actor=actor, other=other)


@app.command("deny")
def deny_cmd(actor: str = ACTOR, other: str = OTHER) -> None:
    """Deny a pending friend request."""
    commands.deny(actor=actor, other=other)


@app.command("block")
def block_cmd(actor: str = ACTOR, other: str = OTHER) -> None:
    """Block another entity."""
    commands.block(actor=actor, other=other)


@app.command("unblock")
def unblock_cmd(actor: str = ACTOR, other: str = OTHER) -> None:
    """Unblock another entity."""
    commands.unblock(actor=actor, other=other)


@app.command("remove")
def remove_cmd(actor: str = ACTOR, other: str = OTHER) -> None:
    """Cancel a request or unfriend."""
    commands.remove(actor=actor, other=other)


@group_app.command("add")
def group_add_cmd(
    actor: str = ACTOR,
    other: str = OTHER,
    label: str = typer.Argument(..., help="Group label"),
) -> None:
    """Add a friend to a group."""
    commands.group_add(actor=actor, other=other, label=label)


@group_app.command("remove")
def group_remove_cmd(
    actor: str = ACTOR,
    other: str = OTHER,
    label: Optional[str] = typer.Option(None, "--label", help="Only remove this label"),
) -> None:
    """Remove a friend from one group or all groups."""
    commands.group_remove(actor=actor, other=other, label=label)


@friends_app.command("list")
def friends_list_cmd(
    actor: str = ACTOR,
    per_page: int = typer.Option(0, "--per-page", min=0),
    page: int = typer.Option(1, "--page", min=1),
    group: Optional[str] = typer.Option(None, "--group"),
) -> None:
    """List friends."""
    commands.friends_list(actor=actor, per_page=per_page, page=page, group=group)


@friends_app.command("count")
def friends_count_cmd(actor: str = ACTOR, group: Optional[str] = typer.Option(None, "--group")) -> None:
    """Count friends."""
    commands.friends_count(actor=actor, group=group)


@friends_app.command("requests")
def friends_requests_cmd(actor: str = ACTOR) -> None:
    """List incoming friend requests."""
    commands.friends_requests(actor=actor)


@friends_app.command("mutual")
def friends_mutual_cmd(
    actor: str = ACTOR,
    other: str = OTHER,
    per_page: int = typer.Option(0, "--per-page", min=0),
) -> None:
    """List mutual friends."""
    commands.friends_mutual(actor=actor, other=other, per_page=per_page)


@friends_app.command("fof")
def friends_of_friends_cmd(actor: str = ACTOR, per_page: int = typer.Option(0, "--per-page", min=0)) -> None:
    """List friends of friends."""
    commands.friends_of_friends(actor=actor, per_page=per_page)


@config_app.command("show")
def config_show_cmd() -> None:
    """Show effective configuration."""
    commands.config_show()


app.add_typer(group_app, name="group")
app.add_typer(friends_app, name="friends")
app.add_typer(config_app, name="config")


def main() -> None:
    """Console script entrypoint."""
    app()


if __name__ == "__main__":
    main()
