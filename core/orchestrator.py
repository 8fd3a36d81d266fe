"""Top-level application orchestrator."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from core.event_bus import EventBus
from core.runtime_config import (
    allowed_groups,
    configure_logging,
    ensure_runtime_dirs,
    load_effective_config,
)
from governance.audit_logger import AuditLogger
from relations.entities import EntityProvider
from relations.queries import RelationshipQueries
from relations.state_machine import RelationshipStateMachine
from relations.stores.edge_store import EdgeStore
from relations.stores.group_store import GroupTagStore
from relations.stores.sql_store import SQLStore


@dataclass
class RuntimeBundle:
    """Holds initialized runtime components."""

    config: dict[str, Any]
    sql_store: SQLStore
    event_bus: EventBus
    state_machine: RelationshipStateMachine
    queries: RelationshipQueries
    audit_logger: AuditLogger


class Orchestrator:
    """Creates and wires runtime components for CLI and library use."""

    def __init__(
        self,
        root: Path | None = None,
        config_path: Path | None = None,
        entity_provider: EntityProvider | None = None,
    ) -> None:
        default_root = Path(__file__).resolve().parents[1]
        self.root = (root or default_root).resolve()
        self.config_path = config_path
        self.entity_provider = entity_provider

    def build(self) -> RuntimeBundle:
        config = load_effective_config(self.root, self.config_path)
        configure_logging(config)
        paths = ensure_runtime_dirs(self.root, config)

        sql_store = SQLStore(paths["db_path"])
        sql_store.create_all()

        event_bus = EventBus()
        audit_logger = AuditLogger(paths["audit_log_path"])
        audit_logger.attach(event_bus)

        edge_store = EdgeStore()
        group_store = GroupTagStore(allowed_groups=allowed_groups(config))
        state_machine = RelationshipStateMachine(
            sql_store=sql_store,
            event_bus=event_bus,
            group_store=group_store,
            edge_store=edge_store,
        )
        queries = RelationshipQueries(
            sql_store=sql_store,
            entity_provider=self.entity_provider,
            edge_store=edge_store,
            group_store=group_store,
        )

        return RuntimeBundle(
            config=config,
            sql_store=sql_store,
            event_bus=event_bus,
            state_machine=state_machine,
            queries=queries,
            audit_logger=audit_logger,
        )
