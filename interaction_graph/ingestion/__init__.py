"""
Ingestion Layer

RESPONSIBILITY: Parse the external graph payload into a validated GraphModel
ALLOWED INPUTS: payload dict, JSON file path
OUTPUTS: GraphModel (immutable)

WHAT THIS LAYER MUST NOT DO:
============================
- Filter edges or compute views
- Position nodes
- Drop or repair malformed records (they are rejected with the record)

BOUNDARY ENFORCEMENT:
=====================
Only the contracts module and the grouper are imported. Missing groups are
backfilled once here, so downstream layers always see labelled nodes.

PAYLOAD FORMAT:
===============
{
  "users":       [{"id": int, "name": str, "group"?: int}],
  "links":       [{"user1": int, "user2": int, "assignmentId": int, "value"?: str | number}],
  "assignments": [{"assignmentId": int, "title": str}]
}
"""

from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union
import hashlib
import json
import math

# ONLY import from contracts (and the pure grouper)
from ..contracts.base import DataIntegrityError, ErrorCode, Timestamp
from ..contracts.events import AuditEventType, AuditLogEntry
from ..contracts.graph import DEFAULT_EDGE_WEIGHT, Assignment, Edge, EdgeWeight, GraphModel, Node
from ..core.grouping import assign_groups
from .synthetic import generate_payload


# =============================================================================
# CONFIGURATION
# =============================================================================

@dataclass
class IngestionConfig:
    """Configuration for ingestion engine."""
    default_edge_weight: EdgeWeight = DEFAULT_EDGE_WEIGHT
    backfill_missing_groups: bool = True


# =============================================================================
# FIELD VALIDATION
# =============================================================================

def _malformed(message: str, record: Any, **context: Any) -> DataIntegrityError:
    return DataIntegrityError.build(ErrorCode.MALFORMED_RECORD, message, record=record, **context)


def _require(record: Any, key: str, kind: str, index: int) -> Any:
    if not isinstance(record, Mapping):
        raise _malformed(f"{kind} #{index} is not an object", record, index=index)
    if key not in record:
        raise _malformed(f"{kind} #{index} is missing required key '{key}'", record, key=key, index=index)
    return record[key]


def _as_id(value: Any, record: Any, key: str, kind: str, index: int) -> int:
    # bool is an int subclass but never a valid id
    if isinstance(value, bool) or not isinstance(value, int):
        raise _malformed(
            f"{kind} #{index} has non-numeric {key} {value!r}", record, key=key, index=index
        )
    return value


def _as_weight(value: Any, record: Any, index: int) -> EdgeWeight:
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        raise _malformed(f"link #{index} has unsupported value {value!r}", record, index=index)
    if isinstance(value, float) and not math.isfinite(value):
        raise DataIntegrityError.build(
            ErrorCode.INVALID_DIMENSION,
            f"link #{index} has non-finite value {value!r}",
            record=record,
            index=index
        )
    return value


# =============================================================================
# INGESTION ENGINE
# =============================================================================

class IngestionEngine:
    """
    Turns raw payloads into GraphModel instances.

    BOUNDARY ENFORCEMENT:
    - Every record is validated before any model is built
    - The first malformed record aborts the load with DataIntegrityError
    """

    def __init__(self, config: Optional[IngestionConfig] = None):
        self._config = config or IngestionConfig()
        self._audit_log: List[AuditLogEntry] = []

    @property
    def config(self) -> IngestionConfig:
        return self._config

    def load_json_file(self, path: Union[str, Path]) -> GraphModel:
        """Read and ingest a JSON payload file."""
        file_path = Path(path)
        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                payload = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            self._log_audit(
                action="payload_rejected",
                entity_id=str(file_path),
                metadata=(("error", str(exc)),)
            )
            raise _malformed(f"{file_path} is not valid UTF-8 JSON: {exc}", str(file_path)) from exc

        return self.load_payload(payload, source=str(file_path))

    def load_payload(self, payload: Mapping[str, Any], source: str = "memory") -> GraphModel:
        """Validate a payload dict and build the GraphModel."""
        try:
            model = self._build(payload)
        except DataIntegrityError as exc:
            self._log_audit(
                action="payload_rejected",
                entity_id=source,
                metadata=(
                    ("code", exc.code.name),
                    ("error", str(exc)),
                )
            )
            raise

        self._log_audit(
            action="payload_loaded",
            entity_id=source,
            entity_type="graph",
            metadata=(
                ("nodes", str(len(model.nodes))),
                ("edges", str(len(model.edges))),
                ("assignments", str(len(model.assignments))),
            )
        )
        return model

    # =========================================================================
    # PARSING
    # =========================================================================

    def _build(self, payload: Mapping[str, Any]) -> GraphModel:
        if not isinstance(payload, Mapping):
            raise _malformed("Payload must be a JSON object", payload)

        users = self._section(payload, "users", required=True)
        links = self._section(payload, "links", required=True)
        assignments = self._section(payload, "assignments", required=False)

        nodes = [self._parse_user(record, i) for i, record in enumerate(users)]
        edges = [self._parse_link(record, i) for i, record in enumerate(links)]
        parsed_assignments = [self._parse_assignment(record, i) for i, record in enumerate(assignments)]

        model = GraphModel(nodes=nodes, edges=edges, assignments=parsed_assignments)

        if self._config.backfill_missing_groups and any(not n.has_group for n in model.nodes):
            model = model.with_nodes(self._backfill_groups(model))
        return model

    @staticmethod
    def _section(payload: Mapping[str, Any], key: str, required: bool) -> Sequence[Any]:
        if key not in payload:
            if required:
                raise _malformed(f"Payload is missing required key '{key}'", payload, key=key)
            return []
        section = payload[key]
        if not isinstance(section, list):
            raise _malformed(f"Payload key '{key}' must be a list", section, key=key)
        return section

    def _parse_user(self, record: Any, index: int) -> Node:
        node_id = _as_id(_require(record, "id", "user", index), record, "id", "user", index)
        name = _require(record, "name", "user", index)
        if not isinstance(name, str):
            raise _malformed(f"user #{index} has non-string name {name!r}", record, index=index)

        group = 0
        if record.get("group") is not None:
            group = _as_id(record["group"], record, "group", "user", index)
            if group < 1:
                raise DataIntegrityError.build(
                    ErrorCode.INVALID_DIMENSION,
                    f"user #{index} has group {group}; groups are 1-based",
                    record=record,
                    index=index
                )
        return Node(node_id=node_id, display_name=name, group=group)

    def _parse_link(self, record: Any, index: int) -> Edge:
        endpoint_a = _as_id(_require(record, "user1", "link", index), record, "user1", "link", index)
        endpoint_b = _as_id(_require(record, "user2", "link", index), record, "user2", "link", index)
        assignment_id = _as_id(
            _require(record, "assignmentId", "link", index), record, "assignmentId", "link", index
        )
        weight = self._config.default_edge_weight
        if record.get("value") is not None:
            weight = _as_weight(record["value"], record, index)
        return Edge(
            endpoint_a=endpoint_a,
            endpoint_b=endpoint_b,
            assignment_id=assignment_id,
            weight=weight
        )

    @staticmethod
    def _parse_assignment(record: Any, index: int) -> Assignment:
        assignment_id = _as_id(
            _require(record, "assignmentId", "assignment", index), record, "assignmentId", "assignment", index
        )
        title = _require(record, "title", "assignment", index)
        if not isinstance(title, str):
            raise _malformed(f"assignment #{index} has non-string title {title!r}", record, index=index)
        return Assignment(assignment_id=assignment_id, title=title)

    # =========================================================================
    # GROUP BACKFILL
    # =========================================================================

    def _backfill_groups(self, model: GraphModel) -> List[Node]:
        """
        Label unlabelled nodes by connected component.

        Components holding unlabelled nodes are numbered after the largest
        supplied group, in order of first encounter.
        """
        components = assign_groups(model.node_ids, model.edges)
        offset = max((n.group for n in model.nodes), default=0)

        renumbered: Dict[int, int] = {}
        nodes = []
        for node in model.nodes:
            if node.has_group:
                nodes.append(node)
                continue
            component = components[node.node_id]
            if component not in renumbered:
                renumbered[component] = offset + len(renumbered) + 1
            nodes.append(node.with_group(renumbered[component]))

        backfilled = sum(1 for n in model.nodes if not n.has_group)
        self._log_audit(
            action="groups_backfilled",
            entity_type="node",
            event_type=AuditEventType.GROUPING,
            layer="grouping",
            metadata=(
                ("nodes_backfilled", str(backfilled)),
                ("groups_created", str(len(renumbered))),
                ("group_offset", str(offset)),
            )
        )
        return nodes

    # =========================================================================
    # AUDIT
    # =========================================================================

    def _log_audit(
        self,
        action: str,
        entity_id: Optional[str] = None,
        entity_type: Optional[str] = None,
        metadata: tuple = (),
        event_type: AuditEventType = AuditEventType.INGESTION,
        layer: str = "ingestion"
    ):
        """Add entry to internal audit log."""
        entry_id = hashlib.sha256(
            f"{layer}_{action}|{Timestamp.now().value.timestamp()}|{len(self._audit_log)}".encode()
        ).hexdigest()[:16]

        entry = AuditLogEntry(
            entry_id=f"audit_{entry_id}",
            event_type=event_type,
            timestamp=Timestamp.now(),
            layer=layer,
            action=action,
            entity_id=entity_id,
            entity_type=entity_type,
            metadata=metadata
        )
        self._audit_log.append(entry)

    def get_audit_log(self) -> List[AuditLogEntry]:
        """Return copy of audit log entries."""
        return list(self._audit_log)


def load_payload(payload: Mapping[str, Any], config: Optional[IngestionConfig] = None) -> GraphModel:
    """Convenience wrapper around IngestionEngine.load_payload."""
    return IngestionEngine(config).load_payload(payload)


def load_json_file(path: Union[str, Path], config: Optional[IngestionConfig] = None) -> GraphModel:
    """Convenience wrapper around IngestionEngine.load_json_file."""
    return IngestionEngine(config).load_json_file(path)


__all__ = [
    'IngestionConfig',
    'IngestionEngine',
    'load_payload',
    'load_json_file',
    'generate_payload',
]
