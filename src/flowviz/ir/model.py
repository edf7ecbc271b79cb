"""Flow records: nodes, edges, and flow-level metadata.

These are plain value records rebuilt on every parse. The relation fields
on ``FlowNode`` are filled by :func:`flowviz.ir.relations.normalize`, and
``x``/``y`` by :func:`flowviz.layout.layout`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from flowviz.types import EdgeType, NodeType

START_NODE_ID = "START_NODE"
START_IMMEDIATE_END_ID = "START_IMMEDIATE_END"
END_NODE_PREFIX = "END_NODE_"


@dataclass
class FlowNode:
    id: str
    type: NodeType
    label: str
    width: int
    height: int
    data: dict[str, Any] = field(default_factory=dict)
    x: float | None = None
    y: float | None = None
    next: str | None = None
    prev: str | None = None
    parent: str | None = None
    child_index: int | None = None
    children: list[str] | None = None
    fault: str | None = None
    incoming_goto: list[str] | None = None
    is_terminal: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the external node record."""
        out: dict[str, Any] = {
            "id": self.id,
            "type": self.type.value,
            "label": self.label,
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
            "data": self.data,
        }
        optional = {
            "next": self.next,
            "prev": self.prev,
            "parent": self.parent,
            "childIndex": self.child_index,
            "children": self.children,
            "fault": self.fault,
            "incomingGoTo": self.incoming_goto,
        }
        out.update({k: v for k, v in optional.items() if v is not None})
        out["isTerminal"] = self.is_terminal
        return out


@dataclass
class FlowEdge:
    id: str
    source: str
    target: str
    type: EdgeType = EdgeType.NORMAL
    label: str | None = None
    is_goto: bool = False

    @property
    def is_fault(self) -> bool:
        return self.type.is_fault

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the external edge record."""
        out: dict[str, Any] = {
            "id": self.id,
            "source": self.source,
            "target": self.target,
            "type": self.type.value,
        }
        if self.label is not None:
            out["label"] = self.label
        if self.is_goto:
            out["isGoTo"] = True
        return out


@dataclass
class FlowMetadata:
    label: str | None = None
    api_version: str | None = None
    process_type: str | None = None
    trigger_type: str | None = None
    object: str | None = None
    description: str | None = None
    status: str | None = None
    environments: str | None = None
    interview_label: str | None = None
    run_in_mode: str | None = None
    record_trigger_type: str | None = None

    def to_dict(self) -> dict[str, str]:
        keys = {
            "label": self.label,
            "apiVersion": self.api_version,
            "processType": self.process_type,
            "triggerType": self.trigger_type,
            "object": self.object,
            "description": self.description,
            "status": self.status,
            "environments": self.environments,
            "interviewLabel": self.interview_label,
            "runInMode": self.run_in_mode,
            "recordTriggerType": self.record_trigger_type,
        }
        return {k: v for k, v in keys.items() if v is not None}


@dataclass
class ParsedFlow:
    """Self-contained builder output: everything later passes need."""

    nodes: list[FlowNode]
    edges: list[FlowEdge]
    metadata: FlowMetadata = field(default_factory=FlowMetadata)

    def node(self, node_id: str) -> FlowNode | None:
        for n in self.nodes:
            if n.id == node_id:
                return n
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "nodes": [n.to_dict() for n in self.nodes],
            "edges": [e.to_dict() for e in self.edges],
            "metadata": self.metadata.to_dict(),
        }
