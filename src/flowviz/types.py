"""Shared type definitions for flowviz.

Enums used across the builder, the IR passes, and the layout engine.
Enum values are the strings of the external node/edge records.
"""

from __future__ import annotations

from enum import Enum, auto


class NodeType(Enum):
    START = "START"
    SCREEN = "SCREEN"
    DECISION = "DECISION"
    ASSIGNMENT = "ASSIGNMENT"
    LOOP = "LOOP"
    RECORD_CREATE = "RECORD_CREATE"
    RECORD_UPDATE = "RECORD_UPDATE"
    RECORD_LOOKUP = "RECORD_LOOKUP"
    RECORD_DELETE = "RECORD_DELETE"
    ACTION = "ACTION"
    SUBFLOW = "SUBFLOW"
    WAIT = "WAIT"
    CUSTOM_ERROR = "CUSTOM_ERROR"
    END = "END"
    # internal markers
    ROOT = "ROOT"
    BRANCH = "BRANCH"
    GROUP = "GROUP"
    # extra element categories
    ORCHESTRATED_STAGE = "ORCHESTRATED_STAGE"
    STEP = "STEP"
    TRANSFORM = "TRANSFORM"
    COLLECTION_PROCESSOR = "COLLECTION_PROCESSOR"
    # action sub-variants
    APEX_CALL = "APEX_CALL"
    EMAIL_ALERT = "EMAIL_ALERT"
    SEND_EMAIL = "SEND_EMAIL"
    POST_TO_CHATTER = "POST_TO_CHATTER"
    SUBMIT_FOR_APPROVAL = "SUBMIT_FOR_APPROVAL"
    CREATE_APPROVAL_REQUEST = "CREATE_APPROVAL_REQUEST"
    EXTERNAL_SERVICE = "EXTERNAL_SERVICE"
    QUICK_ACTION = "QUICK_ACTION"


class EdgeType(Enum):
    NORMAL = "normal"
    FAULT = "fault"
    LOOP_NEXT = "loop-next"  # For Each
    LOOP_END = "loop-end"  # After Last
    FAULT_END = "fault-end"
    GOTO = "goto"

    @property
    def is_fault(self) -> bool:
        return self in (EdgeType.FAULT, EdgeType.FAULT_END)


class BranchKind(Enum):
    LINEAR = auto()
    BRANCHING = auto()
    LOOP = auto()


def branch_kind(node_type: NodeType, primary_count: int) -> BranchKind:
    """Classify how a node spreads its non-fault outgoing edges.

    ``primary_count`` is the number of non-fault outgoing edges; it only
    matters for Start, which branches when it carries scheduled paths.
    """
    if node_type in (NodeType.DECISION, NodeType.WAIT):
        return BranchKind.BRANCHING
    if node_type == NodeType.START:
        return BranchKind.BRANCHING if primary_count > 1 else BranchKind.LINEAR
    if node_type == NodeType.LOOP:
        return BranchKind.LOOP
    return BranchKind.LINEAR
