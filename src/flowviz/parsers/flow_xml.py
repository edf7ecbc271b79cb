"""Flow XML parser: Salesforce Flow metadata to raw nodes, edges, and metadata.

One node per recognized element (keyed by the element's ``<name>``), a single
synthetic Start node, and one edge per connector. Edge ids are
``{source}-{target}[-{discriminator}]`` so repeated parses of identical XML
produce identical ids. Unknown tags are skipped.
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from typing import Any

from flowviz.config import NODE_HEIGHT, NODE_WIDTH, START_NODE_TRIGGER_HEIGHT, START_NODE_WIDTH
from flowviz.errors import ParseError, ValidationError
from flowviz.ir.model import START_IMMEDIATE_END_ID, START_NODE_ID, FlowEdge, FlowMetadata, FlowNode, ParsedFlow
from flowviz.types import EdgeType, NodeType

logger = logging.getLogger(__name__)

# ─── Element categories ──────────────────────────────────────────────────────

TAG_TO_NODE_TYPE: dict[str, NodeType] = {
    "screens": NodeType.SCREEN,
    "decisions": NodeType.DECISION,
    "assignments": NodeType.ASSIGNMENT,
    "loops": NodeType.LOOP,
    "recordCreates": NodeType.RECORD_CREATE,
    "recordUpdates": NodeType.RECORD_UPDATE,
    "recordLookups": NodeType.RECORD_LOOKUP,
    "recordDeletes": NodeType.RECORD_DELETE,
    "actionCalls": NodeType.ACTION,
    "subflows": NodeType.SUBFLOW,
    "waits": NodeType.WAIT,
    "customErrors": NodeType.CUSTOM_ERROR,
    "apexPluginCalls": NodeType.APEX_CALL,
    "transforms": NodeType.TRANSFORM,
    "collectionProcessors": NodeType.COLLECTION_PROCESSOR,
    "steps": NodeType.STEP,
    "orchestratedStages": NodeType.ORCHESTRATED_STAGE,
}

ACTION_TYPE_TO_NODE_TYPE: dict[str, NodeType] = {
    "emailAlert": NodeType.EMAIL_ALERT,
    "quickAction": NodeType.QUICK_ACTION,
    "apex": NodeType.APEX_CALL,
    "submit": NodeType.SUBMIT_FOR_APPROVAL,
    "externalService": NodeType.EXTERNAL_SERVICE,
    "chatterPost": NodeType.POST_TO_CHATTER,
    "sendEmail": NodeType.SEND_EMAIL,
}

START_LABELS: dict[str, str] = {
    "RecordAfterSave": "Record-Triggered Flow",
    "RecordBeforeSave": "Record-Triggered Flow",
    "Scheduled": "Scheduled Flow",
    "PlatformEvent": "Platform Event-Triggered Flow",
}

_METADATA_TAGS: dict[str, str] = {
    "label": "label",
    "apiVersion": "api_version",
    "processType": "process_type",
    "description": "description",
    "status": "status",
    "environments": "environments",
    "interviewLabel": "interview_label",
    "runInMode": "run_in_mode",
}

_VALUE_TAGS = ("stringValue", "elementReference", "numberValue", "booleanValue")

RUN_IMMEDIATELY_LABEL = "Run Immediately"
DEFAULT_OUTCOME_LABEL = "Default Outcome"
WAIT_DEFAULT_LABEL = "Default"


# ─── Element helpers ─────────────────────────────────────────────────────────


def _local(tag: object) -> str:
    if not isinstance(tag, str):
        return ""
    return tag.rsplit("}", 1)[-1]


def _children(el: ET.Element, tag: str) -> list[ET.Element]:
    return [child for child in el if _local(child.tag) == tag]


def _child(el: ET.Element, tag: str) -> ET.Element | None:
    for child in el:
        if _local(child.tag) == tag:
            return child
    return None


def _text(el: ET.Element, tag: str) -> str:
    child = _child(el, tag)
    if child is None or child.text is None:
        return ""
    return child.text.strip()


def _flag(el: ET.Element, tag: str) -> bool:
    return _text(el, tag).lower() == "true"


def _value_text(value_el: ET.Element | None) -> str:
    """Resolve a typed ``<value>``/``<rightValue>`` element to display text."""
    if value_el is None:
        return ""
    for tag in _VALUE_TAGS:
        text = _text(value_el, tag)
        if text:
            return text
    return "".join(value_el.itertext()).strip()


@dataclass
class _Connector:
    target: str | None
    is_goto: bool


def _parse_connector(el: ET.Element) -> _Connector:
    target = _text(el, "targetReference") or None
    return _Connector(target=target, is_goto=_flag(el, "isGoTo"))


def _connector_type(conn: _Connector, default: EdgeType = EdgeType.NORMAL) -> EdgeType:
    return EdgeType.GOTO if conn.is_goto else default


# ─── Element payloads ────────────────────────────────────────────────────────


def _parse_conditions(el: ET.Element, tag: str, field_tag: str, value_tag: str) -> list[dict[str, str]]:
    return [
        {
            "field": _text(item, field_tag),
            "operator": _text(item, "operator"),
            "value": _value_text(_child(item, value_tag)),
        }
        for item in _children(el, tag)
    ]


def _parse_filters(el: ET.Element) -> list[dict[str, str]]:
    return _parse_conditions(el, "filters", "field", "value")


def _parse_input_assignments(el: ET.Element) -> list[dict[str, str]]:
    return [
        {"field": _text(item, "field") or _text(item, "name"), "value": _value_text(_child(item, "value"))}
        for item in _children(el, "inputAssignments") + _children(el, "inputParameters")
    ]


def _parse_assignment_items(el: ET.Element) -> list[dict[str, str]]:
    return _parse_conditions(el, "assignmentItems", "assignToReference", "value")


def _parse_screen_fields(el: ET.Element) -> list[dict[str, Any]]:
    return [
        {
            "name": _text(f, "name"),
            "type": _text(f, "fieldType"),
            "label": _text(f, "fieldText") or _text(f, "name"),
            "required": _flag(f, "isRequired"),
        }
        for f in _children(el, "fields")
    ]


def _scheduled_path_label(path_el: ET.Element, index: int) -> str:
    label = _text(path_el, "label") or _text(path_el, "name")
    if label:
        return label
    path_type = _text(path_el, "pathType")
    if path_type == "AsyncAfterCommit":
        return "Run Asynchronously"
    if path_type == "Scheduled":
        return "Scheduled Path"
    return f"Path {index + 1}"


def _parse_scheduled_paths(start_el: ET.Element) -> list[dict[str, Any]]:
    paths = []
    for i, path in enumerate(_children(start_el, "scheduledPaths")):
        offset = _text(path, "offsetNumber")
        paths.append(
            {
                "name": _text(path, "name"),
                "label": _scheduled_path_label(path, i),
                "path_type": _text(path, "pathType"),
                "time_offset": int(offset) if offset.lstrip("-").isdigit() else None,
                "time_offset_unit": _text(path, "offsetUnit") or None,
            }
        )
    return paths


def _element_data(el: ET.Element, node_type: NodeType) -> dict[str, Any]:
    data: dict[str, Any] = {
        "xml_element": ET.tostring(el, encoding="unicode"),
        "object": _text(el, "object"),
        "description": _text(el, "description"),
    }
    if node_type == NodeType.ASSIGNMENT:
        data["assignment_items"] = _parse_assignment_items(el)
    elif node_type in (NodeType.RECORD_CREATE, NodeType.RECORD_UPDATE):
        data["input_assignments"] = _parse_input_assignments(el)
        data["input_reference"] = _text(el, "inputReference")
        data["store_output_automatically"] = _flag(el, "storeOutputAutomatically")
        if node_type == NodeType.RECORD_UPDATE:
            data["filters"] = _parse_filters(el)
    elif node_type == NodeType.RECORD_LOOKUP:
        data["filters"] = _parse_filters(el)
        data["filter_logic"] = _text(el, "filterLogic")
        data["get_first_record_only"] = _flag(el, "getFirstRecordOnly")
        data["store_output_automatically"] = _flag(el, "storeOutputAutomatically")
        data["sort_field"] = _text(el, "sortField")
        data["sort_order"] = _text(el, "sortOrder")
    elif node_type == NodeType.RECORD_DELETE:
        data["filters"] = _parse_filters(el)
        data["filter_logic"] = _text(el, "filterLogic")
        data["input_reference"] = _text(el, "inputReference")
    elif node_type == NodeType.LOOP:
        data["collection_reference"] = _text(el, "collectionReference")
        data["iteration_order"] = _text(el, "iterationOrder")
        data["assign_next_value_to_reference"] = _text(el, "assignNextValueToReference")
    elif node_type == NodeType.SCREEN:
        data["screen_fields"] = _parse_screen_fields(el)
        for tag, key in (
            ("allowBack", "allow_back"),
            ("allowFinish", "allow_finish"),
            ("allowPause", "allow_pause"),
            ("showHeader", "show_header"),
            ("showFooter", "show_footer"),
        ):
            data[key] = _flag(el, tag)
    elif node_type == NodeType.SUBFLOW:
        data["flow_name"] = _text(el, "flowName")
        data["input_assignments"] = _parse_input_assignments(el)
    elif node_type == NodeType.ACTION:
        data["action_name"] = _text(el, "actionName")
        data["action_type"] = _text(el, "actionType")
        data["input_assignments"] = _parse_input_assignments(el)
    elif node_type == NodeType.DECISION:
        data["rules"] = [
            {
                "name": _text(rule, "name"),
                "label": _text(rule, "label") or _text(rule, "name"),
                "condition_logic": _text(rule, "conditionLogic"),
                "conditions": _parse_conditions(rule, "conditions", "leftValueReference", "rightValue"),
            }
            for rule in _children(el, "rules")
        ]
        data["default_connector_label"] = _text(el, "defaultConnectorLabel") or DEFAULT_OUTCOME_LABEL
    elif node_type == NodeType.WAIT:
        data["wait_events"] = [
            {"name": _text(we, "name"), "label": _text(we, "label") or _text(we, "name")}
            for we in _children(el, "waitEvents")
        ]
    return data


def _dedupe_edge_ids(edges: list[FlowEdge]) -> None:
    """Suffix repeated edge ids with -2, -3, ... in document order."""
    taken = {edge.id for edge in edges}
    seen: set[str] = set()
    for edge in edges:
        if edge.id not in seen:
            seen.add(edge.id)
            continue
        n = 2
        while f"{edge.id}-{n}" in taken:
            n += 1
        edge.id = f"{edge.id}-{n}"
        taken.add(edge.id)
        seen.add(edge.id)


# ─── Parser ──────────────────────────────────────────────────────────────────


class FlowXmlParser:
    """Builds the raw flow graph from Flow metadata XML."""

    def parse(self, src: str) -> ParsedFlow:
        root = self._parse_document(src)
        if _local(root.tag) != "Flow":
            raise ValidationError(f"root element is <{_local(root.tag)}>, expected <Flow>")
        start_el = _child(root, "start")
        if start_el is None:
            raise ValidationError("Flow has no <start> element")

        metadata = self._parse_metadata(root, start_el)
        start_node, edges = self._parse_start(start_el)
        if metadata.description:
            start_node.data["description"] = metadata.description
        nodes: list[FlowNode] = [start_node]
        seen: set[str] = {start_node.id, START_IMMEDIATE_END_ID}

        for tag, node_type in TAG_TO_NODE_TYPE.items():
            for el in _children(root, tag):
                name = _text(el, "name")
                if not name:
                    logger.warning("skipping <%s> element without a <name>", tag)
                    continue
                if name in seen:
                    logger.warning("skipping duplicate element name %r in <%s>", name, tag)
                    continue
                seen.add(name)
                node, element_edges = self._parse_element(el, name, node_type)
                nodes.append(node)
                edges.extend(element_edges)

        _dedupe_edge_ids(edges)
        for edge in edges:
            if edge.target not in seen:
                logger.warning("connector %s references unknown element %r", edge.id, edge.target)

        logger.debug("built %d nodes and %d edges from flow %r", len(nodes), len(edges), metadata.label)
        return ParsedFlow(nodes=nodes, edges=edges, metadata=metadata)

    def _parse_document(self, src: str) -> ET.Element:
        try:
            return ET.fromstring(src)
        except ET.ParseError as exc:
            line, column = getattr(exc, "position", (None, None))
            raise ParseError(f"malformed flow XML: {exc}", line=line, column=column) from exc

    def _parse_metadata(self, root: ET.Element, start_el: ET.Element) -> FlowMetadata:
        metadata = FlowMetadata()
        for child in root:
            attr = _METADATA_TAGS.get(_local(child.tag))
            if attr is not None:
                setattr(metadata, attr, (child.text or "").strip())
        metadata.trigger_type = _text(start_el, "triggerType") or None
        metadata.object = _text(start_el, "object") or None
        metadata.record_trigger_type = _text(start_el, "recordTriggerType") or None
        return metadata

    def _parse_start(self, start_el: ET.Element) -> tuple[FlowNode, list[FlowEdge]]:
        trigger_type = _text(start_el, "triggerType")
        obj = _text(start_el, "object")
        record_trigger = _text(start_el, "recordTriggerType")
        entry_conditions = _parse_filters(start_el)
        scheduled = _parse_scheduled_paths(start_el)
        has_trigger_info = bool(obj or trigger_type or record_trigger)

        node = FlowNode(
            id=START_NODE_ID,
            type=NodeType.START,
            label=START_LABELS.get(trigger_type, "Start"),
            width=START_NODE_WIDTH,
            height=START_NODE_TRIGGER_HEIGHT if has_trigger_info else NODE_HEIGHT,
            data={
                "object": obj,
                "trigger_type": trigger_type,
                "record_trigger_type": record_trigger,
                "filter_formula": _text(start_el, "filterFormula"),
                "filter_logic": _text(start_el, "filterLogic"),
                "does_require_record_changed_to_meet_criteria": _flag(
                    start_el, "doesRequireRecordChangedToMeetCriteria"
                ),
                "entry_conditions": entry_conditions or None,
                "scheduled_paths": scheduled or None,
                "schedule": _text(start_el, "schedule"),
                "frequency": _text(start_el, "frequency"),
            },
        )

        edges: list[FlowEdge] = []
        conn_el = _child(start_el, "connector")
        if conn_el is not None:
            conn = _parse_connector(conn_el)
            if conn.target:
                edges.append(
                    FlowEdge(
                        id=f"{START_NODE_ID}-{conn.target}",
                        source=START_NODE_ID,
                        target=conn.target,
                        type=_connector_type(conn),
                        label=RUN_IMMEDIATELY_LABEL if scheduled else None,
                        is_goto=conn.is_goto,
                    )
                )
        elif scheduled:
            edges.append(
                FlowEdge(
                    id=f"{START_NODE_ID}-{START_IMMEDIATE_END_ID}",
                    source=START_NODE_ID,
                    target=START_IMMEDIATE_END_ID,
                    label=RUN_IMMEDIATELY_LABEL,
                )
            )

        for i, path_el in enumerate(_children(start_el, "scheduledPaths")):
            path_conn = _child(path_el, "connector")
            if path_conn is None:
                continue
            conn = _parse_connector(path_conn)
            if conn.target:
                edges.append(
                    FlowEdge(
                        id=f"{START_NODE_ID}-{conn.target}-sched-{i}",
                        source=START_NODE_ID,
                        target=conn.target,
                        type=_connector_type(conn),
                        label=scheduled[i]["label"],
                        is_goto=conn.is_goto,
                    )
                )
        return node, edges

    def _parse_element(self, el: ET.Element, name: str, node_type: NodeType) -> tuple[FlowNode, list[FlowEdge]]:
        data = _element_data(el, node_type)
        final_type = node_type
        if node_type == NodeType.ACTION:
            final_type = ACTION_TYPE_TO_NODE_TYPE.get(data["action_type"], node_type)

        node = FlowNode(
            id=name,
            type=final_type,
            label=_text(el, "label") or name,
            width=NODE_WIDTH,
            height=NODE_HEIGHT,
            data=data,
        )

        edges: list[FlowEdge] = []

        def add(
            conn_el: ET.Element | None,
            suffix: str,
            label: str | None = None,
            edge_type: EdgeType = EdgeType.NORMAL,
            goto_overrides: bool = True,
        ) -> bool:
            if conn_el is None:
                return False
            conn = _parse_connector(conn_el)
            if not conn.target:
                return False
            edges.append(
                FlowEdge(
                    id=f"{name}-{conn.target}{suffix}",
                    source=name,
                    target=conn.target,
                    type=_connector_type(conn, edge_type) if goto_overrides else edge_type,
                    label=label,
                    is_goto=conn.is_goto,
                )
            )
            return True

        for conn_el in _children(el, "connector"):
            add(conn_el, "")

        # fault takes precedence over GoTo when tagging the edge type
        add(_child(el, "faultConnector"), "-fault", "Fault", EdgeType.FAULT, goto_overrides=False)

        if node_type == NodeType.DECISION:
            for j, rule in enumerate(_children(el, "rules")):
                rule_label = _text(rule, "label") or _text(rule, "name")
                for conn_el in _children(rule, "connector"):
                    add(conn_el, f"-rule-{j}", rule_label)
            default_label = data["default_connector_label"]
            if not add(_child(el, "defaultConnector"), "-def", default_label):
                data["has_implicit_default_end"] = True

        elif node_type == NodeType.LOOP:
            add(_child(el, "nextValueConnector"), "-next", "For Each", EdgeType.LOOP_NEXT, goto_overrides=False)
            add(_child(el, "noMoreValuesConnector"), "-end", "After Last", EdgeType.LOOP_END, goto_overrides=False)

        elif node_type == NodeType.WAIT:
            for j, we in enumerate(_children(el, "waitEvents")):
                we_label = _text(we, "label") or _text(we, "name")
                add(_child(we, "connector"), f"-wait-{j}", we_label)
            add(
                _child(el, "defaultConnector"),
                "-def",
                _text(el, "defaultConnectorLabel") or WAIT_DEFAULT_LABEL,
            )

        return node, edges
