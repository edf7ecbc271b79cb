"""End-to-end tests: sample flow files through build → close → normalize → layout."""

from pathlib import Path

import pytest

from flowviz import calculate_complexity, parse_flow
from flowviz.ir.model import START_NODE_ID
from flowviz.types import EdgeType, NodeType

FLOWS_DIR = Path(__file__).parent / "flows"
FLOW_FILES = sorted(FLOWS_DIR.glob("*.flow-meta.xml"))


def load(name: str):
    return parse_flow((FLOWS_DIR / f"{name}.flow-meta.xml").read_text(encoding="utf-8"))


def center(node) -> float:
    return node.x + node.width / 2


# ─── Invariants over every sample ─────────────────────────────────────────────


@pytest.mark.parametrize("path", FLOW_FILES, ids=[p.name.split(".")[0] for p in FLOW_FILES])
class TestInvariants:
    def test_ids_unique(self, path: Path):
        flow = parse_flow(path.read_text(encoding="utf-8"))
        node_ids = [n.id for n in flow.nodes]
        edge_ids = [e.id for e in flow.edges]
        assert len(node_ids) == len(set(node_ids))
        assert len(edge_ids) == len(set(edge_ids))

    def test_every_path_closed(self, path: Path):
        """Only Start and End nodes may lack an outgoing non-fault connector."""
        flow = parse_flow(path.read_text(encoding="utf-8"))
        closing = {e.source for e in flow.edges if e.type != EdgeType.FAULT}
        for node in flow.nodes:
            if node.type in (NodeType.START, NodeType.END):
                continue
            assert node.id in closing, node.id

    def test_every_node_positioned(self, path: Path):
        flow = parse_flow(path.read_text(encoding="utf-8"))
        assert all(n.x is not None and n.y is not None for n in flow.nodes)

    def test_deterministic(self, path: Path):
        src = path.read_text(encoding="utf-8")
        first, second = parse_flow(src).to_dict(), parse_flow(src).to_dict()
        assert first == second


# ─── Account_Update: decision that merges, fault path ─────────────────────────


class TestAccountUpdate:
    def test_metadata_and_start(self):
        flow = load("Account_Update")
        assert flow.metadata.label == "Account Update"
        start = flow.node(START_NODE_ID)
        assert start.label == "Record-Triggered Flow"
        assert start.height == 140
        assert flow.node("Notify").type == NodeType.EMAIL_ALERT

    def test_branches_merge_under_decision(self):
        flow = load("Account_Update")
        decision, create, update, notify = (flow.node(i) for i in ("Is_New_Customer", "Create_Record", "Update_Record", "Notify"))
        assert decision.children == ["Create_Record", "Update_Record"]
        assert create.y == update.y
        assert center(create) < center(decision) < center(update)
        assert center(notify) == center(decision)
        assert notify.y > create.y
        assert notify.prev is None

    def test_fault_path(self):
        flow = load("Account_Update")
        fault = next(e for e in flow.edges if e.type == EdgeType.FAULT)
        assert (fault.source, fault.target) == ("Update_Record", "Update_Failed")
        assert flow.node("Update_Record").fault == "Update_Failed"

        fault_end_edge = next(e for e in flow.edges if e.source == "Update_Failed")
        assert fault_end_edge.type == EdgeType.FAULT_END
        assert flow.node(fault_end_edge.target).data["is_fault_path"] is True

        update, failed = flow.node("Update_Record"), flow.node("Update_Failed")
        assert failed.x > update.x + update.width

    def test_complexity(self):
        flow = load("Account_Update")
        metrics = calculate_complexity(flow.nodes, flow.edges)
        assert metrics.breakdown.decisions == 2
        assert metrics.breakdown.faults == 2
        assert metrics.score == 5


# ─── Contact_Loop: loop body and After Last ───────────────────────────────────


class TestContactLoop:
    def test_loop_relations(self):
        flow = load("Contact_Loop")
        loop = flow.node("Each_Contact")
        assert loop.children == ["Add_To_List"]
        assert loop.next == "Save_Contacts"
        assert flow.node("Add_To_List").parent == "Each_Contact"

    def test_loop_layout(self):
        flow = load("Contact_Loop")
        loop, body, after = (flow.node(i) for i in ("Each_Contact", "Add_To_List", "Save_Contacts"))
        assert center(body) < center(loop)
        assert center(after) == center(loop)
        assert after.y > body.y

    def test_payloads(self):
        flow = load("Contact_Loop")
        assert flow.node("Welcome").data["screen_fields"][0]["label"] == "Updating contacts"
        assert flow.node("Get_Contacts").data["filters"][0]["field"] == "AccountId"
        assert flow.node("Add_To_List").data["assignment_items"][0]["field"] == "contactsToUpdate"


# ─── Opportunity_Followup: scheduled path, wait ───────────────────────────────


class TestOpportunityFollowup:
    def test_start_branches(self):
        flow = load("Opportunity_Followup")
        start = flow.node(START_NODE_ID)
        assert start.children == ["Wait_For_Payment", "Log_Followup"]
        immediate = next(e for e in flow.edges if e.id == "START_NODE-Wait_For_Payment")
        assert immediate.label == "Run Immediately"

    def test_start_branch_layout(self):
        flow = load("Opportunity_Followup")
        wait, log = flow.node("Wait_For_Payment"), flow.node("Log_Followup")
        assert wait.y == log.y
        assert center(wait) < center(log)

    def test_wait_default_on_the_right(self):
        flow = load("Opportunity_Followup")
        assert flow.node("Wait_For_Payment").children == ["Mark_Stage", "Send_Reminder"]
        assert center(flow.node("Mark_Stage")) < center(flow.node("Send_Reminder"))

    def test_no_layout(self):
        src = (FLOWS_DIR / "Opportunity_Followup.flow-meta.xml").read_text(encoding="utf-8")
        flow = parse_flow(src, auto_layout=False)
        assert all(n.x is None for n in flow.nodes)
