from __future__ import annotations

import pytest

from vfc.compiler.assembler import DanglingEdgeError
from vfc.compiler.conditions import LLMConditions
from vfc.compiler.flow_compiler import EmptyFlowError, FlowCompiler, compile_graph
from vfc.config import CompilerSettings
from vfc.runtime.telemetry import TelemetryCollector


def _edges_by_pair(workflow):
    return {(edge.source, edge.target): edge for edge in workflow.edges.values()}


def test_single_message_flow(compiler, node, graph) -> None:
    result = compiler.compile(graph([node("m", "message", message="Hello")]))
    workflow = result.workflow

    assert set(workflow.nodes) == {"start_node", "m"}
    assert workflow.nodes["start_node"].edge_order == ["start_to_entry"]
    start_edge = workflow.edges["start_to_entry"]
    assert (start_edge.source, start_edge.target) == ("start_node", "m")
    assert start_edge.forward_condition.type == "unconditional"
    assert workflow.nodes["m"].additional_prompt.startswith("Say exactly: 'Hello'")
    assert result.entry_node_id == "m"
    assert result.first_message == "Hello"

    report = result.validate_workflow()
    assert report.valid is True
    assert report.warnings == ["Node m has no outgoing edges"]


def test_question_edge_quotes_the_question(compiler, node, edge, graph) -> None:
    flow = graph(
        [node("q", "question", question="What's your name?"), node("a", "message", message="Thanks")],
        [edge("q", "a")],
    )
    workflow = compiler.compile(flow).workflow
    condition = workflow.edges["edge_1_q_to_a"].forward_condition
    assert condition.type == "llm"
    assert condition.condition.startswith('The agent just asked: "Whats your name?"')
    assert workflow.nodes["q"].edge_order == ["edge_1_q_to_a"]


def test_condition_node_is_expanded_away(compiler, node, edge, graph) -> None:
    flow = graph(
        [
            node("x", "question", question="Do you want a demo?"),
            node("c", "condition"),
            node("a", "message", message="Great"),
            node("b", "message", message="No problem"),
        ],
        [edge("x", "c"), edge("c", "a", handle="yes"), edge("c", "b", handle="no")],
    )
    result = compiler.compile(flow)
    workflow = result.workflow

    assert "c" not in workflow.nodes
    assert all("c" not in (item.source, item.target) for item in workflow.edges.values())
    pairs = _edges_by_pair(workflow)
    assert pairs[("x", "a")].forward_condition.condition == "User said yes or agreed"
    assert pairs[("x", "b")].forward_condition.condition == "User said no or declined"
    assert workflow.nodes["x"].edge_order == ["edge_1_x_to_a", "edge_2_x_to_b"]
    assert result.dropped_edges == []


def test_chained_condition_nodes_collapse_into_one_edge(compiler, node, edge, graph) -> None:
    flow = graph(
        [
            node("x", "question"),
            node("c1", "condition"),
            node("c2", "condition"),
            node("a", "message"),
        ],
        [edge("x", "c1"), edge("c1", "c2", handle="yes"), edge("c2", "a", handle="vip")],
    )
    workflow = compiler.compile(flow).workflow
    assert set(workflow.nodes) == {"start_node", "x", "a"}
    assert _edges_by_pair(workflow)[("x", "a")].forward_condition.condition == (
        'User said yes or agreed AND User mentioned "vip"'
    )


def test_blind_transfer(compiler, node, edge, graph) -> None:
    flow = graph(
        [
            node("m", "message", message="Connecting you"),
            node("t", "transfer", phoneNumber="+15550100", transferType="blind"),
        ],
        [edge("m", "t")],
    )
    result = compiler.compile(flow)
    transfer = result.workflow.nodes["t"]
    assert transfer.type == "phone_number"
    assert transfer.transfer_type == "blind"
    assert transfer.transfer_destination.phone_number == "+15550100"
    assert result.has_transfer_nodes is True
    assert result.validate_workflow().warnings == []


def test_edge_to_missing_node_is_dropped(compiler, node, edge, graph) -> None:
    flow = graph([node("x", "message", message="Hi")], [edge("x", "ghost", edge_id="e1")])
    result = compiler.compile(flow)

    assert list(result.workflow.edges) == ["start_to_entry"]
    assert [(item.edge_id, item.target) for item in result.dropped_edges] == [("e1", "ghost")]
    report = result.validate_workflow()
    assert report.errors == []
    assert report.warnings == ["Node x has no outgoing edges"]


def test_strict_mode_rejects_dangling_edges(node, edge, graph) -> None:
    compiler = FlowCompiler(settings=CompilerSettings(strict_dangling_edges=True))
    flow = graph([node("x", "message")], [edge("x", "ghost")])
    with pytest.raises(DanglingEdgeError):
        compiler.compile(flow)


def test_empty_flow_is_rejected(compiler, graph) -> None:
    with pytest.raises(EmptyFlowError):
        compiler.compile(graph([]))


def test_output_never_references_missing_nodes(compiler, node, edge, graph) -> None:
    flow = graph(
        [
            node("trigger", "start"),
            node("q", "question"),
            node("c", "condition"),
            node("a", "appointment"),
            node("e", "end"),
        ],
        [
            edge("trigger", "q"),
            edge("q", "c"),
            edge("c", "a", handle="yes"),
            edge("c", "nowhere", handle="no"),
            edge("a", "e"),
            edge("e", "q"),
            edge("phantom", "q"),
        ],
    )
    workflow = compiler.compile(flow).workflow
    starts = [node_id for node_id, item in workflow.nodes.items() if item.type == "start"]
    assert starts == ["start_node"]
    assert len(workflow.nodes["start_node"].edge_order) <= 1
    for edge_id, item in workflow.edges.items():
        assert item.source in workflow.nodes
        assert item.target in workflow.nodes
        assert edge_id in workflow.nodes[item.source].edge_order
    for node_id, item in workflow.nodes.items():
        for edge_id in item.edge_order:
            assert workflow.edges[edge_id].source == node_id


def test_trigger_is_replaced_by_start_node(compiler, node, edge, graph) -> None:
    flow = graph(
        [node("trigger", "trigger"), node("m", "message", message="Welcome")],
        [edge("trigger", "m")],
    )
    result = compiler.compile(flow)
    assert "trigger" not in result.workflow.nodes
    assert list(result.workflow.edges) == ["start_to_entry"]
    assert result.workflow.edges["start_to_entry"].target == "m"


def test_explicit_condition_wins_over_yes_handle(compiler, node, edge, graph) -> None:
    flow = graph(
        [node("q", "question", question="Interested?"), node("b", "message")],
        [edge("q", "b", handle="yes", condition="User asked about pricing")],
    )
    condition = compiler.compile(flow).workflow.edges["edge_1_q_to_b"].forward_condition
    assert condition.condition == "User asked about pricing"


def test_waiting_defaults_shape_edge_conditions(compiler, node, edge, graph) -> None:
    flow = graph(
        [
            node("m", "message", message="Hi"),
            node("f", "form", formId="form-1234567890"),
            node("p", "appointment"),
            node("e", "end"),
        ],
        [edge("m", "f"), edge("f", "p"), edge("p", "e")],
    )
    pairs = _edges_by_pair(compiler.compile(flow).workflow)
    assert pairs[("m", "f")].forward_condition.type == "unconditional"
    assert pairs[("f", "p")].forward_condition.condition == LLMConditions.FORM_COMPLETE
    assert pairs[("p", "e")].forward_condition.condition == LLMConditions.APPOINTMENT_COMPLETE


def test_registration_facts(compiler, node, graph) -> None:
    flow = graph(
        [
            node("m", "message"),
            node("form-node", "form", formId="form-1234567890", formName="Intake"),
            node("hook", "webhook", url="https://example.test/hook", method="put", toolId="crm_sync"),
            node("audio-node-42", "play_audio", audioUrl="https://example.test/a.mp3"),
            node("book", "appointment"),
            node("agent", "transfer_agent", agentId="agent_7"),
        ]
    )
    result = compiler.compile(flow)

    assert result.tool_ids == ["submit_form_34567890", "crm_sync", "play_audio_-node-42"]
    assert result.workflow.nodes["form-node"].additional_tool_ids == ["submit_form_34567890"]
    assert result.has_form_nodes is True
    assert [item.form_name for item in result.form_nodes] == ["Intake"]
    assert result.has_webhook_nodes is True
    assert result.webhook_nodes[0].method == "PUT"
    assert result.has_play_audio_nodes is True
    assert result.play_audio_nodes[0].audio_url == "https://example.test/a.mp3"
    assert result.has_appointment_nodes is True
    assert result.has_transfer_nodes is False
    assert result.workflow.nodes["agent"].agent_id == "agent_7"


def _branching_flow(node, edge, graph):
    return graph(
        [
            node("q", "question", question="Sales or support?"),
            node("c", "condition"),
            node("s", "message", message="Sales"),
            node("h", "message", message="Support"),
            node("e", "end"),
        ],
        [
            edge("q", "c"),
            edge("c", "s", handle="sales"),
            edge("c", "h", handle="support"),
            edge("s", "e"),
            edge("h", "e"),
        ],
    )


def test_compilation_is_deterministic_across_instances(node, edge, graph) -> None:
    flow = _branching_flow(node, edge, graph)
    first = FlowCompiler().compile(flow).workflow.to_payload()
    second = compile_graph(flow).workflow.to_payload()
    assert first == second


def test_shared_compiler_restarts_edge_numbering(compiler, node, edge, graph) -> None:
    flow = _branching_flow(node, edge, graph)
    first = compiler.compile(flow).workflow
    second = compiler.compile(flow).workflow
    assert list(first.edges) == list(second.edges)
    assert "edge_1_q_to_s" in second.edges


def test_telemetry_records_compile_events(node, edge, graph, tmp_path) -> None:
    telemetry = TelemetryCollector(str(tmp_path))
    compiler = FlowCompiler(telemetry=telemetry)
    result = compiler.compile(graph([node("x", "message")], [edge("x", "ghost", edge_id="e1")]))

    events = telemetry.events(result.trace_id)
    assert [item.event for item in events] == ["compile_started", "edge_dropped", "compile_finished"]
    assert events[1].data["edge_id"] == "e1"
    assert events[2].data["dropped_edges"] == 1
    assert (tmp_path / f"{result.trace_id}.jsonl").exists()
