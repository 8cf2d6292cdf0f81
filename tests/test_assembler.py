from __future__ import annotations

import pytest

from vfc.compiler.assembler import DanglingEdgeError, WorkflowAssembler
from vfc.ir.workflow_schema import EndNode, LLMCondition, UnconditionalCondition


def test_start_node_is_injected_and_connected() -> None:
    assembler = WorkflowAssembler()
    assembler.add_node("entry", EndNode())
    assert assembler.connect_start("entry") == "start_to_entry"

    workflow = assembler.build()
    assert workflow.nodes["start_node"].type == "start"
    assert workflow.nodes["start_node"].edge_order == ["start_to_entry"]
    assert workflow.edges["start_to_entry"].forward_condition.type == "unconditional"


def test_connect_start_without_entry_is_a_noop() -> None:
    assembler = WorkflowAssembler()
    assert assembler.connect_start(None) is None
    assert assembler.connect_start("missing") is None
    assert assembler.build().edges == {}


def test_edge_ids_count_up_and_truncate_ids() -> None:
    assembler = WorkflowAssembler()
    assembler.add_node("question-node-1", EndNode())
    assembler.add_node("answer-node-22", EndNode())
    first = assembler.connect("question-node-1", "answer-node-22", UnconditionalCondition())
    second = assembler.connect("answer-node-22", "question-node-1", LLMCondition(condition="c"))
    assert first == "edge_1_question_to_answer-n"
    assert second == "edge_2_answer-n_to_question"
    assert assembler.nodes["question-node-1"].edge_order == [first]


def test_counter_is_per_assembler() -> None:
    ids = []
    for _ in range(2):
        assembler = WorkflowAssembler()
        assembler.add_node("a", EndNode())
        assembler.add_node("b", EndNode())
        ids.append(assembler.connect("a", "b", UnconditionalCondition()))
    assert ids == ["edge_1_a_to_b", "edge_1_a_to_b"]


def test_dangling_edges_are_dropped_and_recorded() -> None:
    assembler = WorkflowAssembler()
    assembler.add_node("a", EndNode())
    assert assembler.connect("a", "ghost", UnconditionalCondition(), origin_edge_id="e9") is None
    assert assembler.connect("ghost", "a", UnconditionalCondition()) is None
    assert [item.edge_id for item in assembler.dropped] == ["e9", None]
    assert assembler.dropped[0].reason == "target node was not compiled"
    assert assembler.nodes["a"].edge_order == []


def test_strict_mode_raises_on_dangling_edges() -> None:
    assembler = WorkflowAssembler(strict=True)
    assembler.add_node("a", EndNode())
    with pytest.raises(DanglingEdgeError):
        assembler.connect("a", "ghost", UnconditionalCondition(), origin_edge_id="e1")


def test_node_colliding_with_start_is_skipped() -> None:
    assembler = WorkflowAssembler()
    assembler.add_node("start_node", EndNode())
    assert assembler.nodes["start_node"].type == "start"
