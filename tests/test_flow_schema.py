from __future__ import annotations

from vfc.ir.flow_schema import FlowEdge, FlowGraph, FlowNode, NodeCategory


def test_category_prefers_nested_config_type() -> None:
    node = FlowNode.model_validate(
        {"id": "n1", "type": "message", "data": {"config": {"type": "question"}}}
    )
    assert node.category is NodeCategory.QUESTION
    assert node.raw_category == "question"


def test_category_falls_back_to_node_type_then_unknown() -> None:
    assert FlowNode(id="n1", type="transfer").category is NodeCategory.TRANSFER
    assert FlowNode(id="n2").category is NodeCategory.UNKNOWN
    custom = FlowNode(id="n3", type="sms_followup")
    assert custom.category is NodeCategory.UNKNOWN
    assert custom.raw_category == "sms_followup"


def test_top_level_config_is_lifted_into_data() -> None:
    node = FlowNode.model_validate({"id": "n1", "type": "message", "config": {"message": "Hi"}})
    assert node.config == {"message": "Hi"}


def test_data_level_properties_are_kept() -> None:
    node = FlowNode.model_validate(
        {"id": "w", "type": "webhook", "data": {"label": "Hook", "url": "https://x.test"}}
    )
    assert node.data_field("url") == "https://x.test"
    assert node.data_field("label") == "Hook"
    assert node.data_field("missing") is None


def test_edge_accepts_camel_case_handles_and_condition() -> None:
    edge = FlowEdge.model_validate(
        {
            "id": "e1",
            "source": "a",
            "target": "b",
            "sourceHandle": "yes",
            "data": {"condition": "User wants a demo"},
        }
    )
    assert edge.source_handle == "yes"
    assert edge.explicit_condition == "User wants a demo"


def test_blank_edge_condition_is_not_explicit() -> None:
    edge = FlowEdge.model_validate(
        {"id": "e1", "source": "a", "target": "b", "data": {"condition": "   "}}
    )
    assert edge.explicit_condition is None


def test_graph_lookups_keep_declaration_order() -> None:
    graph = FlowGraph.from_payload(
        [{"id": "a"}, {"id": "b"}, {"id": "c"}],
        [
            {"id": "e2", "source": "a", "target": "c"},
            {"id": "e1", "source": "a", "target": "b"},
        ],
    )
    assert [edge.id for edge in graph.outgoing()["a"]] == ["e2", "e1"]
    assert [edge.id for edge in graph.incoming()["b"]] == ["e1"]
    assert set(graph.node_map()) == {"a", "b", "c"}


def test_null_data_and_config_become_empty() -> None:
    bare = FlowNode.model_validate({"id": "a", "type": "message", "data": None, "position": None})
    assert bare.config == {}
    assert bare.position.x == 0
    empty_config = FlowNode.model_validate({"id": "b", "type": "question", "data": {"config": None}})
    assert empty_config.config == {}
    assert empty_config.category is NodeCategory.QUESTION


def test_non_string_label_is_coerced() -> None:
    node = FlowNode.model_validate({"id": "a", "data": {"label": 42}})
    assert node.data.label == "42"


def test_non_string_edge_condition_is_not_explicit() -> None:
    edge = FlowEdge.model_validate(
        {"id": "e1", "source": "a", "target": "b", "data": {"condition": {"op": "eq"}}}
    )
    assert edge.explicit_condition is None
