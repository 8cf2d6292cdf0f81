from __future__ import annotations

from typing import Any, Callable, Dict, Optional

import pytest

from vfc.compiler.flow_compiler import FlowCompiler
from vfc.ir.flow_schema import FlowEdge, FlowGraph, FlowNode


def _node(node_id: str, node_type: str, **config: Any) -> FlowNode:
    return FlowNode.model_validate(
        {
            "id": node_id,
            "type": node_type,
            "position": {"x": 10, "y": 20},
            "data": {"label": node_id, "config": config},
        }
    )


def _edge(
    source: str,
    target: str,
    *,
    edge_id: Optional[str] = None,
    handle: Optional[str] = None,
    condition: Optional[str] = None,
) -> FlowEdge:
    payload: Dict[str, Any] = {
        "id": edge_id or f"{source}->{target}",
        "source": source,
        "target": target,
    }
    if handle is not None:
        payload["sourceHandle"] = handle
    if condition is not None:
        payload["data"] = {"condition": condition}
    return FlowEdge.model_validate(payload)


@pytest.fixture
def node() -> Callable[..., FlowNode]:
    return _node


@pytest.fixture
def edge() -> Callable[..., FlowEdge]:
    return _edge


@pytest.fixture
def compiler() -> FlowCompiler:
    return FlowCompiler()


@pytest.fixture
def graph() -> Callable[..., FlowGraph]:
    def build(nodes, edges=()) -> FlowGraph:
        return FlowGraph(nodes=list(nodes), edges=list(edges))

    return build
