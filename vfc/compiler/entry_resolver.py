"""
Entry-node resolution: which node the injected start node connects to.
"""

from __future__ import annotations

import logging
from typing import Optional, Set, Tuple

from pydantic import BaseModel

from vfc.ir.flow_schema import (
    STRUCTURAL_CATEGORIES,
    TRIGGER_CATEGORIES,
    FlowGraph,
    FlowNode,
    NodeCategory,
)

LOGGER = logging.getLogger(__name__)


def _is_actionable(node: Optional[FlowNode]) -> bool:
    return node is not None and node.category not in STRUCTURAL_CATEGORIES


class EntryResolution(BaseModel):
    node: Optional[FlowNode] = None
    strategy: str = "none"
    first_message: Optional[str] = None

    @property
    def node_id(self) -> Optional[str]:
        return self.node.id if self.node is not None else None


class EntryResolver:
    def find(self, graph: FlowGraph) -> Tuple[Optional[FlowNode], str]:
        nodes = graph.node_map()

        trigger = next(
            (node for node in graph.nodes if node.category in TRIGGER_CATEGORIES), None
        )
        if trigger is not None:
            outgoing = next((edge for edge in graph.edges if edge.source == trigger.id), None)
            if outgoing is not None and _is_actionable(nodes.get(outgoing.target)):
                return nodes[outgoing.target], "trigger"

        targets: Set[str] = {edge.target for edge in graph.edges}
        for node in graph.nodes:
            if node.id not in targets and _is_actionable(node):
                return node, "root"

        for node in graph.nodes:
            if _is_actionable(node):
                return node, "first_actionable"

        return None, "none"

    def resolve(self, graph: FlowGraph) -> EntryResolution:
        node, strategy = self.find(graph)
        first_message: Optional[str] = None
        if node is not None and node.category is NodeCategory.MESSAGE:
            message = node.config.get("message")
            if isinstance(message, str) and message:
                first_message = message
                # Informational only: in scripted mode the runtime never speaks a
                # separate first message, so the entry node keeps its own say-exactly prompt.
                preview = message if len(message) <= 50 else message[:50] + "..."
                LOGGER.info("First message extracted from entry node %s: %r", node.id, preview)
        return EntryResolution(node=node, strategy=strategy, first_message=first_message)
