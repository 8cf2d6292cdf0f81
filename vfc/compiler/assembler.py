"""
Workflow assembly: start-node injection, edge ids and per-node edge ordering.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from pydantic import BaseModel

from vfc.config import VFC_DEFAULT_START_EDGE_ID, VFC_DEFAULT_START_NODE_ID
from vfc.ir.workflow_schema import (
    StartNode,
    UnconditionalCondition,
    Workflow,
    WorkflowEdge,
    WorkflowNode,
)

LOGGER = logging.getLogger(__name__)


class FlowCompilerError(ValueError):
    """Base error for flows the compiler refuses to compile."""


class DanglingEdgeError(FlowCompilerError):
    """Raised in strict mode for an edge whose endpoint did not compile."""


class DroppedEdge(BaseModel):
    edge_id: Optional[str] = None
    source: str
    target: str
    reason: str


class WorkflowAssembler:
    """
    Accumulates compiled nodes and edges for a single compile.

    Instances are single-use: the edge counter starts at zero for every
    assembler, so ids are stable for a given input ordering.
    """

    def __init__(
        self,
        *,
        start_node_id: str = VFC_DEFAULT_START_NODE_ID,
        start_edge_id: str = VFC_DEFAULT_START_EDGE_ID,
        strict: bool = False,
    ) -> None:
        self.start_node_id = start_node_id
        self.start_edge_id = start_edge_id
        self.strict = strict
        self.nodes: Dict[str, WorkflowNode] = {start_node_id: StartNode()}
        self.edges: Dict[str, WorkflowEdge] = {}
        self.dropped: List[DroppedEdge] = []
        self._edge_counter = 0

    def add_node(self, node_id: str, node: WorkflowNode) -> None:
        if node_id == self.start_node_id:
            LOGGER.warning("Flow node id %s collides with the start node; skipping it", node_id)
            return
        if node_id in self.nodes:
            LOGGER.warning("Duplicate node id %s; keeping the last definition", node_id)
        self.nodes[node_id] = node

    def next_edge_id(self, source: str, target: str) -> str:
        self._edge_counter += 1
        return f"edge_{self._edge_counter}_{source[:8]}_to_{target[:8]}"

    def _drop(self, source: str, target: str, edge_id: Optional[str], reason: str) -> None:
        if self.strict:
            raise DanglingEdgeError(
                f"Edge {edge_id or '?'} ({source} -> {target}) {reason}"
            )
        LOGGER.debug("Dropping edge %s (%s -> %s): %s", edge_id, source, target, reason)
        self.dropped.append(
            DroppedEdge(edge_id=edge_id, source=source, target=target, reason=reason)
        )

    def connect(
        self,
        source: str,
        target: str,
        forward_condition,
        *,
        edge_id: Optional[str] = None,
        origin_edge_id: Optional[str] = None,
    ) -> Optional[str]:
        """Add an edge and append its id to the source's edge_order; None when dropped."""

        if source not in self.nodes:
            self._drop(source, target, origin_edge_id, "source node was not compiled")
            return None
        if target not in self.nodes:
            self._drop(source, target, origin_edge_id, "target node was not compiled")
            return None

        new_id = edge_id or self.next_edge_id(source, target)
        self.edges[new_id] = WorkflowEdge(
            source=source, target=target, forward_condition=forward_condition
        )
        self.nodes[source].edge_order.append(new_id)
        return new_id

    def connect_start(self, entry_node_id: Optional[str]) -> Optional[str]:
        if entry_node_id is None or entry_node_id not in self.nodes:
            return None
        edge_id = self.connect(
            self.start_node_id,
            entry_node_id,
            UnconditionalCondition(),
            edge_id=self.start_edge_id,
        )
        LOGGER.debug("Connected start -> %s", entry_node_id)
        return edge_id

    def build(self) -> Workflow:
        return Workflow(nodes=dict(self.nodes), edges=dict(self.edges))
