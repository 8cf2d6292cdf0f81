"""
Structural validation for compiled workflows.
"""

from __future__ import annotations

from collections import deque
from typing import Dict, List, Set

from pydantic import BaseModel, Field

from vfc.config import VFC_DEFAULT_START_NODE_ID
from vfc.ir.workflow_schema import TERMINAL_NODE_TYPES, Workflow

START_NODE_ID = VFC_DEFAULT_START_NODE_ID


class WorkflowValidationError(ValueError):
    """Raised when a caller insists on a workflow that failed validation."""

    def __init__(self, errors: List[str]) -> None:
        super().__init__("; ".join(errors) or "Workflow failed validation.")
        self.errors = list(errors)


class ValidationReport(BaseModel):
    valid: bool
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)

    def raise_for_errors(self) -> "ValidationReport":
        if not self.valid:
            raise WorkflowValidationError(self.errors)
        return self


def _adjacency(workflow: Workflow) -> Dict[str, Set[str]]:
    graph: Dict[str, Set[str]] = {node_id: set() for node_id in workflow.nodes}
    for edge in workflow.edges.values():
        if edge.source in graph and edge.target in graph:
            graph[edge.source].add(edge.target)
    return graph


def reachable_from(workflow: Workflow, root: str) -> Set[str]:
    graph = _adjacency(workflow)
    if root not in graph:
        return set()
    visited: Set[str] = {root}
    queue = deque([root])
    while queue:
        current = queue.popleft()
        for nxt in sorted(graph[current]):
            if nxt not in visited:
                visited.add(nxt)
                queue.append(nxt)
    return visited


def validate_workflow(
    workflow: Workflow, *, start_node_id: str = START_NODE_ID
) -> ValidationReport:
    errors: List[str] = []
    warnings: List[str] = []

    if len(workflow.nodes) <= 1:
        errors.append("Workflow must have at least one node besides start")

    start_node = workflow.nodes.get(start_node_id)
    if start_node is None or start_node.type != "start":
        errors.append("Workflow must have a start node")

    for edge_id, edge in workflow.edges.items():
        if edge.target not in workflow.nodes:
            errors.append(f"Edge {edge_id} targets non-existent node {edge.target}")
        if edge.source not in workflow.nodes:
            errors.append(f"Edge {edge_id} has non-existent source {edge.source}")

    reachable = reachable_from(workflow, start_node_id)
    for node_id in workflow.nodes:
        if node_id != start_node_id and node_id not in reachable:
            warnings.append(f"Node {node_id} is not reachable from the start node")

    for node_id, node in workflow.nodes.items():
        if node_id == start_node_id or node.type in TERMINAL_NODE_TYPES:
            continue
        if not node.edge_order:
            warnings.append(f"Node {node_id} has no outgoing edges")

    return ValidationReport(valid=not errors, errors=errors, warnings=warnings)
