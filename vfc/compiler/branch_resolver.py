"""
Expansion of condition (branch) nodes into direct conditioned edges.

Branch nodes have no counterpart in the workflow format. Every edge entering a
branch is paired with every edge leaving it, following chains of branches until
real nodes are reached on both sides.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, Iterator, List, Optional, Sequence, Tuple, Union

from pydantic import Field, ValidationError

from vfc.ir.flow_schema import (
    BRANCH_CATEGORIES,
    TRIGGER_CATEGORIES,
    FlowEdge,
    FlowGraph,
    FlowNode,
    LenientModel,
)
from vfc.ir.workflow_schema import LLMCondition, UnconditionalCondition

LOGGER = logging.getLogger(__name__)

CHAIN_SEPARATOR = " AND "


@dataclass(frozen=True)
class NoCondition:
    """The branch was never entered, so its outgoing edges produce nothing."""


@dataclass(frozen=True)
class Unconditional:
    pass


@dataclass(frozen=True)
class NamedCondition:
    text: str


BranchCondition = Union[NoCondition, Unconditional, NamedCondition]


class BranchRule(LenientModel):
    id: Optional[str] = None
    label: Optional[str] = None
    type: Optional[str] = "keyword"
    value: Any = None
    description: Optional[str] = None
    target_node_id: Optional[str] = Field(default=None, alias="targetNodeId")


@dataclass(frozen=True)
class ExpandedEdge:
    source: str
    target: str
    condition: Union[UnconditionalCondition, LLMCondition]
    entering_edge_id: str
    via: Tuple[str, ...]


def rule_text(rule: BranchRule) -> str:
    if rule.description:
        return rule.description

    value = str(rule.value or rule.label or "")
    lowered = value.lower()
    if rule.type in ("yes_no", "boolean"):
        if lowered in ("yes", "true"):
            return "User said yes or agreed"
        if lowered in ("no", "false"):
            return "User said no or declined"
    if rule.type == "sentiment":
        if lowered in ("positive", "interested"):
            return "User sounds interested"
        if lowered in ("negative", "not_interested"):
            return "User sounds not interested"
        if lowered == "neutral":
            return "User sounds neutral"
    if value:
        return f'User mentioned "{value}"'
    return ""


def handle_text(handle: str) -> str:
    lowered = handle.lower()
    if lowered in ("true", "yes"):
        return "User said yes or agreed"
    if lowered in ("false", "no"):
        return "User said no or declined"
    if lowered in ("default", "else", "otherwise"):
        return "Other cases"
    return f'User mentioned "{handle}"'


def parse_rules(config: Dict[str, Any]) -> List[BranchRule]:
    rules: List[BranchRule] = []
    for raw in config.get("conditions") or []:
        if not isinstance(raw, dict):
            continue
        try:
            rules.append(BranchRule.model_validate(raw))
        except ValidationError as exc:
            LOGGER.warning("Ignoring malformed branch rule %r: %s", raw, exc)
    return rules


def combine(conditions: Sequence[BranchCondition]) -> Union[UnconditionalCondition, LLMCondition]:
    texts = [item.text for item in conditions if isinstance(item, NamedCondition)]
    if not texts:
        return UnconditionalCondition()
    return LLMCondition(condition=CHAIN_SEPARATOR.join(texts))


class BranchResolver:
    def __init__(self, graph: FlowGraph) -> None:
        self.graph = graph
        self.nodes: Dict[str, FlowNode] = graph.node_map()
        self.incoming = graph.incoming()
        self.outgoing = graph.outgoing()
        self.branch_ids: FrozenSet[str] = frozenset(
            node.id for node in graph.nodes if node.category in BRANCH_CATEGORIES
        )

    def is_branch(self, node_id: str) -> bool:
        return node_id in self.branch_ids

    def resolve(self, branch_id: str, leaving: FlowEdge) -> BranchCondition:
        """Condition for a single hop out of a branch node."""

        if not self.incoming.get(branch_id):
            return NoCondition()

        branch = self.nodes[branch_id]
        rules = parse_rules(branch.config)
        handle = leaving.source_handle

        rule = next((item for item in rules if item.target_node_id == leaving.target), None)
        if rule is None and handle:
            rule = next(
                (item for item in rules if handle in (item.id, item.label)),
                None,
            )
        text = rule_text(rule) if rule is not None else ""

        if not text and handle:
            text = handle_text(handle)
        if text:
            return NamedCondition(text)
        return Unconditional()

    def _paths(
        self, branch_id: str, visited: FrozenSet[str]
    ) -> Iterator[Tuple[str, Tuple[BranchCondition, ...], Tuple[str, ...]]]:
        for leaving in self.outgoing.get(branch_id, []):
            hop = self.resolve(branch_id, leaving)
            if isinstance(hop, NoCondition):
                continue
            if self.is_branch(leaving.target):
                if leaving.target in visited:
                    LOGGER.warning(
                        "Branch cycle through %s ignored at edge %s", leaving.target, leaving.id
                    )
                    continue
                for target, hops, via in self._paths(
                    leaving.target, visited | {leaving.target}
                ):
                    yield target, (hop,) + hops, (branch_id,) + via
            else:
                yield leaving.target, (hop,), (branch_id,)

    def expand(self, entering: FlowEdge) -> List[ExpandedEdge]:
        """Direct edges replacing `entering` and the branch chain it feeds."""

        if not self.is_branch(entering.target) or self.is_branch(entering.source):
            return []
        source = self.nodes.get(entering.source)
        if source is not None and source.category in TRIGGER_CATEGORIES:
            return []

        expanded: List[ExpandedEdge] = []
        for target, hops, via in self._paths(entering.target, frozenset({entering.target})):
            expanded.append(
                ExpandedEdge(
                    source=entering.source,
                    target=target,
                    condition=combine(hops),
                    entering_edge_id=entering.id,
                    via=via,
                )
            )
        return expanded
