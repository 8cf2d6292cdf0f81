"""
Typed input representation for visual flows authored in the flow builder.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class LenientModel(BaseModel):
    """Base model for editor payloads: keeps unknown fields, accepts aliases."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)


class NodeCategory(str, Enum):
    START = "start"
    TRIGGER = "trigger"
    MESSAGE = "message"
    GREETING = "greeting"
    QUESTION = "question"
    APPOINTMENT = "appointment"
    FORM = "form"
    FORM_SUBMISSION = "form_submission"
    COLLECT_INFO = "collect_info"
    DELAY = "delay"
    WAIT = "wait"
    PAUSE = "pause"
    TRANSFER = "transfer"
    TRANSFER_CALL = "transfer_call"
    PHONE_TRANSFER = "phone_transfer"
    AGENT_TRANSFER = "agent_transfer"
    TRANSFER_AGENT = "transfer_agent"
    END = "end"
    END_CALL = "end_call"
    HANGUP = "hangup"
    WEBHOOK = "webhook"
    API_CALL = "api_call"
    TOOL = "tool"
    PLAY_AUDIO = "play_audio"
    CONDITION = "condition"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, raw: Optional[str]) -> "NodeCategory":
        if not raw:
            return cls.UNKNOWN
        try:
            return cls(str(raw).strip())
        except ValueError:
            return cls.UNKNOWN


TRIGGER_CATEGORIES: FrozenSet[NodeCategory] = frozenset(
    {NodeCategory.START, NodeCategory.TRIGGER}
)
BRANCH_CATEGORIES: FrozenSet[NodeCategory] = frozenset({NodeCategory.CONDITION})
STRUCTURAL_CATEGORIES: FrozenSet[NodeCategory] = TRIGGER_CATEGORIES | BRANCH_CATEGORIES
FORM_CATEGORIES: FrozenSet[NodeCategory] = frozenset(
    {NodeCategory.FORM, NodeCategory.FORM_SUBMISSION, NodeCategory.COLLECT_INFO}
)
DELAY_CATEGORIES: FrozenSet[NodeCategory] = frozenset(
    {NodeCategory.DELAY, NodeCategory.WAIT, NodeCategory.PAUSE}
)
PHONE_TRANSFER_CATEGORIES: FrozenSet[NodeCategory] = frozenset(
    {NodeCategory.TRANSFER, NodeCategory.TRANSFER_CALL, NodeCategory.PHONE_TRANSFER}
)
AGENT_TRANSFER_CATEGORIES: FrozenSet[NodeCategory] = frozenset(
    {NodeCategory.AGENT_TRANSFER, NodeCategory.TRANSFER_AGENT}
)
TERMINAL_CATEGORIES: FrozenSet[NodeCategory] = frozenset(
    {NodeCategory.END, NodeCategory.END_CALL, NodeCategory.HANGUP}
)
WEBHOOK_CATEGORIES: FrozenSet[NodeCategory] = frozenset(
    {NodeCategory.WEBHOOK, NodeCategory.API_CALL, NodeCategory.TOOL}
)


class Position(BaseModel):
    x: float = 0
    y: float = 0


class FormField(LenientModel):
    id: str = ""
    question: str = ""
    field_type: str = Field(default="text", alias="fieldType")
    options: Optional[List[str]] = None
    is_required: bool = Field(default=False, alias="isRequired")
    order: int = 0


class FlowNodeData(LenientModel):
    label: Optional[str] = None
    config: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("config", mode="before")
    @classmethod
    def _null_config(cls, value: Any) -> Any:
        return {} if value is None else value

    @field_validator("label", mode="before")
    @classmethod
    def _label_as_text(cls, value: Any) -> Any:
        if value is None or isinstance(value, str):
            return value
        return str(value)


class FlowNode(LenientModel):
    id: str
    type: Optional[str] = None
    position: Position = Field(default_factory=Position)
    data: FlowNodeData = Field(default_factory=FlowNodeData)

    @model_validator(mode="before")
    @classmethod
    def _normalize_payload(cls, value: Any) -> Any:
        if not isinstance(value, dict):
            return value
        value = dict(value)
        # Accept `{"id", "type", "config"}` payloads that skip the `data` wrapper.
        if "config" in value and "data" not in value:
            value["data"] = {"config": value.pop("config")}
        for key in ("data", "position"):
            if value.get(key, {}) is None:
                value.pop(key)
        return value

    @property
    def config(self) -> Dict[str, Any]:
        return self.data.config

    @property
    def raw_category(self) -> str:
        return str(self.config.get("type") or self.type or "unknown")

    @property
    def category(self) -> NodeCategory:
        return NodeCategory.parse(self.raw_category)

    def data_field(self, key: str) -> Any:
        """Read a property stored directly on `data` rather than `data.config`."""

        if key == "label":
            return self.data.label
        return (self.data.model_extra or {}).get(key)


class FlowEdgeData(LenientModel):
    condition: Any = None


class FlowEdge(LenientModel):
    id: str = ""
    source: str
    target: str
    label: Optional[str] = None
    source_handle: Optional[str] = Field(default=None, alias="sourceHandle")
    target_handle: Optional[str] = Field(default=None, alias="targetHandle")
    data: Optional[FlowEdgeData] = None

    @property
    def explicit_condition(self) -> Optional[str]:
        if self.data is None:
            return None
        condition = self.data.condition
        if isinstance(condition, str) and condition.strip():
            return condition
        return None


class FlowGraph(BaseModel):
    nodes: List[FlowNode] = Field(default_factory=list)
    edges: List[FlowEdge] = Field(default_factory=list)

    @classmethod
    def from_payload(
        cls, nodes: Optional[List[Any]], edges: Optional[List[Any]] = None
    ) -> "FlowGraph":
        return cls.model_validate({"nodes": nodes or [], "edges": edges or []})

    def node_map(self) -> Dict[str, FlowNode]:
        return {node.id: node for node in self.nodes}

    def incoming(self) -> Dict[str, List[FlowEdge]]:
        mapping: Dict[str, List[FlowEdge]] = {}
        for edge in self.edges:
            mapping.setdefault(edge.target, []).append(edge)
        return mapping

    def outgoing(self) -> Dict[str, List[FlowEdge]]:
        mapping: Dict[str, List[FlowEdge]] = {}
        for edge in self.edges:
            mapping.setdefault(edge.source, []).append(edge)
        return mapping
