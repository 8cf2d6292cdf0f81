"""
Typed output representation: the workflow graph understood by the voice-agent runtime.

Field names and `type` tags are serialized verbatim to the runtime's update API.
"""

from __future__ import annotations

import json
from typing import Annotated, Any, Dict, List, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from vfc.ir.flow_schema import Position


class StrictModel(BaseModel):
    """Base model that rejects undeclared fields."""

    model_config = ConfigDict(extra="forbid")


# Forward conditions


class UnconditionalCondition(StrictModel):
    type: Literal["unconditional"] = "unconditional"


class LLMCondition(StrictModel):
    type: Literal["llm"] = "llm"
    condition: str


class ResultCondition(StrictModel):
    type: Literal["result"] = "result"
    successful: bool


class ExpressionCondition(StrictModel):
    type: Literal["expression"] = "expression"
    expression: Any


ForwardCondition = Annotated[
    Union[UnconditionalCondition, LLMCondition, ResultCondition, ExpressionCondition],
    Field(discriminator="type"),
]


# Nodes


class BaseWorkflowNode(StrictModel):
    position: Position = Field(default_factory=Position)
    edge_order: List[str] = Field(default_factory=list)


class StartNode(BaseWorkflowNode):
    type: Literal["start"] = "start"


class EndNode(BaseWorkflowNode):
    type: Literal["end"] = "end"


class OverrideAgentNode(BaseWorkflowNode):
    """Scripted subagent step: the agent is locked to `additional_prompt`."""

    type: Literal["override_agent"] = "override_agent"
    label: str
    override_prompt: bool = True
    additional_prompt: str
    additional_tool_ids: List[str] = Field(default_factory=list)
    additional_knowledge_base: List[Any] = Field(default_factory=list)
    # The runtime ignores first_message on workflow nodes and requires an empty object here.
    conversation_config: Dict[str, Any] = Field(default_factory=dict)


class PhoneTransferDestination(StrictModel):
    type: Literal["phone"] = "phone"
    phone_number: str = ""


class PhoneNumberNode(BaseWorkflowNode):
    type: Literal["phone_number"] = "phone_number"
    transfer_destination: PhoneTransferDestination = Field(
        default_factory=PhoneTransferDestination
    )
    transfer_type: Literal["conference", "blind"] = "conference"


class StandaloneAgentNode(BaseWorkflowNode):
    type: Literal["standalone_agent"] = "standalone_agent"
    agent_id: str = ""
    delay_ms: int = 0
    enable_transferred_agent_first_message: bool = True


class ToolReference(StrictModel):
    tool_id: str


class ToolNode(BaseWorkflowNode):
    type: Literal["tool"] = "tool"
    tools: List[ToolReference] = Field(default_factory=list)


WorkflowNode = Annotated[
    Union[
        StartNode,
        EndNode,
        OverrideAgentNode,
        PhoneNumberNode,
        StandaloneAgentNode,
        ToolNode,
    ],
    Field(discriminator="type"),
]

# Nodes that legitimately end a conversation path without outgoing edges.
TERMINAL_NODE_TYPES = frozenset({"end", "phone_number", "standalone_agent"})


class WorkflowEdge(StrictModel):
    source: str
    target: str
    forward_condition: ForwardCondition


class Workflow(StrictModel):
    nodes: Dict[str, WorkflowNode] = Field(default_factory=dict)
    edges: Dict[str, WorkflowEdge] = Field(default_factory=dict)

    def outgoing(self, node_id: str) -> List[WorkflowEdge]:
        node = self.nodes.get(node_id)
        if node is None:
            return []
        return [self.edges[edge_id] for edge_id in node.edge_order if edge_id in self.edges]

    def start_node_ids(self) -> List[str]:
        return [node_id for node_id, node in self.nodes.items() if node.type == "start"]

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_payload(), indent=indent)
