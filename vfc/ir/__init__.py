from vfc.ir.flow_schema import (
    FlowEdge,
    FlowGraph,
    FlowNode,
    FormField,
    NodeCategory,
    Position,
)
from vfc.ir.validators import ValidationReport, WorkflowValidationError, validate_workflow
from vfc.ir.workflow_schema import (
    EndNode,
    ExpressionCondition,
    LLMCondition,
    OverrideAgentNode,
    PhoneNumberNode,
    ResultCondition,
    StandaloneAgentNode,
    StartNode,
    ToolNode,
    UnconditionalCondition,
    Workflow,
    WorkflowEdge,
)

__all__ = [
    "EndNode",
    "ExpressionCondition",
    "FlowEdge",
    "FlowGraph",
    "FlowNode",
    "FormField",
    "LLMCondition",
    "NodeCategory",
    "OverrideAgentNode",
    "PhoneNumberNode",
    "Position",
    "ResultCondition",
    "StandaloneAgentNode",
    "StartNode",
    "ToolNode",
    "UnconditionalCondition",
    "ValidationReport",
    "Workflow",
    "WorkflowEdge",
    "WorkflowValidationError",
    "validate_workflow",
]
