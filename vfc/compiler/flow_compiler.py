"""
Visual flow to voice-agent workflow compiler.

Pipeline per compile call:
  entry resolution -> node compilation -> edge/condition resolution
  (including branch expansion) -> assembly.

All accumulators live in a fresh WorkflowAssembler/_Facts pair created inside
`compile`, so one FlowCompiler instance can be shared between callers.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from pydantic import BaseModel, Field

from vfc.compiler.assembler import DroppedEdge, FlowCompilerError, WorkflowAssembler
from vfc.compiler.branch_resolver import BranchResolver
from vfc.compiler.conditions import resolve_edge_condition
from vfc.compiler.entry_resolver import EntryResolver
from vfc.compiler.node_compiler import (
    FormNodeInfo,
    NodeCompilation,
    PlayAudioNodeInfo,
    WebhookNodeInfo,
    compile_node,
)
from vfc.config import CompilerSettings
from vfc.ir.flow_schema import TRIGGER_CATEGORIES, FlowGraph
from vfc.ir.validators import ValidationReport, validate_workflow
from vfc.ir.workflow_schema import Workflow
from vfc.runtime.telemetry import TelemetryCollector

LOGGER = logging.getLogger(__name__)


class EmptyFlowError(FlowCompilerError):
    """Raised when a flow has no nodes at all."""


class CompileResult(BaseModel):
    workflow: Workflow
    entry_node_id: Optional[str] = None
    first_message: Optional[str] = None
    has_transfer_nodes: bool = False
    has_appointment_nodes: bool = False
    has_form_nodes: bool = False
    form_nodes: List[FormNodeInfo] = Field(default_factory=list)
    has_webhook_nodes: bool = False
    webhook_nodes: List[WebhookNodeInfo] = Field(default_factory=list)
    has_play_audio_nodes: bool = False
    play_audio_nodes: List[PlayAudioNodeInfo] = Field(default_factory=list)
    tool_ids: List[str] = Field(default_factory=list)
    dropped_edges: List[DroppedEdge] = Field(default_factory=list)
    trace_id: Optional[str] = None

    def validate_workflow(self) -> ValidationReport:
        return validate_workflow(self.workflow, start_node_id=self._start_node_id())

    def _start_node_id(self) -> str:
        starts = self.workflow.start_node_ids()
        return starts[0] if starts else CompilerSettings().start_node_id


class _Facts:
    def __init__(self) -> None:
        self.has_transfer = False
        self.has_appointment = False
        self.has_form = False
        self.form_nodes: List[FormNodeInfo] = []
        self.webhook_nodes: List[WebhookNodeInfo] = []
        self.play_audio_nodes: List[PlayAudioNodeInfo] = []
        self.tool_ids: List[str] = []

    def absorb(self, compiled: NodeCompilation) -> None:
        self.has_transfer = self.has_transfer or compiled.has_transfer
        self.has_appointment = self.has_appointment or compiled.has_appointment
        self.has_form = self.has_form or compiled.has_form
        if compiled.form_node is not None:
            self.form_nodes.append(compiled.form_node)
        if compiled.webhook_node is not None:
            self.webhook_nodes.append(compiled.webhook_node)
        if compiled.play_audio_node is not None:
            self.play_audio_nodes.append(compiled.play_audio_node)
        self.tool_ids.extend(compiled.tool_ids)


class FlowCompiler:
    def __init__(
        self,
        *,
        settings: Optional[CompilerSettings] = None,
        telemetry: Optional[TelemetryCollector] = None,
    ) -> None:
        self.settings = settings or CompilerSettings()
        self.telemetry = telemetry
        self.entry_resolver = EntryResolver()

    def compile(self, graph: FlowGraph) -> CompileResult:
        if not graph.nodes:
            raise EmptyFlowError("Flow has no nodes to compile.")

        LOGGER.info(
            "Compiling flow: %d nodes, %d edges", len(graph.nodes), len(graph.edges)
        )
        trace_id = None
        if self.telemetry is not None:
            trace_id = self.telemetry.start_trace(
                "flow", nodes=len(graph.nodes), edges=len(graph.edges)
            )

        assembler = WorkflowAssembler(
            start_node_id=self.settings.start_node_id,
            start_edge_id=self.settings.start_edge_id,
            strict=self.settings.strict_dangling_edges,
        )
        facts = _Facts()

        entry = self.entry_resolver.resolve(graph)

        for node in graph.nodes:
            compiled = compile_node(node)
            facts.absorb(compiled)
            if compiled.node is not None:
                assembler.add_node(node.id, compiled.node)

        assembler.connect_start(entry.node_id)
        self._connect_edges(graph, assembler)

        if self.telemetry is not None and trace_id is not None:
            for dropped in assembler.dropped:
                self.telemetry.log(trace_id, "edge_dropped", **dropped.model_dump())

        workflow = assembler.build()
        result = CompileResult(
            workflow=workflow,
            entry_node_id=entry.node_id,
            first_message=entry.first_message,
            has_transfer_nodes=facts.has_transfer,
            has_appointment_nodes=facts.has_appointment,
            has_form_nodes=facts.has_form,
            form_nodes=facts.form_nodes,
            has_webhook_nodes=bool(facts.webhook_nodes),
            webhook_nodes=facts.webhook_nodes,
            has_play_audio_nodes=bool(facts.play_audio_nodes),
            play_audio_nodes=facts.play_audio_nodes,
            tool_ids=facts.tool_ids,
            dropped_edges=list(assembler.dropped),
            trace_id=trace_id,
        )
        self._log_summary(result)
        if self.telemetry is not None and trace_id is not None:
            self.telemetry.log(
                trace_id,
                "compile_finished",
                nodes=len(workflow.nodes),
                edges=len(workflow.edges),
                dropped_edges=len(result.dropped_edges),
                tool_ids=list(result.tool_ids),
            )
        return result

    def _connect_edges(self, graph: FlowGraph, assembler: WorkflowAssembler) -> None:
        nodes = graph.node_map()
        branches = BranchResolver(graph)

        for edge in graph.edges:
            source = nodes.get(edge.source)
            target = nodes.get(edge.target)
            # Trigger nodes are replaced by the injected start node and its own edge.
            if source is not None and source.category in TRIGGER_CATEGORIES:
                continue
            if target is not None and target.category in TRIGGER_CATEGORIES:
                continue
            # Edges leaving a branch are emitted when the edge entering it is expanded.
            if branches.is_branch(edge.source):
                continue

            if branches.is_branch(edge.target):
                for expanded in branches.expand(edge):
                    assembler.connect(
                        expanded.source,
                        expanded.target,
                        expanded.condition,
                        origin_edge_id=edge.id,
                    )
                continue

            assembler.connect(
                edge.source,
                edge.target,
                resolve_edge_condition(source, edge),
                origin_edge_id=edge.id,
            )

    @staticmethod
    def _log_summary(result: CompileResult) -> None:
        workflow = result.workflow
        LOGGER.info(
            "Compiled workflow: %d nodes, %d edges (transfer nodes: %s, tool ids: %s)",
            len(workflow.nodes),
            len(workflow.edges),
            result.has_transfer_nodes,
            ", ".join(result.tool_ids) or "none",
        )
        if not LOGGER.isEnabledFor(logging.DEBUG):
            return
        for node_id, node in workflow.nodes.items():
            label = getattr(node, "label", "")
            LOGGER.debug(
                "  [%s] type=%s edges=%d%s",
                node_id,
                node.type,
                len(node.edge_order),
                f' label="{label}"' if label else "",
            )
        for edge_id, edge in workflow.edges.items():
            condition = edge.forward_condition
            detail = f' "{condition.condition[:30]}..."' if condition.type == "llm" else ""
            LOGGER.debug(
                "  [%s] %s -> %s (%s%s)", edge_id, edge.source, edge.target, condition.type, detail
            )


def compile_graph(
    graph: FlowGraph, *, settings: Optional[CompilerSettings] = None
) -> CompileResult:
    return FlowCompiler(settings=settings).compile(graph)
