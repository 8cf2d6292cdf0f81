"""
Compile-stage service: enrichment, compilation and validation in one call.
"""

from __future__ import annotations

import logging
from typing import Any, List, Optional

from pydantic import BaseModel

from vfc.compiler.flow_compiler import CompileResult, FlowCompiler
from vfc.config import CompilerSettings
from vfc.ir.flow_schema import FlowGraph
from vfc.ir.validators import ValidationReport, validate_workflow
from vfc.ir.workflow_schema import Workflow
from vfc.runtime.telemetry import TelemetryCollector
from vfc.services.form_enrichment import FormLookup, enrich_form_nodes

LOGGER = logging.getLogger(__name__)


class FlowCompilation(BaseModel):
    result: CompileResult
    validation: ValidationReport

    @property
    def workflow(self) -> Workflow:
        return self.result.workflow

    def summary(self) -> dict:
        payload = self.result.model_dump(mode="json", exclude={"workflow"})
        payload["validation"] = self.validation.model_dump()
        return payload


class CompileService:
    def __init__(
        self,
        *,
        settings: Optional[CompilerSettings] = None,
        form_lookup: Optional[FormLookup] = None,
        telemetry: Optional[TelemetryCollector] = None,
    ) -> None:
        self.settings = settings or CompilerSettings()
        self.form_lookup = form_lookup
        if telemetry is None and self.settings.telemetry_dir:
            telemetry = TelemetryCollector(self.settings.telemetry_dir)
        self.compiler = FlowCompiler(settings=self.settings, telemetry=telemetry)

    def compile(self, graph: FlowGraph) -> FlowCompilation:
        if not graph.nodes:
            LOGGER.info("Flow has no nodes; returning an empty workflow")
            result = CompileResult(workflow=Workflow())
            return FlowCompilation(result=result, validation=validate_workflow(result.workflow))

        if self.form_lookup is not None:
            graph = FlowGraph(
                nodes=enrich_form_nodes(graph.nodes, self.form_lookup),
                edges=graph.edges,
            )

        result = self.compiler.compile(graph)
        validation = result.validate_workflow()
        if not validation.valid:
            LOGGER.warning("Workflow validation errors: %s", validation.errors)
        if validation.warnings:
            LOGGER.warning("Workflow validation warnings: %s", validation.warnings)
        return FlowCompilation(result=result, validation=validation)


def compile_flow(
    nodes: Optional[List[Any]],
    edges: Optional[List[Any]] = None,
    *,
    settings: Optional[CompilerSettings] = None,
    form_lookup: Optional[FormLookup] = None,
) -> FlowCompilation:
    """Compile raw editor payloads (lists of node/edge dicts)."""

    graph = FlowGraph.from_payload(nodes, edges)
    return CompileService(settings=settings, form_lookup=form_lookup).compile(graph)
