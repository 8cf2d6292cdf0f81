"""
FastAPI router for the flow compiler.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field, ValidationError

from vfc.compiler.assembler import FlowCompilerError
from vfc.config import CompilerSettings
from vfc.ir.flow_schema import FlowGraph
from vfc.services.compile_service import CompileService


class CompileRequest(BaseModel):
    nodes: List[Dict[str, Any]] = Field(default_factory=list)
    edges: List[Dict[str, Any]] = Field(default_factory=list)
    strict_dangling_edges: Optional[bool] = None


class CompileResponse(BaseModel):
    workflow: Dict[str, Any]
    summary: Dict[str, Any]
    valid: bool
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)


router = APIRouter(prefix="/vfc", tags=["vfc"])


@router.get("/health")
def health() -> Dict[str, str]:
    return {"status": "ok"}


@router.post("/compile", response_model=CompileResponse)
def compile_flow(payload: CompileRequest) -> CompileResponse:
    settings = CompilerSettings.from_env(strict_dangling_edges=payload.strict_dangling_edges)
    try:
        graph = FlowGraph.from_payload(payload.nodes, payload.edges)
        compilation = CompileService(settings=settings).compile(graph)
    except (ValidationError, FlowCompilerError) as exc:
        raise HTTPException(status_code=400, detail=str(exc))

    summary = compilation.summary()
    validation = summary.pop("validation")
    return CompileResponse(
        workflow=compilation.workflow.to_payload(),
        summary=summary,
        valid=validation["valid"],
        errors=validation["errors"],
        warnings=validation["warnings"],
    )
