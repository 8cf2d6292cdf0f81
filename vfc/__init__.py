"""Visual flow to voice-agent workflow compiler package."""

from vfc.compiler.flow_compiler import CompileResult, FlowCompiler
from vfc.services.compile_service import FlowCompilation, compile_flow

__all__ = ["FlowCompiler", "CompileResult", "FlowCompilation", "compile_flow"]
