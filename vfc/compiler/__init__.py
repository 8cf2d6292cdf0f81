from vfc.compiler.assembler import DanglingEdgeError, FlowCompilerError, WorkflowAssembler
from vfc.compiler.branch_resolver import BranchResolver, NamedCondition, NoCondition, Unconditional
from vfc.compiler.entry_resolver import EntryResolution, EntryResolver
from vfc.compiler.flow_compiler import CompileResult, EmptyFlowError, FlowCompiler, compile_graph
from vfc.compiler.node_compiler import (
    FormNodeInfo,
    NodeCompilation,
    PlayAudioNodeInfo,
    WebhookNodeInfo,
    compile_node,
)

__all__ = [
    "BranchResolver",
    "CompileResult",
    "DanglingEdgeError",
    "EmptyFlowError",
    "EntryResolution",
    "EntryResolver",
    "FlowCompiler",
    "FlowCompilerError",
    "FormNodeInfo",
    "NamedCondition",
    "NoCondition",
    "NodeCompilation",
    "PlayAudioNodeInfo",
    "Unconditional",
    "WebhookNodeInfo",
    "WorkflowAssembler",
    "compile_graph",
    "compile_node",
]
