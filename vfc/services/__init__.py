"""
Compilation stage services.
"""

from vfc.services.compile_service import CompileService, FlowCompilation, compile_flow
from vfc.services.form_enrichment import (
    FormLookup,
    FormRecord,
    InMemoryFormLookup,
    enrich_form_node,
    enrich_form_nodes,
)

__all__ = [
    "CompileService",
    "FlowCompilation",
    "FormLookup",
    "FormRecord",
    "InMemoryFormLookup",
    "compile_flow",
    "enrich_form_node",
    "enrich_form_nodes",
]
