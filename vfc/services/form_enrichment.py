"""
Form enrichment: copy stored form definitions into form nodes before compiling.

The compiler only sees what is on the node, so form names and field lists must
be loaded from storage first for the collection prompt and tool registration.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Protocol

from pydantic import BaseModel, Field

from vfc.ir.flow_schema import FORM_CATEGORIES, FlowNode, FormField

LOGGER = logging.getLogger(__name__)


class FormRecord(BaseModel):
    id: str
    name: str
    fields: List[FormField] = Field(default_factory=list)


class FormLookup(Protocol):
    def get_form(self, form_id: str) -> Optional[FormRecord]:
        ...


class InMemoryFormLookup:
    def __init__(self, forms: Optional[Iterable[FormRecord]] = None) -> None:
        self._forms: Dict[str, FormRecord] = {form.id: form for form in forms or []}

    def add(self, form: FormRecord) -> None:
        self._forms[form.id] = form

    def get_form(self, form_id: str) -> Optional[FormRecord]:
        return self._forms.get(form_id)


def enrich_form_node(node: FlowNode, lookup: FormLookup) -> FlowNode:
    if node.category not in FORM_CATEGORIES:
        return node
    form_id = node.config.get("formId")
    if not form_id:
        return node

    try:
        form = lookup.get_form(str(form_id))
    except Exception as exc:
        LOGGER.warning("Failed to load form %s for node %s: %s", form_id, node.id, exc)
        return node
    if form is None:
        LOGGER.warning("Form %s referenced by node %s was not found", form_id, node.id)
        return node

    config = dict(node.config)
    config["formName"] = form.name
    config["fields"] = [field.model_dump(by_alias=True) for field in form.fields]
    data = node.data.model_copy(update={"config": config})
    LOGGER.info(
        "Loaded form %r with %d fields for node %s", form.name, len(form.fields), node.id
    )
    return node.model_copy(update={"data": data})


def enrich_form_nodes(nodes: Iterable[FlowNode], lookup: FormLookup) -> List[FlowNode]:
    return [enrich_form_node(node, lookup) for node in nodes]
