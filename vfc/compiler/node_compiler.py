"""
Per-node compilation from flow nodes to workflow nodes.

Dispatch is a table keyed by NodeCategory. Every member must have a handler;
NodeCategory.UNKNOWN is the deliberate fallback for unrecognized categories.
Start/trigger and condition nodes are structural and compile to nothing.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, ValidationError

from vfc.compiler import prompts
from vfc.ir.flow_schema import (
    AGENT_TRANSFER_CATEGORIES,
    BRANCH_CATEGORIES,
    DELAY_CATEGORIES,
    FORM_CATEGORIES,
    PHONE_TRANSFER_CATEGORIES,
    TERMINAL_CATEGORIES,
    TRIGGER_CATEGORIES,
    WEBHOOK_CATEGORIES,
    FlowNode,
    FormField,
    NodeCategory,
)
from vfc.ir.workflow_schema import (
    EndNode,
    OverrideAgentNode,
    PhoneNumberNode,
    PhoneTransferDestination,
    StandaloneAgentNode,
    ToolNode,
    ToolReference,
    WorkflowNode,
)

LOGGER = logging.getLogger(__name__)

HttpMethod = Literal["GET", "POST", "PUT", "PATCH", "DELETE"]
HTTP_METHODS = ("GET", "POST", "PUT", "PATCH", "DELETE")
TRANSFER_TYPES = ("conference", "blind")

DEFAULT_MESSAGE = "Hello"
DEFAULT_QUESTION = "How can I help you?"
DEFAULT_APPOINTMENT_INTRO = "I can help you schedule an appointment."
DEFAULT_FORM_INTRO = "I need to collect some information from you."
DEFAULT_WAIT_MESSAGE = "One moment please..."
DEFAULT_FALLBACK_MESSAGE = "How may I assist you?"


class FormNodeInfo(BaseModel):
    form_id: str
    form_name: str
    fields: List[FormField] = Field(default_factory=list)


class WebhookNodeInfo(BaseModel):
    tool_id: str
    url: str
    method: HttpMethod = "POST"
    headers: Optional[Dict[str, Any]] = None
    payload: Optional[Dict[str, Any]] = None


class PlayAudioNodeInfo(BaseModel):
    node_id: str
    audio_url: str
    audio_file_name: str
    interruptible: bool = False
    wait_for_complete: bool = True


class NodeCompilation(BaseModel):
    """A compiled node (or None for structural nodes) plus registration facts."""

    node: Optional[WorkflowNode] = None
    has_transfer: bool = False
    has_appointment: bool = False
    has_form: bool = False
    form_node: Optional[FormNodeInfo] = None
    webhook_node: Optional[WebhookNodeInfo] = None
    play_audio_node: Optional[PlayAudioNodeInfo] = None
    tool_ids: List[str] = Field(default_factory=list)


def _first(*values: Any) -> Any:
    for value in values:
        if value:
            return value
    return None


def _as_int(value: Any, default: int, *, node_id: str, key: str) -> int:
    if value is None or value == "":
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        LOGGER.warning("Node %s has non-integer %s=%r; using %s", node_id, key, value, default)
        return default


def node_label(node: FlowNode) -> str:
    config = node.config
    return str(_first(config.get("label"), config.get("name"), node.data.label, node.raw_category))


def _override(node: FlowNode, prompt: str, tool_ids: Optional[List[str]] = None) -> OverrideAgentNode:
    return OverrideAgentNode(
        position=node.position,
        label=node_label(node),
        additional_prompt=prompt,
        additional_tool_ids=list(tool_ids or []),
    )


def _preview(text: str, limit: int = 50) -> str:
    return text if len(text) <= limit else text[:limit] + "..."


def _compile_structural(node: FlowNode) -> NodeCompilation:
    return NodeCompilation()


def _compile_message(node: FlowNode) -> NodeCompilation:
    text = str(node.config.get("message") or DEFAULT_MESSAGE)
    LOGGER.debug("Compiling message node %s: %r", node.id, _preview(text))
    return NodeCompilation(node=_override(node, prompts.message_prompt(text)))


def _compile_question(node: FlowNode) -> NodeCompilation:
    text = str(_first(node.config.get("question"), node.config.get("message")) or DEFAULT_QUESTION)
    LOGGER.debug("Compiling question node %s: %r", node.id, _preview(text))
    return NodeCompilation(node=_override(node, prompts.question_prompt(text)))


def _compile_appointment(node: FlowNode) -> NodeCompilation:
    config = node.config
    intro = str(
        _first(config.get("message"), config.get("introMessage")) or DEFAULT_APPOINTMENT_INTRO
    )
    return NodeCompilation(
        node=_override(node, prompts.appointment_prompt(intro, config)),
        has_appointment=True,
    )


def _form_fields(node: FlowNode) -> List[FormField]:
    fields: List[FormField] = []
    for index, raw in enumerate(node.config.get("fields") or []):
        if not isinstance(raw, dict):
            continue
        payload = dict(raw)
        payload.setdefault("order", index)
        try:
            fields.append(FormField.model_validate(payload))
        except ValidationError as exc:
            LOGGER.warning("Form node %s: skipping malformed field %r: %s", node.id, raw, exc)
    return fields


def submit_form_tool_id(form_id: str) -> str:
    return f"{prompts.SUBMIT_FORM_TOOL}_{form_id[-8:]}"


def _compile_form(node: FlowNode) -> NodeCompilation:
    config = node.config
    intro = str(_first(config.get("message"), config.get("introMessage")) or DEFAULT_FORM_INTRO)
    form_id = config.get("formId")
    form_name = str(config.get("formName") or prompts.DEFAULT_FORM_NAME)
    fields = _form_fields(node)
    LOGGER.debug("Compiling form node %s: form=%s fields=%d", node.id, form_id, len(fields))

    tool_ids: List[str] = []
    form_node: Optional[FormNodeInfo] = None
    if form_id:
        form_id = str(form_id)
        tool_ids.append(submit_form_tool_id(form_id))
        form_node = FormNodeInfo(form_id=form_id, form_name=form_name, fields=fields)

    return NodeCompilation(
        node=_override(node, prompts.form_prompt(intro, form_name, fields), tool_ids),
        has_form=True,
        form_node=form_node,
        tool_ids=tool_ids,
    )


def _compile_delay(node: FlowNode) -> NodeCompilation:
    config = node.config
    text = str(_first(config.get("message"), config.get("waitMessage")) or DEFAULT_WAIT_MESSAGE)
    return NodeCompilation(node=_override(node, prompts.delay_prompt(text)))


def _compile_phone_transfer(node: FlowNode) -> NodeCompilation:
    config = node.config
    phone_number = str(
        _first(config.get("phoneNumber"), config.get("transferNumber"), config.get("number")) or ""
    )
    transfer_type = str(config.get("transferType") or "conference")
    if transfer_type not in TRANSFER_TYPES:
        LOGGER.warning(
            "Transfer node %s has unknown transferType %r; using conference", node.id, transfer_type
        )
        transfer_type = "conference"
    return NodeCompilation(
        node=PhoneNumberNode(
            position=node.position,
            transfer_destination=PhoneTransferDestination(phone_number=phone_number),
            transfer_type=transfer_type,
        ),
        has_transfer=True,
    )


def _compile_agent_transfer(node: FlowNode) -> NodeCompilation:
    config = node.config
    enable_first_message = config.get("enableFirstMessage")
    return NodeCompilation(
        node=StandaloneAgentNode(
            position=node.position,
            agent_id=str(_first(config.get("agentId"), config.get("agent_id")) or ""),
            delay_ms=_as_int(config.get("delay_ms"), 0, node_id=node.id, key="delay_ms"),
            enable_transferred_agent_first_message=(
                True if enable_first_message is None else bool(enable_first_message)
            ),
        )
    )


def _compile_end(node: FlowNode) -> NodeCompilation:
    return NodeCompilation(node=EndNode(position=node.position))


def _compile_webhook(node: FlowNode) -> NodeCompilation:
    # Templates may store webhook properties on `data` instead of `data.config`.
    config = node.config
    tool_id = str(
        _first(
            config.get("toolId"),
            config.get("tool_id"),
            config.get("name"),
            node.data_field("toolId"),
            node.data_field("tool_id"),
            node.data_field("name"),
        )
        or f"webhook_{node.id}"
    )
    url = _first(
        config.get("url"),
        config.get("webhookUrl"),
        node.data_field("url"),
        node.data_field("webhookUrl"),
    )
    method = str(_first(config.get("method"), node.data_field("method")) or "POST").upper()
    if method not in HTTP_METHODS:
        LOGGER.warning("Webhook node %s has unsupported method %r; using POST", node.id, method)
        method = "POST"
    headers = _first(config.get("headers"), node.data_field("headers"))
    payload = _first(config.get("payload"), node.data_field("payload"))

    webhook_node: Optional[WebhookNodeInfo] = None
    if url:
        webhook_node = WebhookNodeInfo(
            tool_id=tool_id,
            url=str(url),
            method=method,
            headers=headers if isinstance(headers, dict) else None,
            payload=payload if isinstance(payload, dict) else None,
        )
        LOGGER.debug("Webhook node configured: %s -> %s %s", tool_id, method, url)
    else:
        LOGGER.warning("Webhook node %s has no URL configured", node.id)

    return NodeCompilation(
        node=ToolNode(position=node.position, tools=[ToolReference(tool_id=tool_id)]),
        webhook_node=webhook_node,
        tool_ids=[tool_id],
    )


def play_audio_tool_id(node_id: str) -> str:
    return f"play_audio_{node_id[-8:]}"


def _compile_play_audio(node: FlowNode) -> NodeCompilation:
    config = node.config
    audio_url = str(config.get("audioUrl") or "")
    if not audio_url:
        LOGGER.warning("Play audio node %s has no audio URL configured", node.id)
    interruptible = config.get("interruptible")
    wait_for_complete = config.get("waitForComplete")
    tool_id = play_audio_tool_id(node.id)
    return NodeCompilation(
        node=ToolNode(position=node.position, tools=[ToolReference(tool_id=tool_id)]),
        play_audio_node=PlayAudioNodeInfo(
            node_id=node.id,
            audio_url=audio_url,
            audio_file_name=str(config.get("audioFileName") or "audio"),
            interruptible=False if interruptible is None else bool(interruptible),
            wait_for_complete=True if wait_for_complete is None else bool(wait_for_complete),
        ),
        tool_ids=[tool_id],
    )


def _compile_fallback(node: FlowNode) -> NodeCompilation:
    text = str(
        _first(node.config.get("message"), node.config.get("text")) or DEFAULT_FALLBACK_MESSAGE
    )
    LOGGER.info("Compiling unrecognized node type %r (%s) as subagent", node.raw_category, node.id)
    return NodeCompilation(node=_override(node, prompts.message_prompt(text)))


Handler = Callable[[FlowNode], NodeCompilation]

_HANDLERS: Dict[NodeCategory, Handler] = {
    NodeCategory.MESSAGE: _compile_message,
    NodeCategory.QUESTION: _compile_question,
    NodeCategory.APPOINTMENT: _compile_appointment,
    NodeCategory.PLAY_AUDIO: _compile_play_audio,
    NodeCategory.UNKNOWN: _compile_fallback,
    # "greeting" only changes edge defaults; its node compiles like any unrecognized step.
    NodeCategory.GREETING: _compile_fallback,
}
for _group, _handler in (
    (TRIGGER_CATEGORIES, _compile_structural),
    (BRANCH_CATEGORIES, _compile_structural),
    (FORM_CATEGORIES, _compile_form),
    (DELAY_CATEGORIES, _compile_delay),
    (PHONE_TRANSFER_CATEGORIES, _compile_phone_transfer),
    (AGENT_TRANSFER_CATEGORIES, _compile_agent_transfer),
    (TERMINAL_CATEGORIES, _compile_end),
    (WEBHOOK_CATEGORIES, _compile_webhook),
):
    for _category in _group:
        _HANDLERS[_category] = _handler

_UNHANDLED = set(NodeCategory) - set(_HANDLERS)
if _UNHANDLED:
    raise RuntimeError(
        "Node categories without a compile handler: "
        + ", ".join(sorted(item.value for item in _UNHANDLED))
    )


def handler_for(category: NodeCategory) -> Handler:
    return _HANDLERS[category]


def compile_node(node: FlowNode) -> NodeCompilation:
    return handler_for(node.category)(node)
