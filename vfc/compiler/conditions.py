"""
Forward-condition synthesis for edges between two real (compiled) nodes.

Resolution order, first match wins:
  1. explicit condition text authored on the edge
  2. a semantic source handle (yes/no/transfer/clarify/silence ports)
  3. the source node's wait-for-response setting (explicit or per-category default)
"""

from __future__ import annotations

from typing import Any, Dict, FrozenSet, Optional, Tuple

from vfc.compiler.prompts import APPOINTMENT_COMPLETION_PHRASE, FORM_COMPLETION_PHRASE
from vfc.ir.flow_schema import FORM_CATEGORIES, FlowEdge, FlowNode, NodeCategory
from vfc.ir.workflow_schema import LLMCondition, UnconditionalCondition


class LLMConditions:
    """Natural-language condition texts evaluated by the runtime's own model."""

    GENERIC_RESPONSE = (
        "The user has verbally responded with any answer. "
        "Continue to the next step in the workflow."
    )
    QUESTION_ANSWERED = (
        "The user has provided an answer or response to the question. "
        "They have given information, a number, a name, an address, or any substantive reply. "
        "Proceed to the next step."
    )
    YES_ACCEPTANCE = (
        "The user agreed, said yes, confirmed positively, or expressed interest."
    )
    NO_REJECTION = "The user declined, said no, refused, or expressed disinterest."
    TRANSFER_INTENT = (
        "The user requested to speak with a human, transfer the call, "
        "or be connected to support."
    )
    CONFUSION = (
        "The user sounded confused or asked for clarification. Ask again politely."
    )
    SILENCE = "The user did not respond or remained silent. Ask again or prompt gently."
    FORM_COMPLETE = (
        f"The agent has said '{FORM_COMPLETION_PHRASE[:-1]}' or a very similar confirmation "
        "phrase indicating the form submission is complete. "
        "Do not transition until this phrase is spoken."
    )
    APPOINTMENT_COMPLETE = (
        f"The agent has said '{APPOINTMENT_COMPLETION_PHRASE[:-1]}' or a very similar "
        "confirmation phrase indicating the appointment is confirmed. "
        "Do not transition until this phrase is spoken."
    )


HANDLE_CONDITIONS: Tuple[Tuple[FrozenSet[str], str], ...] = (
    (frozenset({"yes", "true", "accept", "agree"}), LLMConditions.YES_ACCEPTANCE),
    (frozenset({"no", "false", "reject", "decline"}), LLMConditions.NO_REJECTION),
    (frozenset({"transfer", "human", "agent"}), LLMConditions.TRANSFER_INTENT),
    (frozenset({"question", "confused", "clarify"}), LLMConditions.CONFUSION),
    (frozenset({"silence", "noresponse", "timeout"}), LLMConditions.SILENCE),
)

WAIT_BY_DEFAULT: FrozenSet[NodeCategory] = frozenset(
    {NodeCategory.QUESTION, NodeCategory.APPOINTMENT} | FORM_CATEGORIES
)

QUESTION_QUOTE_LIMIT = 100
MESSAGE_QUOTE_LIMIT = 80


def _quote(text: str, limit: int) -> str:
    return text[:limit].replace("'", "").replace('"', "")


def handle_condition(source_handle: Optional[str]) -> Optional[str]:
    if not source_handle:
        return None
    handle = source_handle.lower()
    for names, condition in HANDLE_CONDITIONS:
        if handle in names:
            return condition
    return None


def waits_for_response(category: NodeCategory, config: Dict[str, Any]) -> bool:
    explicit = config.get("waitForResponse")
    if isinstance(explicit, bool):
        return explicit
    return category in WAIT_BY_DEFAULT


def wait_condition(category: NodeCategory, config: Dict[str, Any]) -> LLMCondition:
    if category is NodeCategory.QUESTION:
        question = config.get("message") or config.get("question") or config.get("text") or ""
        if not question:
            return LLMCondition(condition=LLMConditions.QUESTION_ANSWERED)
        short_question = _quote(str(question), QUESTION_QUOTE_LIMIT)
        return LLMCondition(
            condition=(
                f'The agent just asked: "{short_question}" and the user has now responded '
                "specifically to THIS question. The user's response directly addresses what "
                "was just asked. Proceed only after the user responds to this specific question."
            )
        )
    if category in FORM_CATEGORIES:
        return LLMCondition(condition=LLMConditions.FORM_COMPLETE)
    if category is NodeCategory.APPOINTMENT:
        return LLMCondition(condition=LLMConditions.APPOINTMENT_COMPLETE)
    if category in (NodeCategory.MESSAGE, NodeCategory.GREETING):
        message = config.get("message") or config.get("text") or ""
        if message:
            short_message = _quote(str(message), MESSAGE_QUOTE_LIMIT)
            return LLMCondition(
                condition=(
                    f'The agent said: "{short_message}..." and is waiting for the user to '
                    "respond before proceeding. Wait for the user to speak."
                )
            )
    return LLMCondition(condition=LLMConditions.GENERIC_RESPONSE)


def resolve_edge_condition(source: Optional[FlowNode], edge: FlowEdge):
    """Return the ForwardCondition for a direct edge leaving `source`."""

    explicit = edge.explicit_condition
    if explicit:
        return LLMCondition(condition=explicit)

    semantic = handle_condition(edge.source_handle)
    if semantic:
        return LLMCondition(condition=semantic)

    category = source.category if source is not None else NodeCategory.UNKNOWN
    config = source.config if source is not None else {}
    if not waits_for_response(category, config):
        return UnconditionalCondition()
    return wait_condition(category, config)
