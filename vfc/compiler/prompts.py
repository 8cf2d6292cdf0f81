"""
Locked-prompt templates embedded in override_agent nodes.

Every template either speaks a line verbatim and proceeds, or speaks it and
waits for the caller. Appointment and form templates additionally require a
literal completion phrase that the edge conditions key on.
"""

from __future__ import annotations

from typing import Any, Dict, List, Sequence

from vfc.ir.flow_schema import FormField

APPOINTMENT_COMPLETION_PHRASE = "Your appointment has been booked successfully."
FORM_COMPLETION_PHRASE = "Your information has been saved successfully."

BOOK_APPOINTMENT_TOOL = "book_appointment"
SUBMIT_FORM_TOOL = "submit_form"

DEFAULT_APPOINTMENT_DURATION = 30
DEFAULT_SERVICE_NAME = "appointment"
DEFAULT_FORM_NAME = "Data Collection"

PHONE_NUMBER_PRONUNCIATION_RULE = """PHONE NUMBER PRONUNCIATION: When reading back or confirming any phone number, ALWAYS speak each digit separately with brief pauses. For example:
- "9990155993" should be spoken as "nine, nine, nine, zero, one, five, five, nine, nine, three"
- Never read phone numbers as large numbers (do NOT say "nine hundred ninety-nine million...")
- Group digits in sets of 3 or 4 for natural reading rhythm"""

_WAIT_SUFFIX = "Then stop speaking and wait for response."

_FIELD_TYPE_HINTS: Dict[str, str] = {
    "yes_no": "Accept yes/no, yeah/nah, affirmative/negative responses",
    "number": "Collect a number",
    "email": "Collect email address, confirm spelling",
    "phone": "Accept any phone format",
    "rating": "Collect a rating, typically 1-5 or 1-10",
    "date": 'Accept natural language dates like "tomorrow", "next week"',
}


def say_and_proceed(text: str) -> str:
    # The outgoing edge is unconditional, so never ask the agent to wait here.
    return (
        f"Say exactly: '{text}' Do not add anything else. "
        "After speaking, proceed immediately to the next step."
    )


def message_prompt(text: str) -> str:
    return say_and_proceed(text)


def delay_prompt(wait_message: str) -> str:
    return say_and_proceed(wait_message)


def question_prompt(question: str) -> str:
    return f"Say exactly: '{question}' {_WAIT_SUFFIX} Do not add anything else."


def appointment_prompt(intro_message: str, config: Dict[str, Any]) -> str:
    service_name = config.get("serviceName") or config.get("service") or DEFAULT_SERVICE_NAME
    duration = config.get("duration") or DEFAULT_APPOINTMENT_DURATION
    return f"""Say exactly: '{intro_message}'

APPOINTMENT BOOKING INSTRUCTIONS:
1. After the caller responds, collect the following information:
   - Their name (if not already known)
   - Preferred date for the appointment
   - Preferred time for the appointment
   - Phone number (use the caller's number if available)
   - Email address (optional)

2. Once you have collected the date, time, and caller name, IMMEDIATELY use the {BOOK_APPOINTMENT_TOOL} tool to save the appointment.
   - Pass the caller's name as contactName
   - Pass the caller's phone number as contactPhone
   - Pass the date as appointmentDate (format: YYYY-MM-DD)
   - Pass the time as appointmentTime (format: HH:MM)
   - Pass {duration} as duration
   - Pass "{service_name}" as serviceName
   - Pass any notes as notes

3. CRITICAL: After successfully booking, you MUST say exactly: "{APPOINTMENT_COMPLETION_PHRASE}" This exact phrase signals completion.
4. If booking fails, apologize and try again or offer to transfer to a human.
5. Only after saying "{APPOINTMENT_COMPLETION_PHRASE[:-1]}" should you proceed to the next step.

{PHONE_NUMBER_PRONUNCIATION_RULE}

{_WAIT_SUFFIX}"""


def _field_instruction(index: int, field: FormField) -> str:
    instruction = f'{index}. Ask: "{field.question}"'
    if field.field_type == "multiple_choice":
        if field.options:
            instruction += f" (Options: {', '.join(field.options)})"
    elif field.field_type in _FIELD_TYPE_HINTS:
        instruction += f" ({_FIELD_TYPE_HINTS[field.field_type]})"
    if field.is_required:
        instruction += " [REQUIRED]"
    return instruction


def form_collection_prompt(
    intro_message: str, form_name: str, fields: Sequence[FormField]
) -> str:
    """Field-by-field collection script ending in a submit_form call."""

    ordered: List[FormField] = sorted(fields, key=lambda item: item.order)
    field_instructions = "\n".join(
        _field_instruction(index, field) for index, field in enumerate(ordered, start=1)
    )
    return f"""Say exactly: '{intro_message}'

FORM COLLECTION INSTRUCTIONS for "{form_name}":
After the caller responds, collect the following information in order:

{field_instructions}

IMPORTANT RULES:
1. Ask each question one at a time, wait for the response before proceeding.
2. If the caller's response is unclear, politely ask for clarification.
3. For required fields, do not skip - gently re-ask if needed.
4. Once all required fields are collected, use the {SUBMIT_FORM_TOOL} tool to save the responses.
5. CRITICAL: After successful submission, you MUST say exactly: "{FORM_COMPLETION_PHRASE}" This exact phrase signals completion.
6. If submission fails, apologize and try again.
7. Only after saying "{FORM_COMPLETION_PHRASE[:-1]}" should you proceed to the next step.

{PHONE_NUMBER_PRONUNCIATION_RULE}

{_WAIT_SUFFIX}"""


def form_prompt(intro_message: str, form_name: str, fields: Sequence[FormField]) -> str:
    if fields:
        return form_collection_prompt(intro_message, form_name, fields)
    return f"""Say exactly: '{intro_message}'

FORM COLLECTION INSTRUCTIONS for "{form_name}":
After speaking the introduction, collect the requested information from the caller.
Ask questions one at a time and wait for responses.
Once all information is collected, use the {SUBMIT_FORM_TOOL} tool to save the responses.

{_WAIT_SUFFIX}"""
