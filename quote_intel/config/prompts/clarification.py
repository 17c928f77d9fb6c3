"""
Clarification question prompts.
"""

from typing import Any

CLARIFICATION_SYSTEM_PROMPT = (
    "You are a friendly customer service assistant helping gather information for a quote."
)

CLARIFICATION_QUESTIONS_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "questions": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "targetSignalKey": {"type": "string"},
                    "question": {"type": "string"},
                    "options": {"type": "array", "items": {"type": "string"}},
                },
                "required": ["targetSignalKey", "question"],
            },
        },
    },
    "required": ["questions"],
}


def build_clarification_system_prompt() -> str:
    """Build system prompt for the clarification agent."""
    return CLARIFICATION_SYSTEM_PROMPT


def build_clarification_user_input(
    signals: list[tuple[str, str]],
    service_name: str,
    max_options: int = 4,
) -> str:
    """Build the request for clarification questions.

    Args:
        signals: (signal key, reason it needs clarification) pairs
        service_name: Service the customer asked a quote for
        max_options: Upper bound on answer options per question

    Returns:
        Prompt string
    """
    signal_descriptions = "\n".join(f'- "{key}": {reason}' for key, reason in signals)

    return f"""Generate {len(signals)} clear, friendly question(s) to ask a customer about their {service_name} quote request.

These signals need clarification:
{signal_descriptions}

Rules:
1. Questions should be simple and easy for a non-technical customer to answer
2. If possible, provide 2-{max_options} answer options to choose from
3. Each question should target exactly one signal, set "targetSignalKey" to that signal's key
4. Keep questions concise (1-2 sentences max)

Return a JSON object with a "questions" array."""
