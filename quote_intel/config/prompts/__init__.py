"""System prompts for quote intelligence agents."""

from quote_intel.config.prompts.clarification import (
    CLARIFICATION_QUESTIONS_SCHEMA,
    build_clarification_system_prompt,
    build_clarification_user_input,
)

__all__ = [
    "CLARIFICATION_QUESTIONS_SCHEMA",
    "build_clarification_system_prompt",
    "build_clarification_user_input",
]
