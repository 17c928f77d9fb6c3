"""Clarification question phrasing.

Two implementations behind one interface: a model-backed phraser and a
deterministic template. The model-backed one falls back to the template on
timeout, error or an unusable answer.
"""

import asyncio
import logging
import uuid
from typing import Any, Protocol

from pydantic import ValidationError

from quote_intel.config.constants import CLARIFICATION_ID_PREFIX
from quote_intel.config.prompts import (
    CLARIFICATION_QUESTIONS_SCHEMA,
    build_clarification_system_prompt,
    build_clarification_user_input,
)
from quote_intel.services.quality_gate.models import (
    ClarificationCandidate,
    ClarificationQuestion,
    ClarificationQuestionSet,
)

logger = logging.getLogger(__name__)


class ModelClient(Protocol):
    """Produces JSON matching a schema from a prompt."""

    async def generate_with_schema(
        self,
        prompt: str,
        schema: dict[str, Any],
        system_prompt: str | None = None,
    ) -> dict[str, Any]: ...


class QuestionPhraser(Protocol):
    """Phrases clarification questions for the given candidates."""

    async def phrase(
        self, candidates: list[ClarificationCandidate], service_name: str
    ) -> list[ClarificationQuestion]: ...


def new_question_id() -> str:
    return f"{CLARIFICATION_ID_PREFIX}{uuid.uuid4().hex[:12]}"


def humanize_signal_key(key: str) -> str:
    return key.replace("_", " ")


class TemplateQuestionPhraser:
    """One templated question per candidate, no options."""

    async def phrase(
        self, candidates: list[ClarificationCandidate], service_name: str
    ) -> list[ClarificationQuestion]:
        return self.phrase_sync(candidates, service_name)

    def phrase_sync(
        self, candidates: list[ClarificationCandidate], service_name: str
    ) -> list[ClarificationQuestion]:
        return [
            ClarificationQuestion(
                id=new_question_id(),
                target_signal_key=c.key,
                question=(
                    f'Could you provide more details about "{humanize_signal_key(c.key)}" '
                    f"for your {service_name} quote?"
                ),
            )
            for c in candidates
        ]


class ModelQuestionPhraser:
    """Asks the model to phrase questions, with the template as fallback."""

    def __init__(
        self,
        model_client: ModelClient,
        timeout: float = 15.0,
        max_options: int = 4,
        fallback: TemplateQuestionPhraser | None = None,
    ):
        self.model_client = model_client
        self.timeout = timeout
        self.max_options = max_options
        self.fallback = fallback or TemplateQuestionPhraser()

    async def phrase(
        self, candidates: list[ClarificationCandidate], service_name: str
    ) -> list[ClarificationQuestion]:
        if not candidates:
            return []

        prompt = build_clarification_user_input(
            [(c.key, c.reason) for c in candidates], service_name, self.max_options
        )
        try:
            raw = await asyncio.wait_for(
                self.model_client.generate_with_schema(
                    prompt,
                    CLARIFICATION_QUESTIONS_SCHEMA,
                    build_clarification_system_prompt(),
                ),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(
                "Clarification question generation timed out after %.1fs, using template", self.timeout
            )
            return self.fallback.phrase_sync(candidates, service_name)
        except Exception as e:
            logger.error(f"AI question generation failed: {e}", exc_info=True)
            return self.fallback.phrase_sync(candidates, service_name)

        questions = self._parse(raw, candidates)
        if not questions:
            logger.warning("Model returned no usable clarification questions, using template")
            return self.fallback.phrase_sync(candidates, service_name)
        return questions

    def _parse(
        self, raw: Any, candidates: list[ClarificationCandidate]
    ) -> list[ClarificationQuestion]:
        """Keep one well-formed question per requested signal."""
        if not isinstance(raw, dict):
            return []
        try:
            question_set = ClarificationQuestionSet.model_validate(raw)
        except ValidationError as e:
            logger.warning(f"Malformed clarification questions from model: {e}")
            return []

        wanted = [c.key for c in candidates]
        seen: set[str] = set()
        questions: list[ClarificationQuestion] = []
        for draft in question_set.questions:
            key = draft.target_signal_key
            text = draft.question.strip()
            if key not in wanted or key in seen or not text:
                continue
            seen.add(key)
            options = [o.strip() for o in draft.options or [] if o and o.strip()]
            questions.append(
                ClarificationQuestion(
                    id=new_question_id(),
                    target_signal_key=key,
                    question=text,
                    options=options[: self.max_options] or None,
                )
            )
        return questions[: len(candidates)]
