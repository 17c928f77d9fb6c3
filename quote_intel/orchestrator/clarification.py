"""Clarification round: accepting the customer's replies.

The quote goes back to the queue with its answers; on re-processing the
answers are merged as form input and the quality gate's loop breaker sends
the quote.
"""

import logging
from collections.abc import Mapping
from typing import Any

from quote_intel.config.constants import QuoteStatus
from quote_intel.orchestrator.state import QuoteState
from quote_intel.services.fusion.models import ClarificationAnswer

logger = logging.getLogger(__name__)


class ClarificationRejected(ValueError):
    """The clarification reply cannot be accepted for this quote."""


def submit_clarification_answers(state: QuoteState, replies: Mapping[str, Any]) -> QuoteState:
    """
    Store the customer's replies and re-queue the quote.

    Args:
        state: Quote awaiting clarification
        replies: question id -> answer value

    Returns:
        The same state, queued for re-processing

    Raises:
        ClarificationRejected: Wrong status, no answers, or unknown question ids
    """
    if state.status != QuoteStatus.AWAITING_CLARIFICATION:
        raise ClarificationRejected(
            f"Quote is not awaiting clarification (status: {state.status.value})"
        )

    answered = {qid: value for qid, value in replies.items() if value not in (None, "", [])}
    if not answered:
        raise ClarificationRejected("Answers are required")

    questions = {q.id: q for q in state.clarification_questions}
    unknown = sorted(set(answered) - set(questions))
    if unknown:
        raise ClarificationRejected(f"Unknown clarification question(s): {', '.join(unknown)}")

    state.clarification_answers = [
        ClarificationAnswer(
            question_id=qid,
            target_signal_key=questions[qid].target_signal_key,
            value=value,
        )
        for qid, value in answered.items()
    ]
    state.clarification_count += 1
    state.status = QuoteStatus.QUEUED
    logger.info(
        "Clarification received for quote %s: %d answer(s)",
        state.quote_id,
        len(state.clarification_answers),
    )
    return state
