"""Tests for accepting clarification replies."""

import pytest

from quote_intel.config.constants import QuoteStatus
from quote_intel.orchestrator.clarification import (
    ClarificationRejected,
    submit_clarification_answers,
)
from quote_intel.orchestrator.state import QuoteState
from quote_intel.services.quality_gate.models import ClarificationQuestion


def _awaiting_state() -> QuoteState:
    return QuoteState(
        quote_id="q-1",
        status=QuoteStatus.AWAITING_CLARIFICATION,
        clarification_questions=[
            ClarificationQuestion(id="cq_a", target_signal_key="item_count", question="How many?"),
            ClarificationQuestion(id="cq_b", target_signal_key="access_difficulty", question="Access?"),
        ],
    )


def test_answers_requeue_quote():
    state = submit_clarification_answers(_awaiting_state(), {"cq_a": "3", "cq_b": ""})

    assert state.status == QuoteStatus.QUEUED
    assert state.clarification_count == 1
    assert len(state.clarification_answers) == 1
    answer = state.clarification_answers[0]
    assert answer.question_id == "cq_a"
    assert answer.target_signal_key == "item_count"
    assert answer.value == "3"


@pytest.mark.parametrize(
    "status",
    [QuoteStatus.SENT, QuoteStatus.QUEUED, QuoteStatus.PENDING_REVIEW],
)
def test_wrong_status_rejected(status):
    state = _awaiting_state()
    state.status = status
    with pytest.raises(ClarificationRejected, match="not awaiting clarification"):
        submit_clarification_answers(state, {"cq_a": "3"})
    assert state.clarification_count == 0


@pytest.mark.parametrize("replies", [{}, {"cq_a": None, "cq_b": ""}])
def test_empty_answers_rejected(replies):
    with pytest.raises(ClarificationRejected, match="Answers are required"):
        submit_clarification_answers(_awaiting_state(), replies)


def test_unknown_question_rejected():
    state = _awaiting_state()
    with pytest.raises(ClarificationRejected, match="cq_zzz"):
        submit_clarification_answers(state, {"cq_a": "3", "cq_zzz": "x"})
    assert state.status == QuoteStatus.AWAITING_CLARIFICATION
    assert state.clarification_answers == []
