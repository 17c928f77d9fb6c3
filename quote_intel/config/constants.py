"""
Constants, enums, and static values.
"""

from enum import Enum


class TriageClassification(str, Enum):
    """Complexity tier assigned to a quote request before any AI analysis."""

    SIMPLE = "simple"
    STANDARD = "standard"
    COMPLEX = "complex"


class SignalSource(str, Enum):
    """Where a signal value came from."""

    VISION = "vision"
    FORM = "form"
    TEXT = "text"  # Customer's free-text description
    INFERRED = "inferred"


class GateAction(str, Enum):
    """Quality gate decisions."""

    SEND = "send"  # Quote is good, proceed to customer
    ASK_CLARIFICATION = "ask_clarification"  # One round of customer questions
    REQUIRE_REVIEW = "require_review"  # Escalate to the business owner


class QuoteStatus(str, Enum):
    """Quote lifecycle status as seen by the surrounding workflow."""

    QUEUED = "queued"
    PROCESSING = "processing"
    AWAITING_CLARIFICATION = "awaiting_clarification"
    SENT = "sent"
    PENDING_REVIEW = "pending_review"
    FAILED = "failed"


class PipelineStep(str, Enum):
    """Pipeline execution steps."""

    TRIAGE = "triage"
    EXTRACTION = "extraction"
    FUSION = "fusion"
    PRICING = "pricing"
    QUALITY_GATE = "quality_gate"


class PipelineStepDescription(str, Enum):
    """Pipeline execution step descriptions."""

    TRIAGE = "Classify request complexity and decide the photo-analysis budget"
    EXTRACTION = "Extract signals from photos and description"
    FUSION = "Reconcile vision, form and text signals into one view"
    PRICING = "Compute the price from the fused signals"
    QUALITY_GATE = "Decide whether to send, clarify or escalate the quote"


# Resolution notes recorded on signal conflicts
FORM_OVERRIDE_RESOLUTION = (
    "form input overrides AI-extracted signal — customer is authoritative on their own project"
)
TEXT_OVERRIDE_RESOLUTION = "customer description overrides vision — stated \"{phrase}\""

# Signal written by description access overrides
ACCESS_SIGNAL_KEY = "access_difficulty"

# Phrase -> access_difficulty value. Order matters: first match wins.
ACCESS_PHRASES: tuple[tuple[str, str], ...] = (
    ("no access", "difficult"),
    ("difficult access", "difficult"),
    ("hard to access", "difficult"),
    ("narrow access", "difficult"),
    ("narrow passage", "difficult"),
    ("rear access only", "difficult"),
    ("steep", "difficult"),
    ("easy access", "easy"),
    ("easily accessible", "easy"),
    ("ground floor", "easy"),
    ("front of property", "easy"),
    ("street level", "easy"),
    ("driveway access", "easy"),
)

# Internal form fields (e.g. _project_description) never map to signals
INTERNAL_FIELD_PREFIX = "_"

TRUTHY_FORM_VALUES = frozenset({"true", "yes", "1", "on"})

CLARIFICATION_ID_PREFIX = "cq_"

REVIEW_REASON_GATE_FAILURE = "quality gate evaluation failed — manual review required"


def log_pipeline_step(step: PipelineStep) -> str:
    """Return the log line for a pipeline step."""
    return f"{step.value}: {PipelineStepDescription[step.name].value}"
