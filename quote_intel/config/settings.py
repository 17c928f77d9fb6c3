"""Application settings using Pydantic BaseSettings."""

from functools import lru_cache

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Quote Intelligence"
    app_version: str = "0.1.0"
    debug: bool = False
    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        upper = v.upper()
        if upper not in _VALID_LOG_LEVELS:
            raise ValueError(f"log_level must be one of {_VALID_LOG_LEVELS}, got '{v}'")
        return upper

    @model_validator(mode="after")
    def validate_timeouts_positive(self) -> "Settings":
        for field_name in (
            "clarification_timeout",
            "history_lookup_timeout",
            "quality_gate_timeout",
        ):
            value = getattr(self, field_name)
            if value <= 0:
                raise ValueError(f"{field_name} must be positive, got {value}")
        return self

    @model_validator(mode="after")
    def validate_confidence_thresholds(self) -> "Settings":
        for field_name in (
            "low_signal_confidence",
            "very_low_overall_confidence",
            "site_visit_confidence",
            "form_merge_low_confidence",
        ):
            value = getattr(self, field_name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{field_name} must be between 0 and 1, got {value}")
        return self

    # Azure AI Foundry
    azure_ai_project_endpoint: str = ""

    # Anthropic
    anthropic_api_key: str | None = None

    # Clarification Agent
    use_llm_clarification: bool = True
    clarification_agent_model: str = "gpt-4o-mini"
    clarification_temperature: float = 0.3
    clarification_max_tokens: int = 1024

    # Timeouts
    clarification_timeout: float = 15.0
    history_lookup_timeout: float = 2.0
    quality_gate_timeout: float = 20.0

    # Triage thresholds
    complex_photo_count: int = 3
    complex_description_length: int = 500
    complex_work_step_count: int = 2
    simple_description_length: int = 100
    simple_max_service_count: int = 1
    simple_max_photos: int = 2
    max_photos_to_analyze: int = 5

    # Quality gate thresholds
    low_signal_confidence: float = 0.5
    very_low_overall_confidence: float = 0.3
    site_visit_confidence: float = 0.4
    max_clarification_rounds: int = 1
    max_clarification_questions: int = 2
    max_question_options: int = 4

    # Signal fusion
    form_merge_low_confidence: float = 0.7


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
