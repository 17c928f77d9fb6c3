"""
JSON Parser utility for extracting JSON from LLM responses.
"""
import json
import logging
import re
from typing import Any, Dict

logger = logging.getLogger(__name__)

_CODE_BLOCK = re.compile(r"```(?:json)?\s*(\{.*?\})\s*```", re.DOTALL)
_ANY_OBJECT = re.compile(r"(\{.*\})", re.DOTALL)
_ANSWER_TAG = re.compile(r"<answer>\s*(.*?)\s*</answer>", re.DOTALL | re.IGNORECASE)


class JSONParser:
    """Helper class to extract clean JSON from LLM responses."""

    @staticmethod
    def _try_load(candidate: str) -> Dict[str, Any] | None:
        try:
            data = json.loads(candidate)
        except json.JSONDecodeError:
            return None
        return data if isinstance(data, dict) else None

    @staticmethod
    def extract_json(text: str) -> Dict[str, Any]:
        """Attempts to extract a JSON object from text.

        Looks at the raw text, then <answer> tags, then fenced code blocks,
        then the outermost braces. Returns an empty dict when nothing parses.
        """
        if not text:
            return {}

        data = JSONParser._try_load(text)
        if data is not None:
            return data

        sources = [text]
        answer_match = _ANSWER_TAG.search(text)
        if answer_match:
            sources.insert(0, answer_match.group(1))

        for source in sources:
            for pattern in (_CODE_BLOCK, _ANY_OBJECT):
                match = pattern.search(source)
                if match:
                    data = JSONParser._try_load(match.group(1))
                    if data is not None:
                        return data

        logger.warning("JSONParser: Could not extract JSON from text, returning empty dict")
        return {}
