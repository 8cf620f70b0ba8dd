"""
Turns Gemini's raw text into an Analysis.
The JSON is untrusted: it is schema-checked, and every failure becomes a
MalformedAnalysisError whose message does not depend on the parser used.
"""
import json
import logging
import re

from pydantic import ValidationError as PydanticValidationError

from ..errors import MalformedAnalysisError
from ..models import Analysis

logger = logging.getLogger("ResponseParser")

UNPARSEABLE_MESSAGE = "The AI returned an analysis that could not be parsed."
WRONG_SHAPE_MESSAGE = "The AI returned an analysis that did not match the expected structure."

DISTRIBUTION_TOLERANCE = 5

_FENCE_RE = re.compile(r"^\s*```(?:json)?\s*(.*?)\s*```\s*$", re.DOTALL)


def _strip_fence(text: str) -> str:
    match = _FENCE_RE.match(text)
    return match.group(1) if match else text


def parse_analysis(raw_text: str) -> Analysis:
    try:
        data = json.loads(_strip_fence(raw_text))
    except (json.JSONDecodeError, TypeError) as e:
        logger.error(f"AI response is not valid JSON: {e}")
        raise MalformedAnalysisError(UNPARSEABLE_MESSAGE) from e

    if not isinstance(data, dict):
        logger.error(f"AI response is a JSON {type(data).__name__}, expected an object")
        raise MalformedAnalysisError(WRONG_SHAPE_MESSAGE)

    try:
        analysis = Analysis.model_validate(data)
    except PydanticValidationError as e:
        logger.error(f"AI response failed schema validation: {e.error_count()} error(s)\n{e}")
        raise MalformedAnalysisError(WRONG_SHAPE_MESSAGE) from e

    total = analysis.distribution_total()
    if analysis.rating_distribution and abs(total - 100) > DISTRIBUTION_TOLERANCE:
        logger.warning(f"Rating distribution sums to {total}%, passing it through as-is")

    return analysis
