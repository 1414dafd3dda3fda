"""
Response Parser
===============

Turns free-form generation output into structured data.

Generation output is frequently almost-JSON: wrapped in a markdown fence,
surrounded by prose, or carrying trailing commas and single quotes. Parsing is
an ordered chain of pure strategies; the first one that yields an object wins.

1. parse_verbatim         - the text is already valid JSON
2. parse_braced_region    - the first top-level {...} region is valid JSON
3. parse_repaired_region  - the braced region parses after syntax repairs
"""

import json
import re
from typing import Any, Callable, Dict, List, Optional, Tuple

from cropsync.models import CropRecommendation, RecommendationResponse
from cropsync.utils.logger import logger


FENCE_PATTERN = re.compile(r"```(?:json|JSON)?\s*\n?")
BRACED_REGION = re.compile(r"\{[\s\S]*\}")
TRAILING_COMMA = re.compile(r",\s*([}\]])")
UNQUOTED_KEY = re.compile(r"([{,]\s*)([A-Za-z_][A-Za-z0-9_]*)(\s*:)")


class ResponseParseError(ValueError):
    """Raised when no strategy can extract a usable object."""

    def __init__(self, message: str, raw_length: int = 0):
        self.raw_length = raw_length
        super().__init__(message)


def strip_code_fences(text: str) -> str:
    """Remove markdown code fences (```json ... ```)."""
    return FENCE_PATTERN.sub("", text or "").strip()


def _loads_object(text: str) -> Optional[Dict[str, Any]]:
    try:
        value = json.loads(text)
    except (TypeError, ValueError):
        return None
    return value if isinstance(value, dict) else None


def parse_verbatim(text: str) -> Optional[Dict[str, Any]]:
    return _loads_object(text.strip())


def _braced_region(text: str) -> Optional[str]:
    match = BRACED_REGION.search(text)
    return match.group(0) if match else None


def parse_braced_region(text: str) -> Optional[Dict[str, Any]]:
    region = _braced_region(text)
    return _loads_object(region) if region else None


# Characters after which a single quote closes a single-quoted string
STRING_TERMINATORS = ",:}]"


def _closes_single_quoted(text: str, index: int) -> bool:
    """True if the quote before index ends a string rather than being an apostrophe."""
    rest = text[index:].lstrip()
    return not rest or rest[0] in STRING_TERMINATORS


def _read_string(text: str, start: int) -> Tuple[str, int]:
    """
    Read the string literal opening at start.

    Returns it re-quoted with double quotes, and the index after it.
    """
    quote = text[start]
    out = ['"']
    i = start + 1
    while i < len(text):
        ch = text[i]
        if ch == "\\":
            if quote == "'" and text[i + 1:i + 2] == "'":
                out.append("'")
            else:
                out.append(text[i:i + 2])
            i += 2
            continue
        if ch == quote and (quote == '"' or _closes_single_quoted(text, i + 1)):
            out.append('"')
            return "".join(out), i + 1
        out.append('\\"' if ch == '"' else ch)
        i += 1
    return "".join(out), i


def _split_literals(text: str) -> List[Tuple[bool, str]]:
    """Split text into (is_literal, chunk) pieces, literals normalized to double quotes."""
    pieces: List[Tuple[bool, str]] = []
    start = i = 0
    while i < len(text):
        if text[i] in "\"'":
            if i > start:
                pieces.append((False, text[start:i]))
            literal, i = _read_string(text, i)
            pieces.append((True, literal))
            start = i
        else:
            i += 1
    if start < len(text):
        pieces.append((False, text[start:]))
    return pieces


def repair_json(text: str) -> str:
    """
    Normalize quotes, quote bare keys and drop trailing commas.

    Key quoting and comma removal only touch text outside string literals, so
    apostrophes, colons and commas inside values are kept as written.
    """
    repaired = []
    for is_literal, chunk in _split_literals(text):
        if not is_literal:
            chunk = UNQUOTED_KEY.sub(r'\1"\2"\3', chunk)
            chunk = TRAILING_COMMA.sub(r"\1", chunk)
        repaired.append(chunk)
    return "".join(repaired)


def parse_repaired_region(text: str) -> Optional[Dict[str, Any]]:
    region = _braced_region(text)
    return _loads_object(repair_json(region)) if region else None


ParseStrategy = Callable[[str], Optional[Dict[str, Any]]]

PARSE_STRATEGIES: List[ParseStrategy] = [
    parse_verbatim,
    parse_braced_region,
    parse_repaired_region,
]


def parse_structured(text: str, strategies: List[ParseStrategy] = None) -> Dict[str, Any]:
    """
    Run the strategy chain over generation output.

    Returns:
        The first object any strategy produces

    Raises:
        ResponseParseError: if every strategy fails
    """
    strategies = strategies or PARSE_STRATEGIES
    cleaned = strip_code_fences(text)

    for strategy in strategies:
        parsed = strategy(cleaned)
        if parsed is not None:
            logger.info(f"Response Parser: parsed with {strategy.__name__}")
            return parsed

    raise ResponseParseError("No structured object found in generation output", len(text or ""))


def parse_recommendation_response(text: str, location_name: str) -> RecommendationResponse:
    """
    Parse a recommendation response.

    An empty recommendations list is valid; a missing or non-list one is not.

    Raises:
        ResponseParseError: if the text is not a usable recommendation object
    """
    data = parse_structured(text)

    items = data.get("recommendations")
    if not isinstance(items, list):
        raise ResponseParseError("Parsed object has no recommendations list", len(text or ""))

    try:
        recommendations = [CropRecommendation.from_dict(item) for item in items]
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        raise ResponseParseError(f"Malformed recommendation entry: {e}", len(text or ""))

    return RecommendationResponse(
        location_name=location_name,
        weather_summary=str(data.get("weatherSummary") or ""),
        recommendations=recommendations,
        general_advice=str(data.get("generalAdvice") or ""),
    )
