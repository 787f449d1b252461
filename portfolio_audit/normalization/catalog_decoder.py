import json
import re
from typing import Any, List, Union

from loguru import logger
from pydantic import ValidationError

from portfolio_audit.errors import SchemaError
from portfolio_audit.models.match import Match

# ```json ... ``` (or bare ```) fences that generative providers wrap output in
_FENCE_RE = re.compile(r"```(?:json|JSON)?")


def strip_json_wrapping(text: str) -> str:
    """Remove markdown fences and any prose around the outermost JSON value."""
    cleaned = _FENCE_RE.sub("", text).strip()
    if not cleaned or cleaned[0] in "[{":
        return cleaned

    # Grounded answers sometimes lead with a sentence before the payload
    starts = [i for i in (cleaned.find("["), cleaned.find("{")) if i != -1]
    if not starts:
        return cleaned
    start = min(starts)
    closer = "]" if cleaned[start] == "[" else "}"
    end = cleaned.rfind(closer)
    if end <= start:
        return cleaned
    return cleaned[start : end + 1]


def parse_json_payload(raw: Union[str, bytes]) -> Any:
    """Decode provider text into a JSON value, raising ``SchemaError`` on garbage."""
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8", errors="replace")
    cleaned = strip_json_wrapping(raw)
    if not cleaned:
        raise SchemaError("Provider returned an empty payload")
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise SchemaError(f"Provider payload is not valid JSON: {e}") from e


def decode_matches(data: Any) -> List[Match]:
    """Validate decoded JSON into Match records.

    The whole batch is rejected when any record is invalid, so a catalog never
    contains a partial view of what the provider sent.

    Args:
        data: A list of match objects, or an object with a ``matches`` list.

    Returns:
        The validated matches, in provider order.
    """
    if isinstance(data, dict) and "matches" in data:
        data = data["matches"]
    if not isinstance(data, list):
        raise SchemaError(f"Expected a JSON array of matches, got {type(data).__name__}")

    matches: List[Match] = []
    seen_ids = set()
    for index, raw_match in enumerate(data):
        if not isinstance(raw_match, dict):
            raise SchemaError(f"Match #{index} is not an object")
        try:
            match = Match.model_validate(raw_match)
        except ValidationError as e:
            logger.warning(
                f"Rejecting catalog: match #{index} ({raw_match.get('id', '?')}) failed validation"
            )
            raise SchemaError(f"Match #{index} failed validation: {e}") from e
        if match.id in seen_ids:
            raise SchemaError(f"Duplicate match id '{match.id}' in catalog")
        seen_ids.add(match.id)
        matches.append(match)

    logger.debug(f"Decoded {len(matches)} matches.")
    return matches


def decode_catalog(raw: Union[str, bytes]) -> List[Match]:
    """Strip, parse and validate a raw provider payload."""
    return decode_matches(parse_json_payload(raw))
