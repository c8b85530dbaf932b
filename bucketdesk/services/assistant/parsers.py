"""JSON extraction and normalization for model replies."""
import json
import logging
import math
import re
from typing import Any, Dict, List, Optional

from bucketdesk.models import CommandIntent, ParsedFilters

logger = logging.getLogger(__name__)

JSON_OBJECT_PATTERN = re.compile(r'\{[\s\S]*\}')
MATCH_OBJECT_PATTERN = re.compile(r'\{[\s\S]*"match"[\s\S]*\}')

# Default for extract_json_object: raise instead of returning a fallback
NO_FALLBACK = object()

REPORT_TYPES = ('one-pager', 'digest')

# action -> (required argument, optional arguments)
COMMAND_ACTIONS = {
    'find': ('query', ()),
    'summarize': (None, ('scope',)),
    'create_folder': ('name', ()),
    'upload': (None, ('hint',)),
    'report': (None, ('type',)),
    'navigate': (None, ('path',)),
    'none': ('message', ()),
}


class JsonExtractionError(Exception):
    """Exception raised when a model reply holds no usable JSON object."""
    pass


def strip_code_fences(text: str) -> str:
    """Remove markdown code fences models like to wrap JSON in."""
    cleaned = text.strip()
    cleaned = re.sub(r'^```(?:json)?\s*\n?', '', cleaned)
    cleaned = re.sub(r'\n?```\s*$', '', cleaned)
    return cleaned


def _loads_lenient(candidate: str) -> Any:
    """json.loads, then once more with trailing commas removed."""
    try:
        return json.loads(candidate)
    except json.JSONDecodeError as e:
        fixed = re.sub(r',\s*([}\]])', r'\1', candidate)
        if fixed == candidate:
            raise
        logger.debug(f"Retrying JSON parse without trailing commas after: {e}")
        return json.loads(fixed)


def extract_json_object(text: str, fallback: Any = NO_FALLBACK) -> Any:
    """
    Extract and parse the outermost {...} span of a model reply.

    Args:
        text: Raw reply text
        fallback: Returned instead of raising when no valid object is found (None included)

    Returns:
        Parsed JSON value, or the fallback

    Raises:
        JsonExtractionError: If parsing fails and no fallback was given
    """
    match = JSON_OBJECT_PATTERN.search(strip_code_fences(text or ''))
    if not match:
        if fallback is not NO_FALLBACK:
            logger.warning("No JSON object in model reply, using fallback")
            return fallback
        raise JsonExtractionError("No JSON object in response")

    try:
        return _loads_lenient(match.group(0))
    except json.JSONDecodeError as e:
        if fallback is not NO_FALLBACK:
            logger.warning(f"Invalid JSON in model reply ({e}), using fallback")
            return fallback
        raise JsonExtractionError("Invalid JSON in response") from e


def split_match_answer(text: str) -> Dict[str, Any]:
    """
    Split a free-text search reply into prose and the keys it flagged.

    The span from the first '{' to the last '}' containing "match" is parsed
    for a key list and removed from the prose. When nothing but JSON remains,
    the raw reply is the answer.

    Returns:
        {"answer": str, "match": list of keys}
    """
    raw = text or ''
    keys: List[str] = []
    span = MATCH_OBJECT_PATTERN.search(raw)
    if span:
        try:
            parsed = json.loads(span.group(0))
            if isinstance(parsed, dict) and isinstance(parsed.get('match'), list):
                keys = [str(key) for key in parsed['match']]
        except json.JSONDecodeError:
            logger.debug("Search reply contained an unparseable match object")

    answer = MATCH_OBJECT_PATTERN.sub('', raw, count=1).strip()
    return {'answer': answer or raw.strip(), 'match': keys}


def _coerce_size(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    size = int(number)
    return size if size >= 0 else None


def _coerce_text(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    cleaned = value.strip()
    if not cleaned or cleaned.lower() == 'null':
        return None
    return cleaned


def normalize_filters(payload: Any) -> ParsedFilters:
    """
    Turn a model's filter object into ParsedFilters.

    Unknown keys and null/invalid values are dropped; file types lose any
    leading dot and are lower-cased; sizes become non-negative integers.
    """
    data = payload if isinstance(payload, dict) else {}

    file_type = _coerce_text(data.get('fileType'))
    if file_type:
        file_type = file_type.lstrip('.').lower() or None

    return ParsedFilters(
        file_type=file_type,
        date_from=_coerce_text(data.get('dateFrom')),
        date_to=_coerce_text(data.get('dateTo')),
        size_min_bytes=_coerce_size(data.get('sizeMinBytes')),
        size_max_bytes=_coerce_size(data.get('sizeMaxBytes')),
        name_contains=_coerce_text(data.get('nameContains')),
    )


def normalize_match(value: Any) -> Optional[List[str]]:
    """Return a list of keys, or None when the model gave something else."""
    if not isinstance(value, list):
        return None
    return [str(item) for item in value if item is not None]


def normalize_intent(payload: Any, fallback: CommandIntent) -> CommandIntent:
    """
    Validate a command-bar intent against the known actions.

    Unknown actions, or actions missing their required argument, yield the
    fallback. Optional arguments are kept only when they are non-empty strings.
    """
    if not isinstance(payload, dict):
        return fallback

    action = payload.get('action')
    if action not in COMMAND_ACTIONS:
        logger.info(f"Model returned unknown command action: {action!r}")
        return fallback

    required, optional = COMMAND_ACTIONS[action]
    arguments: Dict[str, Any] = {}
    if required:
        value = _coerce_text(payload.get(required))
        if not value:
            return fallback
        arguments[required] = value

    for name in optional:
        value = _coerce_text(payload.get(name))
        if value:
            arguments[name] = value

    if action == 'report' and arguments.get('type') not in REPORT_TYPES:
        arguments.pop('type', None)

    return CommandIntent(action=action, arguments=arguments)


def normalize_upload_suggestion(payload: Any, max_tags: int = 5) -> Dict[str, Any]:
    """Clamp an upload suggestion to {suggestedFolder: str, suggestedTags: [<= max_tags]}."""
    data = payload if isinstance(payload, dict) else {}
    folder = data.get('suggestedFolder')
    folder = folder.strip().strip('/') if isinstance(folder, str) else ''
    tags = data.get('suggestedTags')
    tags = [str(tag).strip() for tag in tags if str(tag).strip()] if isinstance(tags, list) else []
    return {'suggestedFolder': folder, 'suggestedTags': tags[:max_tags]}
