"""
Lenient decoder for T-Soft response bodies.

The same logical response can arrive in several shapes depending on the
endpoint and the deployment:

    {"success": true, "data": {...}, "message": [...]}   wrapped envelope
    {"success": true, "data": [{...}]}                   single entity in a list
    {...} / [{...}]                                      bare entity / bare list
    {"data": {...}}                                      data without envelope fields

decode_response() tries these interpretations in a fixed order and returns the
first one that yields a value. It never raises: a body nothing can make sense
of becomes a failed Envelope.
"""

from __future__ import annotations

import json
import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from pydantic import TypeAdapter, ValidationError

from backoffice.integrations.contracts.envelope import Envelope
from backoffice.integrations.policy.flexible_scalars import normalize_scalars, to_flexible_str

logger = logging.getLogger(__name__)

ERROR_LOG_LIMIT = 1000

_MISSING = object()
_adapters: Dict[Any, TypeAdapter] = {}


def _adapter(target: Any) -> TypeAdapter:
    adapter = _adapters.get(target)
    if adapter is None:
        adapter = TypeAdapter(target)
        _adapters[target] = adapter
    return adapter


def truncate(text: str, limit: int) -> str:
    return text if len(text) <= limit else text[:limit] + "..."


def parse_json_tree(body: str) -> Any:
    """Parse once with decimal floats so number text survives, then canonicalize scalars."""
    return normalize_scalars(json.loads(body.lstrip("\ufeff"), parse_float=Decimal))


def _get_ci(node: Dict[str, Any], key: str) -> Any:
    if key in node:
        return node[key]
    lowered = key.lower()
    for candidate, value in node.items():
        if str(candidate).lower() == lowered:
            return value
    return _MISSING


def _as_bool(value: Any, default: bool) -> bool:
    if value is _MISSING or value is None:
        return default
    if isinstance(value, bool):
        return value
    text = to_flexible_str(value)
    if text is None:
        return default
    return text.strip().lower() in ("true", "1")


def collect_messages(node: Any) -> List[str]:
    """Flatten upstream message shapes ([{text: [..]}], "..", [".."]) into a list."""
    out: List[str] = []
    stack = [node]
    while stack:
        item = stack.pop()
        if isinstance(item, str):
            if item.strip():
                out.append(item)
        elif isinstance(item, list):
            stack.extend(reversed(item))
        elif isinstance(item, dict):
            text = _get_ci(item, "text")
            stack.append(_get_ci(item, "message") if text is _MISSING else text)
    return out


def _envelope_fields_well_formed(tree: Dict[str, Any]) -> bool:
    """success must be a boolean and message a list of {text: [...]} items, when present."""
    success = _get_ci(tree, "success")
    if success not in (_MISSING, None, "true", "false"):
        return False
    message = _get_ci(tree, "message")
    if message in (_MISSING, None):
        return True
    if not isinstance(message, list):
        return False
    return all(item is None or isinstance(item, dict) for item in message)


def _validate(target: Any, value: Any) -> Tuple[bool, Any]:
    try:
        decoded = _adapter(target).validate_python(value)
    except (ValidationError, RecursionError) as exc:
        return False, exc
    return decoded is not None, decoded


class ResponseDecoder:
    """Ordered cascade of body interpretations; earliest match wins."""

    def decode(self, body: Optional[str], target: Any) -> Envelope:
        if body is None or not body.strip():
            return Envelope.fail("Empty response")

        logger.debug("Parsing response, length: %d", len(body))

        try:
            tree = parse_json_tree(body)
        except (ValueError, RecursionError) as exc:
            # RecursionError: nesting deeper than the json parser accepts
            logger.debug("Body is not decodable JSON: %s", exc)
            tree = _MISSING

        if tree is not _MISSING:
            for strategy in (
                self._wrapped_envelope,
                self._wrapped_array,
                self._direct,
                self._partial_unwrap,
            ):
                envelope = strategy(tree, target)
                if envelope is not None:
                    logger.debug("Decoded response via %s", strategy.__name__.lstrip("_"))
                    return envelope

        logger.error("All parsing strategies failed. Raw response: %s", truncate(body, ERROR_LOG_LIMIT))
        return Envelope.fail(f"Failed to parse response. Length: {len(body)}")

    # -- strategies -----------------------------------------------------------

    def _wrapped_envelope(self, tree: Any, target: Any) -> Optional[Envelope]:
        if not isinstance(tree, dict) or not _envelope_fields_well_formed(tree):
            return None
        data = _get_ci(tree, "data")
        if data is _MISSING or data is None:
            return None
        ok, decoded = _validate(target, data)
        if not ok:
            logger.debug("Wrapped format parse failed: %s", decoded)
            return None
        return Envelope(
            success=_as_bool(_get_ci(tree, "success"), default=False),
            data=decoded,
            messages=collect_messages(_get_ci(tree, "message")),
        )

    def _wrapped_array(self, tree: Any, target: Any) -> Optional[Envelope]:
        if not isinstance(tree, dict):
            return None
        data = _get_ci(tree, "data")
        if not isinstance(data, list) or not data:
            return None
        ok, decoded = _validate(target, data[0])
        if not ok:
            logger.debug("Array format parse failed: %s", decoded)
            return None
        logger.debug("Took first element from %d items", len(data))
        return Envelope(success=_as_bool(_get_ci(tree, "success"), default=False), data=decoded)

    def _direct(self, tree: Any, target: Any) -> Optional[Envelope]:
        ok, decoded = _validate(target, tree)
        if not ok:
            logger.debug("Direct format parse failed: %s", decoded)
            return None
        return Envelope(success=True, data=decoded)

    def _partial_unwrap(self, tree: Any, target: Any) -> Optional[Envelope]:
        if not isinstance(tree, dict):
            return None
        data = _get_ci(tree, "data")
        if not isinstance(data, dict):
            return None
        ok, decoded = _validate(target, data)
        if not ok:
            logger.debug("Data extraction parse failed: %s", decoded)
            return None
        return Envelope(
            success=_as_bool(_get_ci(tree, "success"), default=True),
            data=decoded,
            messages=collect_messages(_get_ci(tree, "message")),
        )


_default_decoder = ResponseDecoder()


def decode_response(body: Optional[str], target: Any) -> Envelope:
    return _default_decoder.decode(body, target)


def is_empty_result(data: Any) -> bool:
    """None, an empty collection, or an entity with nothing populated."""
    if data is None:
        return True
    if isinstance(data, (list, dict, str)):
        return len(data) == 0
    is_blank = getattr(data, "is_blank", None)
    if callable(is_blank):
        return bool(is_blank())
    return False
