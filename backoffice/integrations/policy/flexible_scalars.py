"""
Flexible scalar handling for T-Soft payloads.

The upstream is not consistent about scalar representation: the same product
can arrive with "SellingPrice": "272.72727273" (string) next to
"SellingPriceVatIncluded": 300.00000000299997 (number), and flags show up as
true, "true", 1 or "1". Every scalar attribute is therefore kept as text.

Two pieces work together:
- normalize_scalars() runs once over the parsed JSON tree and rewrites every
  scalar leaf to its canonical text form.
- LooseStr is the field type used on the entity models; it accepts any
  scalar and drops nested objects/arrays instead of failing validation.

Numeric/boolean interpretation happens at the point of use (to_int,
to_decimal, is_truthy), never at decode time.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Annotated, Any, Iterable, List, Mapping, Optional

from pydantic import BeforeValidator

TRUTHY_VALUES = frozenset({"1", "true", "yes", "active"})


def canonical_number_text(value: Any) -> str:
    """Invariant decimal text: '.' separator, no grouping, no exponent."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        value = Decimal(repr(value))
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    if not value.is_finite():
        return str(value)
    if value == value.to_integral_value():
        return str(int(value))
    return format(value.normalize(), "f")


def to_flexible_str(value: Any) -> Optional[str]:
    """Coerce one JSON token to canonical text, or None when absent/structured."""
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float, Decimal)):
        return canonical_number_text(value)
    # nested objects/arrays are skipped so one odd field cannot sink the payload
    return None


def _normalize_leaf(value: Any) -> Any:
    if value is None or isinstance(value, str):
        return value
    return to_flexible_str(value)


def _empty_like(node: Any) -> Any:
    return {} if isinstance(node, dict) else []


def normalize_scalars(node: Any) -> Any:
    """
    Rewrite every scalar leaf of a parsed JSON tree to canonical text.

    Walks the tree with an explicit stack, so nesting depth is not bounded
    by the interpreter's recursion limit.
    """
    if not isinstance(node, (dict, list)):
        return _normalize_leaf(node)

    root = _empty_like(node)
    stack = [(node, root)]
    while stack:
        source, target = stack.pop()
        items = source.items() if isinstance(source, dict) else enumerate(source)
        for key, value in items:
            if isinstance(value, (dict, list)):
                copy = _empty_like(value)
                stack.append((value, copy))
            else:
                copy = _normalize_leaf(value)
            if isinstance(target, dict):
                target[key] = copy
            else:
                target.append(copy)
    return root


def _loose_list(value: Any) -> Optional[List[Any]]:
    if isinstance(value, list):
        return value
    return None


def _loose_model_list(value: Any) -> Optional[List[Any]]:
    if not isinstance(value, list):
        return None
    return [item for item in value if isinstance(item, Mapping) or hasattr(item, "model_fields")]


def _loose_int(value: Any) -> int:
    return to_int(value)


LooseStr = Annotated[Optional[str], BeforeValidator(to_flexible_str)]
LooseStrList = Annotated[Optional[List[LooseStr]], BeforeValidator(_loose_list)]
LooseInt = Annotated[int, BeforeValidator(_loose_int)]


def loose_model_list(model_type):
    """List of nested entities; non-list values and non-object items are dropped."""
    return Annotated[Optional[List[model_type]], BeforeValidator(_loose_model_list)]


# ---------------------------------------------------------------------------
# Point-of-use coercion
# ---------------------------------------------------------------------------


def first_non_empty(values: Iterable[Optional[str]]) -> Optional[str]:
    for value in values:
        if value is None:
            continue
        if isinstance(value, str) and not value.strip():
            continue
        return value
    return None


def to_int(value: Any, default: int = 0) -> int:
    text = to_flexible_str(value)
    if text is None:
        return default
    try:
        return int(text.strip())
    except ValueError:
        return default


def to_decimal(value: Any, default: Decimal = Decimal("0")) -> Decimal:
    text = to_flexible_str(value)
    if text is None or not text.strip():
        return default
    try:
        amount = Decimal(text.strip())
    except InvalidOperation:
        return default
    return amount if amount.is_finite() else default


def is_truthy(value: Any) -> bool:
    text = to_flexible_str(value)
    if text is None:
        return False
    return text.strip().lower() in TRUTHY_VALUES
