"""Typed condition items, built once from loosely-shaped input.

Callers describe conditions with strings, lists and dicts whose keys carry
meaning (``"age >"``, ``"OR"``, ``"NOT"``, positional entries...).
:func:`parse_conditions` reads those shapes into a list of
:data:`ConditionItem` so the compiler works over a closed set of variants.
"""

from __future__ import annotations

import logging
from typing import Annotated, Any, Iterable, Literal, Union

from pydantic import BaseModel, Field

from .bindings import is_numeric

logger = logging.getLogger("querytree")

CONJUNCTION_KEYS = ("and", "or", "xor")
NEGATION_KEY = "not"


class Raw(BaseModel):
    """Already-formed SQL fragment, kept verbatim."""

    kind: Literal["raw"] = "raw"
    text: str


class Group(BaseModel):
    """Nested conditions joined by their own conjunction."""

    kind: Literal["group"] = "group"
    conjunction: str = "AND"
    items: list["ConditionItem"] = Field(default_factory=list)


class Negation(BaseModel):
    """Nested conditions under ``NOT``."""

    kind: Literal["not"] = "not"
    items: list["ConditionItem"] = Field(default_factory=list)


class FieldOp(BaseModel):
    """``field operator value`` comparison."""

    model_config = {"arbitrary_types_allowed": True}

    kind: Literal["field"] = "field"
    field: str
    operator: str = "="
    value: Any = None

    @property
    def is_multi(self) -> bool:
        """Whether the operator compares against a list of values."""
        return self.operator.strip().lower() in ("in", "not in")


class Nested(BaseModel):
    """Pre-built expression (a non-empty tree or another node) appended as is."""

    model_config = {"arbitrary_types_allowed": True}

    kind: Literal["nested"] = "nested"
    expression: Any


ConditionItem = Annotated[
    Union[Raw, Group, Negation, FieldOp, Nested],
    Field(discriminator="kind"),
]

Group.model_rebuild()
Negation.model_rebuild()


def split_key(key: str) -> tuple[str, str]:
    """Split ``"field operator"`` on its first space; the operator defaults to ``=``."""
    parts = key.strip().split(" ", 1)
    if len(parts) > 1:
        return parts[0], parts[1]
    return parts[0], "="


def _is_tree(value: Any) -> bool:
    from .expressions.query import QueryExpression
    return isinstance(value, QueryExpression)


def _is_expression(value: Any) -> bool:
    from .expressions import Expression
    return isinstance(value, Expression)


def _entries(conditions: Any) -> Iterable[tuple[Any, Any]]:
    if isinstance(conditions, dict):
        return conditions.items()
    if isinstance(conditions, (list, tuple)):
        return enumerate(conditions)
    return ()


def parse_conditions(conditions: Any) -> list[ConditionItem]:
    """Read a loosely-shaped condition description into typed items.

    A string is one raw fragment; a non-empty tree or any other expression
    node is nested as is; lists, tuples and dicts are read entry by entry.
    Entries that fit no shape are dropped.
    """
    if isinstance(conditions, str):
        return [Raw(text=conditions)]
    if _is_tree(conditions):
        return [Nested(expression=conditions)] if len(conditions) else []
    if _is_expression(conditions):
        return [Nested(expression=conditions)]
    items: list[ConditionItem] = []
    for key, value in _entries(conditions):
        item = _parse_entry(key, value)
        if item is not None:
            items.append(item)
    return items


def _parse_entry(key: Any, value: Any):
    numeric_key = is_numeric(key)
    lowered = key.lower() if isinstance(key, str) else None
    if numeric_key and not value:
        return None
    if numeric_key and isinstance(value, str):
        return Raw(text=value)
    if (numeric_key and isinstance(value, (list, tuple, dict))) or lowered in CONJUNCTION_KEYS:
        return Group(
            conjunction="AND" if numeric_key else lowered.upper(),
            items=parse_conditions(value),
        )
    if lowered == NEGATION_KEY:
        return Negation(items=parse_conditions(value))
    if _is_tree(value) and len(value):
        return Nested(expression=value)
    if not numeric_key:
        field, operator = split_key(str(key))
        return FieldOp(field=field, operator=operator, value=value)
    logger.debug("Dropping condition entry %r: %r", key, value)
    return None
