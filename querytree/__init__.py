"""querytree: compile nested condition descriptions into SQL and bound parameters."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field

from .bindings import Binding, BindingStore
from .config import CompilerSettings, configure, get_settings, reset_settings
from .errors import ExpressionCompiledError, InvalidExpressionError, QueryTreeError
from .expressions import (
    ComparisonExpression,
    Expression,
    QueryExpression,
    UnaryOperatorExpression,
    and_,
    collect_bindings,
    or_,
)
from .items import parse_conditions

__all__ = [
    "Binding",
    "BindingStore",
    "ComparisonExpression",
    "CompilerSettings",
    "Expression",
    "ExpressionCompiledError",
    "InvalidExpressionError",
    "QueryExpression",
    "QueryTreeError",
    "Result",
    "UnaryOperatorExpression",
    "and_",
    "compile_conditions",
    "configure",
    "get_settings",
    "or_",
    "parse_conditions",
    "reset_settings",
]


class Result(BaseModel):
    """Result of compiling a condition description."""

    model_config = {"frozen": True, "arbitrary_types_allowed": True}

    sql: str
    parameters: dict[str, Any] = Field(default_factory=dict)
    types: dict[str, Optional[str]] = Field(default_factory=dict)
    positional: list[Any] = Field(default_factory=list)


def compile_conditions(
    conditions: Any,
    types: Optional[dict[str, str]] = None,
    conjunction: str = "AND",
) -> Result:
    """Compile a condition description into SQL and its bound values.

    Args:
        conditions: SQL string, list/dict description or a QueryExpression.
        types: Optional mapping from field name to logical type.
        conjunction: Conjunction of the top level (``AND``, ``OR``, ``XOR``).

    Returns:
        Result with the SQL fragment, named parameter values and their logical
        types, and values bound to positional ``?`` placeholders.

    Positional values are listed in traversal order (each nested expression
    before the tree that holds it), which is not necessarily the order of
    the ``?`` markers in the SQL text. Use named placeholders when a tree
    mixes positional bindings across nesting levels.
    """
    tree = conditions if isinstance(conditions, QueryExpression) else QueryExpression(conditions, types, conjunction)
    parameters: dict[str, Any] = {}
    parameter_types: dict[str, Optional[str]] = {}
    positional: list[Any] = []
    for binding in collect_bindings(tree):
        if binding.placeholder:
            parameters[binding.name] = binding.value
            parameter_types[binding.name] = binding.type
        else:
            positional.append(binding.value)
    return Result(sql=tree.sql, parameters=parameters, types=parameter_types, positional=positional)
