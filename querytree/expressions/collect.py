"""Utilities for collecting bindings from a whole expression forest."""

from typing import Any

from ..bindings import Binding
from ._bases import Expression


def collect_bindings(expr: Expression) -> list[Binding]:
    """Render ``expr`` and return the bindings of every node, deepest trees first."""
    _ = expr.sql
    bindings: list[Binding] = []

    def visit(e: Expression) -> None:
        bindings.extend(e.bindings().values())

    expr.traverse(visit)
    return bindings


def collect_parameters(expr: Expression) -> dict[str, Any]:
    """Values of every named placeholder in ``expr``, keyed by placeholder name (``:c1_0``)."""
    return {
        binding.name: binding.value
        for binding in collect_bindings(expr)
        if binding.placeholder
    }
