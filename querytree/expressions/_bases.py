"""Base expression type for SQL condition trees."""

from __future__ import annotations
from typing import Any, Callable

from pydantic import BaseModel

from ..bindings import Binding


class Expression(BaseModel):
    """Base type for all SQL expression nodes.

    Subclasses must implement the ``sql`` property. The default ``bindings()``
    is empty; expression types that bind values override it to return their
    own bindings (not their children's, use ``traverse`` for those).
    """

    model_config = {"arbitrary_types_allowed": True}

    @property
    def sql(self) -> str:
        """SQL fragment for this expression, with named placeholders for bound values."""
        raise NotImplementedError("Subclasses must implement `sql` property")

    def bindings(self) -> dict[int, Binding]:
        """Bindings registered directly on this expression, by sequence number."""
        return {}

    def children(self) -> tuple["Expression", ...]:
        """Nested expressions, in rendering order."""
        return ()

    def traverse(self, visitor: Callable[["Expression"], Any]) -> "Expression":
        """Call ``visitor`` on every nested expression, deepest first, then on ``self``."""
        for child in self.children():
            child.traverse(visitor)
        visitor(self)
        return self

    def wrapped_sql(self) -> str:
        """``sql`` in parentheses, unless it already renders as one parenthesized group."""
        return f"({self.sql})"

    def __str__(self) -> str:
        return self.sql

    def __and__(self, other: Any):
        from .query import QueryExpression
        return QueryExpression(conjunction="AND").append(self).append(other)

    def __or__(self, other: Any):
        from .query import QueryExpression
        return QueryExpression(conjunction="OR").append(self).append(other)

    def __invert__(self):
        from .unary_operator import UnaryOperatorExpression
        from .query import QueryExpression
        return UnaryOperatorExpression(symbol="NOT", argument=QueryExpression().append(self))
