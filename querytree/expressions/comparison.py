"""Comparison between a field and a value (``age > :c7_0``)."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import Field as PydanticField, PrivateAttr

from ..bindings import Binding, BindingStore
from ..errors import InvalidExpressionError
from ._bases import Expression


class ComparisonExpression(Expression):
    """``field operator value`` where a literal value is bound to a placeholder.

    The value is bound on construction, in this expression's own store, so the
    placeholder lives in its own namespace and shows up through ``traverse``.
    A value that is itself an expression renders in place and binds nothing.
    """

    field: str
    value: Any = None
    type: Optional[str] = None
    operator: str = "="
    bindings_store: BindingStore = PydanticField(default_factory=BindingStore, repr=False)
    _placeholder: Optional[str] = PrivateAttr(default=None)

    def model_post_init(self, __context: Any) -> None:
        if not isinstance(self.value, Expression):
            self._placeholder = self.bindings_store.register(self.field, self.value, self.type)

    @property
    def placeholder(self) -> Optional[str]:
        """Placeholder bound to a literal value, None when the value is an expression."""
        return self._placeholder

    def bindings(self) -> dict[int, Binding]:
        return dict(self.bindings_store.bindings)

    def children(self) -> tuple[Expression, ...]:
        if isinstance(self.value, Expression):
            return (self.value,)
        return ()

    @property
    def sql(self) -> str:
        if not self.operator or not self.operator.strip():
            raise InvalidExpressionError(f"Comparison on `{self.field}` must have an operator")
        if isinstance(self.value, Expression):
            return f"{self.field} {self.operator} {self.value.wrapped_sql()}"
        return f"{self.field} {self.operator} {self._placeholder}"
