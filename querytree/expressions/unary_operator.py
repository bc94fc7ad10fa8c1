"""Unary operator expression."""

from typing import Any

from ..errors import InvalidExpressionError
from ._bases import Expression


class UnaryOperatorExpression(Expression):
    """Single-argument operator, prefix or postfix (e.g. ``NOT (...)``, ``x IS NULL``)."""

    symbol: str
    argument: Any = None
    postfix: bool = False
    """If True, render as ``argument symbol``; else ``symbol (argument)``."""

    def children(self) -> tuple[Expression, ...]:
        if isinstance(self.argument, Expression):
            return (self.argument,)
        return ()

    @property
    def sql(self) -> str:
        if not self.symbol:
            raise InvalidExpressionError("UnaryOperatorExpression must have a symbol")
        if self.argument is None:
            raise InvalidExpressionError("UnaryOperatorExpression must have an argument")
        if isinstance(self.argument, Expression):
            argument = self.argument.sql if self.postfix else self.argument.wrapped_sql()
        else:
            argument = str(self.argument) if self.postfix else f"({self.argument})"
        if self.postfix:
            return f"{argument} {self.symbol}"
        return f"{self.symbol} {argument}"
