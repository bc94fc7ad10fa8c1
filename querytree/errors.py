"""Exception hierarchy for condition compilation."""


class QueryTreeError(Exception):
    """Base exception for querytree errors."""


class InvalidExpressionError(QueryTreeError, ValueError):
    """Raised when an expression node cannot be rendered (e.g. empty operator)."""


class ExpressionCompiledError(QueryTreeError, RuntimeError):
    """Raised when conditions are added to a tree that was already compiled."""

    def __init__(self, identifier: str) -> None:
        super().__init__(f"QueryExpression {identifier} is already compiled and cannot be modified")
        self.identifier = identifier
