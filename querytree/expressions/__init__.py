"""SQL condition expression types.

This module provides the tree used to build WHERE-style conditions. A
:class:`QueryExpression` joins conditions with a conjunction; leaves are SQL
strings, :class:`ComparisonExpression` nodes (``field operator value``) and
:class:`UnaryOperatorExpression` nodes (``NOT (...)``). Each expression has a
``.sql`` property (SQL fragment with named placeholders) and ``.bindings()``
(the values it bound itself); ``collect_bindings`` gathers them for a whole tree.
"""

from ._bases import Expression
from .collect import collect_bindings, collect_parameters
from .comparison import ComparisonExpression
from .expander import expand_array_bindings
from .query import CompiledExpression, QueryExpression, and_, or_
from .unary_operator import UnaryOperatorExpression

# Resolve forward references between node types
UnaryOperatorExpression.model_rebuild()
ComparisonExpression.model_rebuild()
QueryExpression.model_rebuild()

__all__ = [
    "CompiledExpression",
    "ComparisonExpression",
    "Expression",
    "QueryExpression",
    "UnaryOperatorExpression",
    "and_",
    "collect_bindings",
    "collect_parameters",
    "expand_array_bindings",
    "or_",
]
