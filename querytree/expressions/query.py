"""Boolean condition tree: compiles condition descriptions into SQL and bindings.

A :class:`QueryExpression` holds an ordered list of conditions joined by one
conjunction (``AND``, ``OR``, ``XOR``). Conditions are SQL strings, nested
trees, ``NOT`` wrappers or comparisons. Values compared with ``IN`` / ``NOT IN``
are bound once on the tree and expanded into one placeholder per element the
first time the tree is rendered. For example
``QueryExpression({"name": "joe", "age >": 18, "OR": ["a = 1", "b = 2"]})``
renders as ``(name = :c2_0 AND age > :c3_0 AND (a = 1 OR b = 2))``, where the
numbers in each placeholder come from the store that bound it.

Rendering compiles the tree once; later calls reuse the result, and adding
conditions to a compiled tree raises :class:`~querytree.errors.ExpressionCompiledError`.
This type is not safe for concurrent mutation.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Union

from pydantic import BaseModel, Field as PydanticField, PrivateAttr

from ..bindings import Binding, BindingStore
from ..config import get_settings
from ..errors import ExpressionCompiledError
from ..items import FieldOp, Group, Negation, Nested, Raw, parse_conditions
from ._bases import Expression
from .comparison import ComparisonExpression
from .expander import expand_array_bindings
from .unary_operator import UnaryOperatorExpression

logger = logging.getLogger("querytree")

Types = Optional[dict[str, str]]


class CompiledExpression(BaseModel):
    """Rendered SQL of one tree level and its final bindings (after array expansion)."""

    model_config = {"frozen": True}

    sql: str
    bindings: dict[int, Binding]


class QueryExpression(Expression):
    """Tree of SQL conditions joined by a conjunction, with bound values."""

    conjunction: str = "AND"
    conditions: list[Any] = PydanticField(default_factory=list)
    bindings_store: BindingStore = PydanticField(default_factory=BindingStore, repr=False)

    _compiled: Optional[CompiledExpression] = PrivateAttr(default=None)

    def __init__(self, conditions: Any = None, types: Types = None, conjunction: Optional[str] = None, **data):
        if conjunction is None:
            conjunction = get_settings().default_conjunction
        super().__init__(conjunction=conjunction.upper(), **data)
        if conditions:
            self.add(conditions, types)

    @property
    def identifier(self) -> str:
        """Namespace of the placeholders this tree synthesizes."""
        return self.bindings_store.identifier

    @property
    def is_compiled(self) -> bool:
        return self._compiled is not None

    # building

    def type(self, conjunction: Optional[str] = None):
        """Without argument, return the conjunction; with one, set it (uppercased) and return ``self``."""
        if conjunction is None:
            return self.conjunction
        self._ensure_mutable()
        self.conjunction = conjunction.upper()
        return self

    def add(self, conditions: Any, types: Types = None) -> "QueryExpression":
        """Add conditions: a SQL string, a non-empty tree, or a list/dict description."""
        self._ensure_mutable()
        return self._add_items(parse_conditions(conditions), types or {})

    def append(self, condition: Union[str, Expression]) -> "QueryExpression":
        """Add one SQL string or expression node as a direct child, as is."""
        self._ensure_mutable()
        self.conditions.append(condition)
        return self

    def eq(self, field: str, value: Any, type: Optional[str] = None):
        return self._compare(field, "=", value, type)

    def not_eq(self, field: str, value: Any, type: Optional[str] = None):
        return self._compare(field, "!=", value, type)

    def gt(self, field: str, value: Any, type: Optional[str] = None):
        return self._compare(field, ">", value, type)

    def lt(self, field: str, value: Any, type: Optional[str] = None):
        return self._compare(field, "<", value, type)

    def gte(self, field: str, value: Any, type: Optional[str] = None):
        return self._compare(field, ">=", value, type)

    def lte(self, field: str, value: Any, type: Optional[str] = None):
        return self._compare(field, "<=", value, type)

    def like(self, field: str, value: Any, type: Optional[str] = None):
        return self._compare(field, "LIKE", value, type)

    def not_like(self, field: str, value: Any, type: Optional[str] = None):
        return self._compare(field, "NOT LIKE", value, type)

    def in_(self, field: str, values: Any, type: Optional[str] = None):
        return self._compare(field, "IN", values, type)

    def not_in(self, field: str, values: Any, type: Optional[str] = None):
        return self._compare(field, "NOT IN", values, type)

    def is_null(self, field: str):
        return self.add(f"{field} IS NULL")

    def is_not_null(self, field: str):
        return self.add(f"{field} IS NOT NULL")

    def not_(self, conditions: Any, types: Types = None):
        """Wrap ``conditions`` in ``NOT`` and add it to this tree."""
        return self.add({"NOT": conditions}, types)

    @staticmethod
    def and_(conditions: Any, types: Types = None) -> "QueryExpression":
        """New ``AND`` tree from ``conditions``; a callable is given an empty ``AND`` tree instead."""
        if callable(conditions):
            return conditions(QueryExpression(conjunction="AND"))
        return QueryExpression(conditions, types, "AND")

    @staticmethod
    def or_(conditions: Any, types: Types = None) -> "QueryExpression":
        """New ``OR`` tree from ``conditions``; a callable is given an empty ``OR`` tree instead."""
        if callable(conditions):
            return conditions(QueryExpression(conjunction="OR"))
        return QueryExpression(conditions, types, "OR")

    def _compare(self, field: str, operator: str, value: Any, type: Optional[str]):
        return self.add({f"{field} {operator}": value}, {field: type} if type else {})

    def _ensure_mutable(self) -> None:
        if self._compiled is not None:
            raise ExpressionCompiledError(self.identifier)

    def _compile_item(self, item, types: dict[str, str]):
        if isinstance(item, Raw):
            return item.text
        if isinstance(item, Nested):
            return item.expression
        if isinstance(item, Group):
            if not item.items:
                logger.debug("Skipping empty %s group", item.conjunction)
                return None
            return QueryExpression(conjunction=item.conjunction)._add_items(item.items, types)
        if isinstance(item, Negation):
            if not item.items:
                logger.debug("Skipping empty NOT group")
                return None
            inner = QueryExpression()._add_items(item.items, types)
            return UnaryOperatorExpression(symbol="NOT", argument=inner)
        if isinstance(item, FieldOp):
            return self._parse_condition(item, types)
        raise TypeError(f"Unknown condition item: {item!r}")

    def _add_items(self, items, types: dict[str, str]) -> "QueryExpression":
        for item in items:
            node = self._compile_item(item, types)
            if node is not None:
                self.conditions.append(node)
        return self

    def _parse_condition(self, item: FieldOp, types: dict[str, str]):
        settings = get_settings()
        type = types.get(item.field)
        if item.is_multi:
            type = type or settings.default_multi_type
            if settings.multi_marker not in type:
                type += settings.multi_marker
        if isinstance(item.value, Expression) or not item.is_multi:
            return ComparisonExpression(field=item.field, value=item.value, type=type, operator=item.operator)
        placeholder = self.bindings_store.register(item.field, item.value, type)
        return f"{item.field} {item.operator} ({placeholder})"

    # bindings

    def bind(self, name: str, value: Any, type: Optional[str] = None) -> "QueryExpression":
        """Bind ``value`` to the placeholder ``name`` (as returned by ``placeholder()``)."""
        self._ensure_mutable()
        self.bindings_store.bind(name, value, type)
        return self

    def placeholder(self, token: Any) -> str:
        """Reserve the placeholder to use for ``token`` (see ``BindingStore.reserve``)."""
        return self.bindings_store.placeholder(token)

    def bindings(self) -> dict[int, Binding]:
        """Bindings of this tree level; after compilation, the expanded ones."""
        if self._compiled is not None:
            return dict(self._compiled.bindings)
        return dict(self.bindings_store.bindings)

    # rendering

    def count(self) -> int:
        """Number of direct conditions (not recursive)."""
        return len(self.conditions)

    def __len__(self) -> int:
        return len(self.conditions)

    def children(self) -> tuple[Expression, ...]:
        return tuple(c for c in self.conditions if isinstance(c, Expression))

    def compile(self) -> CompiledExpression:
        """Expand array bindings and render this tree, once."""
        if self._compiled is not None:
            return self._compiled
        conditions = list(self.conditions)
        bindings = dict(self.bindings_store.bindings)
        if self.bindings_store.replace_array_params:
            conditions, bindings = expand_array_bindings(conditions, self.bindings_store)
        parts = [c if isinstance(c, str) else c.sql for c in conditions]
        sql = f" {self.conjunction} ".join(parts)
        if len(parts) > 1:
            sql = f"({sql})"
        self.conditions = conditions
        self._compiled = CompiledExpression(sql=sql, bindings=bindings)
        return self._compiled

    @property
    def sql(self) -> str:
        return self.compile().sql

    def wrapped_sql(self) -> str:
        if len(self.conditions) > 1:
            return self.sql
        if len(self.conditions) == 1 and isinstance(self.conditions[0], Expression):
            self.compile()
            return self.conditions[0].wrapped_sql()
        return f"({self.sql})"


and_ = QueryExpression.and_
or_ = QueryExpression.or_
