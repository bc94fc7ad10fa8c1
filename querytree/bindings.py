"""Bound parameter records and the per-tree store that names their placeholders.

Each expression that binds values owns a :class:`BindingStore`. The store's
``identifier`` is drawn from a process-wide counter, so placeholder names
synthesized by two different stores can never collide, however deeply their
trees are nested.
"""

from __future__ import annotations

import itertools
import math
import re
from typing import Any, Optional

from pydantic import BaseModel, Field, PrivateAttr

from .config import get_settings

_identifiers = itertools.count(1)

_NUMERIC = re.compile(r"\s*[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?\s*")


def next_identifier() -> str:
    """Return a fresh store identifier, never reused within the process."""
    return str(next(_identifiers))


def is_numeric(token: Any) -> bool:
    """Whether ``token`` is a number or a string written as a decimal number.

    ``3``, ``"3"``, ``" 1.5 "`` and ``"1e3"`` are numeric; ``"nan"``, ``"inf"``
    and ``"1_000"`` are names.
    """
    if isinstance(token, bool):
        return False
    if isinstance(token, int):
        return True
    if isinstance(token, float):
        return math.isfinite(token)
    if not isinstance(token, str):
        return False
    return _NUMERIC.fullmatch(token) is not None


class Binding(BaseModel):
    """A bound value: placeholder fragment (without ``:``), value and logical type."""

    model_config = {"frozen": True, "arbitrary_types_allowed": True}

    placeholder: str
    value: Any = None
    type: Optional[str] = None

    @property
    def name(self) -> str:
        """Placeholder as it appears in SQL (``:c1_0``), or the positional marker."""
        if not self.placeholder:
            return get_settings().positional_placeholder
        return ":" + self.placeholder

    @property
    def is_multi(self) -> bool:
        """Whether the value is a sequence to expand into one placeholder per element."""
        return self.type is not None and get_settings().multi_marker in self.type

    @property
    def element_type(self) -> Optional[str]:
        """Logical type of each element of a multi binding."""
        if self.type is None:
            return None
        return self.type.replace(get_settings().multi_marker, "")


class BindingStore(BaseModel):
    """Placeholder names and bound values registered directly on one expression.

    ``count`` only grows: every reserved placeholder consumes a sequence number,
    whether or not a value ends up bound to it.
    """

    identifier: str = Field(default_factory=next_identifier)
    count: int = 0
    bindings: dict[int, Binding] = Field(default_factory=dict)
    replace_array_params: bool = False

    _reserved: dict[str, int] = PrivateAttr(default_factory=dict)

    def reserve(self, token: Any, record: bool = True) -> tuple[int, str]:
        """Consume a sequence number and decide the placeholder for ``token``.

        Numeric tokens give the positional marker, tokens already written as
        ``:name`` are kept, anything else gets a synthesized name. With
        ``record``, the number is kept for a later ``bind()`` of that name.
        """
        settings = get_settings()
        number = self.count
        self.count += 1
        if is_numeric(token):
            name = settings.positional_placeholder
        elif isinstance(token, str) and token.startswith(":"):
            name = token
        else:
            name = f":{settings.placeholder_prefix}{self.identifier}_{number}"
        if record:
            self._reserved[name] = number
        return number, name

    def placeholder(self, token: Any) -> str:
        """Return the placeholder to embed in SQL for ``token``."""
        return self.reserve(token)[1]

    def bind(self, name: str, value: Any, type: Optional[str] = None) -> "BindingStore":
        """Record ``value`` for the placeholder ``name``.

        The binding is stored under the sequence number reserved for ``name``;
        a name that was never reserved consumes a new number.
        """
        number = self._reserved.pop(name, None)
        if number is None:
            number = self.count
            self.count += 1
        fragment = name[1:] if name.startswith(":") else ""
        self.bindings[number] = Binding(placeholder=fragment, value=value, type=type)
        if type is not None and get_settings().multi_marker in type:
            self.replace_array_params = True
        return self

    def register(self, token: Any, value: Any, type: Optional[str] = None) -> str:
        """Reserve a placeholder for ``token``, bind ``value`` to it, return the placeholder."""
        name = self.placeholder(token)
        self.bind(name, value, type)
        return name

    def __len__(self) -> int:
        return len(self.bindings)
