"""Expansion of multi-valued bindings into one placeholder per element."""

import logging
import re
from typing import Any

from ..bindings import Binding, BindingStore
from ..config import get_settings

logger = logging.getLogger("querytree")

_SEQUENCE_TYPES = (list, tuple, set, frozenset)


def _elements(value: Any) -> list[Any]:
    """Elements of a multi-valued binding; a lone scalar counts as one element."""
    if value is None:
        return []
    if isinstance(value, _SEQUENCE_TYPES):
        return list(value)
    return [value]


def _token_pattern(token: str) -> re.Pattern:
    """Match ``token`` as a whole placeholder (``:c1_1`` never matches inside ``:c1_12``)."""
    return re.compile(re.escape(token) + r"(?!\w)")


def expand_array_bindings(
    conditions: list[Any], store: BindingStore
) -> tuple[list[Any], dict[int, Binding]]:
    """Return new conditions and a new binding table with multi bindings expanded.

    Every multi binding is replaced by one binding per element, each under a
    fresh placeholder reserved from ``store``; string conditions that mention
    the original placeholder get the comma-joined new placeholders instead.
    Neither ``conditions`` nor ``store.bindings`` is modified, only the
    store's sequence counter moves forward.
    """
    settings = get_settings()
    table: dict[int, Binding] = {}
    replacements: dict[str, str] = {}
    added: dict[int, Binding] = {}
    for number, binding in list(store.bindings.items()):
        if not binding.is_multi:
            table[number] = binding
            continue
        names = []
        for value in _elements(binding.value):
            new_number, name = store.reserve(binding.placeholder, record=False)
            added[new_number] = Binding(
                placeholder=name[1:], value=value, type=binding.element_type
            )
            names.append(name)
        replacements[binding.name] = settings.array_separator.join(names)
        logger.debug("Expanded %s into %d placeholders", binding.name, len(names))
    table.update(added)

    patterns = [(_token_pattern(token), text) for token, text in replacements.items()]
    expanded = []
    for condition in conditions:
        if isinstance(condition, str):
            for pattern, text in patterns:
                condition = pattern.sub(lambda _match, text=text: text, condition)
        expanded.append(condition)
    return expanded, table
