"""Process-wide compiler settings (placeholder naming, multi marker, separators)."""

import logging

from pydantic import BaseModel, Field

logger = logging.getLogger("querytree")


class CompilerSettings(BaseModel):
    """Knobs read by the binding store, the condition compiler and the array expander."""

    model_config = {"frozen": True, "extra": "forbid"}

    placeholder_prefix: str = Field(default="c", pattern=r"^[A-Za-z_]\w*$")
    """Leading letters of synthesized placeholder names (``:c<identifier>_<number>``)."""
    multi_marker: str = Field(default="[]", min_length=1)
    """Suffix on a logical type meaning "expand this value into one placeholder per element"."""
    default_multi_type: str = "string"
    """Logical type used for ``IN`` / ``NOT IN`` values when the caller gave none."""
    positional_placeholder: str = "?"
    array_separator: str = ", "
    default_conjunction: str = "AND"


_settings: dict[str, CompilerSettings] = {}


def configure(**options) -> CompilerSettings:
    """Validate and install new settings, starting from the active ones."""
    settings = CompilerSettings(**{**get_settings().model_dump(), **options})
    _settings["default"] = settings
    logger.info("Compiler settings updated: %s", options)
    return settings


def get_settings() -> CompilerSettings:
    """Return the active settings (defaults until ``configure()`` is called)."""
    try:
        return _settings["default"]
    except KeyError:
        return _settings.setdefault("default", CompilerSettings())


def reset_settings() -> CompilerSettings:
    """Drop any configured settings and go back to the defaults."""
    _settings.pop("default", None)
    return get_settings()
