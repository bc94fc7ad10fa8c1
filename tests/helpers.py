"""Shared test helpers."""

from querytree.expressions import Expression


class RawSql(Expression):
    """Expression rendering a fixed SQL fragment (e.g. a subquery), binding nothing."""

    text: str

    @property
    def sql(self) -> str:
        return self.text


def names(expression) -> list[str]:
    """Placeholder names bound anywhere in ``expression``, deepest trees first."""
    from querytree.expressions import collect_bindings
    return [binding.name for binding in collect_bindings(expression)]
