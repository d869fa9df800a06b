from typing import Any, Callable, Optional

from .errors import UnsupportedQueryError

Renderer = Callable[..., str]


class QueryTemplate:
    """A statement builder that also exposes its raw template text.

    By default the template is rendered with ``str.format`` so fields such as
    ``{table.label}`` or ``{limit}`` can be used. Pass ``render`` to control
    quoting or build the statement some other way.
    """

    def __init__(self, raw: str, render: Optional[Renderer] = None):
        self.raw = raw
        self._render = render

    def __call__(self, **params: Any) -> str:
        if self._render is not None:
            return self._render(**params)
        return self.raw.format(**params)

    def __repr__(self) -> str:
        return f"QueryTemplate({self.raw!r})"


class BaseQueries:
    """Query-generator capability injected into a driver.

    Subclasses set the templates their dialect supports. ``fetch_records`` and
    ``count_records`` are optional; drivers feature-detect them with
    :meth:`supports`.
    """

    describe_table: Optional[QueryTemplate] = None
    fetch_records: Optional[QueryTemplate] = None
    count_records: Optional[QueryTemplate] = None

    def supports(self, *names: str) -> bool:
        return all(callable(getattr(self, name, None)) for name in names)

    def template(self, name: str) -> QueryTemplate:
        """Return template ``name`` or raise if this dialect lacks it."""

        template = getattr(self, name, None)
        if not callable(template):
            raise UnsupportedQueryError(
                f"{type(self).__name__} does not support '{name}'"
            )
        return template
