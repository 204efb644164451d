"""Resource URI templates such as ``user://{user_id}/profile``.

A template is split into its scheme and ``/``-separated segments. Segments
without placeholders are literal and must match exactly; segments with
placeholders capture one non-empty path segment per placeholder.
"""

import re
from dataclasses import dataclass

_PLACEHOLDER = re.compile(r"\{([A-Za-z_][A-Za-z0-9_]*)\}")


def has_placeholders(uri: str) -> bool:
    """Return True if the URI pattern contains ``{name}`` placeholders."""
    return _PLACEHOLDER.search(uri) is not None


def _split(uri: str) -> tuple[str, list[str]]:
    if "://" in uri:
        scheme, rest = uri.split("://", 1)
        return scheme, rest.split("/")
    return "", uri.split("/")


@dataclass(frozen=True)
class Segment:
    """One ``/``-separated piece of a template."""

    text: str
    names: tuple[str, ...] = ()
    pattern: re.Pattern[str] | None = None

    @property
    def is_literal(self) -> bool:
        return self.pattern is None

    def match(self, value: str) -> dict[str, str] | None:
        if self.pattern is None:
            return {} if value == self.text else None
        m = self.pattern.fullmatch(value)
        return m.groupdict() if m else None


def _compile_segment(text: str) -> Segment:
    names: list[str] = []
    parts: list[str] = []
    pos = 0
    for m in _PLACEHOLDER.finditer(text):
        parts.append(re.escape(text[pos : m.start()]))
        parts.append(f"(?P<{m.group(1)}>[^/]+?)")
        names.append(m.group(1))
        pos = m.end()
    if not names:
        return Segment(text)
    parts.append(re.escape(text[pos:]))
    return Segment(text, tuple(names), re.compile("".join(parts)))


class UriTemplate:
    """Compiled URI pattern with named placeholders."""

    def __init__(self, template: str):
        stripped = _PLACEHOLDER.sub("", template)
        if "{" in stripped or "}" in stripped:
            raise ValueError(f"Malformed placeholder in URI template: {template}")

        self.template = template
        self.scheme, raw_segments = _split(template)
        if has_placeholders(self.scheme):
            raise ValueError(f"Placeholders are not allowed in the scheme: {template}")

        self.segments = tuple(_compile_segment(s) for s in raw_segments)

        names = [n for seg in self.segments for n in seg.names]
        duplicates = {n for n in names if names.count(n) > 1}
        if duplicates:
            raise ValueError(
                f"Duplicate placeholders {sorted(duplicates)} in URI template: {template}"
            )
        self.placeholders = tuple(names)

    @property
    def literal_count(self) -> int:
        """Number of fully literal segments; the scheme counts as one."""
        return 1 + sum(1 for seg in self.segments if seg.is_literal)

    @property
    def is_template(self) -> bool:
        return bool(self.placeholders)

    def match(self, uri: str) -> dict[str, str] | None:
        """Match a concrete URI, returning captured values or None."""
        scheme, segments = _split(uri)
        if scheme != self.scheme or len(segments) != len(self.segments):
            return None

        captured: dict[str, str] = {}
        for seg, value in zip(self.segments, segments, strict=True):
            result = seg.match(value)
            if result is None:
                return None
            captured.update(result)
        return captured

    def expand(self, values: dict[str, object]) -> str:
        """Substitute placeholder values into the template."""
        missing = [n for n in self.placeholders if n not in values]
        if missing:
            raise ValueError(
                f"Missing values for {missing} in URI template: {self.template}"
            )
        return _PLACEHOLDER.sub(lambda m: str(values[m.group(1)]), self.template)

    def __repr__(self) -> str:
        return f"UriTemplate({self.template!r})"
