"""Documentation blocks and the directives embedded in them.

A doc block is the comment immediately preceding a definition.  Lines
starting with ``@name`` are directives; everything else is description.

Two directives carry semantics:

- ``@rest VERB /path/:param`` binds a method to an HTTP route.
- ``@validate KIND ARGS`` constrains a field, argument or typedef
  (``regex /pattern/flags``, ``length MIN-MAX``, ``range MIN-MAX``).

Parsing a directive never raises; malformed directives produce ``None``
plus a problem string so the auditor can report every one of them.
"""

from __future__ import annotations

import re
import textwrap
from dataclasses import dataclass, field

from idlroute.domain.types import HttpVerb

_TAG_RE = re.compile(r"^@(\w+)\s*(.*)$")
_PATH_PARAM_RE = re.compile(r":(\w+)|\{(\w+)\}")
_BOUNDS_RE = re.compile(r"^(-?\d+(?:\.\d+)?)?\s*-\s*(-?\d+(?:\.\d+)?)?$")
_EXACT_RE = re.compile(r"^-?\d+(?:\.\d+)?$")
_REGEX_RE = re.compile(r"^/(.*)/([imsx]*)$")


@dataclass(frozen=True)
class Doc:
    """A parsed documentation block."""

    text: str = ""
    description: str = ""
    tags: dict[str, tuple[str, ...]] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not self.text.strip()

    def tag(self, name: str) -> tuple[str, ...]:
        """Return every value given for directive *name* (possibly empty)."""
        return self.tags.get(name, ())


EMPTY_DOC = Doc()


def clean_comment(raw: str) -> str:
    """Strip comment delimiters and leading ``*`` gutters from a block comment."""
    body = raw
    if body.startswith("/*"):
        body = body[2:]
    if body.endswith("*/"):
        body = body[:-2]
    body = body.lstrip("*")
    lines = []
    for line in body.splitlines():
        stripped = line.strip()
        if stripped.startswith("*"):
            stripped = stripped[1:]
            line = stripped[1:] if stripped.startswith(" ") else stripped
        lines.append(line.rstrip())
    return textwrap.dedent("\n".join(lines)).strip()


def parse_doc(raw: str | None) -> Doc:
    """Parse a raw block comment into a :class:`Doc`."""
    if not raw:
        return EMPTY_DOC
    text = clean_comment(raw)
    description: list[str] = []
    tags: dict[str, list[str]] = {}
    for line in text.splitlines():
        stripped = line.strip()
        match = _TAG_RE.match(stripped)
        if match:
            tags.setdefault(match.group(1), []).append(match.group(2).strip())
        elif stripped:
            description.append(stripped)
    return Doc(
        text=text,
        description=" ".join(description),
        tags={k: tuple(v) for k, v in tags.items()},
    )


# ---------------------------------------------------------------------------
# @rest
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RestBinding:
    """HTTP verb and path template bound to one method."""

    verb: HttpVerb
    path: str

    @property
    def path_params(self) -> tuple[str, ...]:
        """Names of the ``:name`` / ``{name}`` segments in the path."""
        return tuple(a or b for a, b in _PATH_PARAM_RE.findall(self.path))

    @property
    def route_key(self) -> str:
        """Verb plus path with parameter names erased, for collision checks."""
        return f"{self.verb} {_PATH_PARAM_RE.sub('{}', self.path)}"

    def __str__(self) -> str:
        return f"{self.verb} {self.path}"


def parse_rest(value: str) -> tuple[RestBinding | None, str | None]:
    """Parse ``VERB /path`` into a :class:`RestBinding`.

    Returns ``(binding, None)`` on success or ``(None, problem)``.  The
    problem is ``"unknown_verb"`` when only the verb is wrong, so the
    auditor can tell the two failures apart.
    """
    parts = value.split()
    if len(parts) != 2:
        return None, "invalid_rest"
    verb, path = parts
    if not path.startswith("/"):
        return None, "invalid_rest"
    try:
        http_verb = HttpVerb(verb.upper())
    except ValueError:
        return None, "unknown_verb"
    return RestBinding(verb=http_verb, path=path), None


# ---------------------------------------------------------------------------
# @validate
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ValidateRule:
    """One ``@validate`` directive."""

    kind: str
    pattern: re.Pattern[str] | None = None
    minimum: float | None = None
    maximum: float | None = None
    source: str = ""

    def describe(self) -> str:
        if self.kind == "regex" and self.pattern is not None:
            return f"must match /{self.pattern.pattern}/"
        low = "" if self.minimum is None else _fmt(self.minimum)
        high = "" if self.maximum is None else _fmt(self.maximum)
        return f"{self.kind} must be within {low}-{high}"


def _fmt(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def _parse_bounds(text: str) -> tuple[float | None, float | None] | None:
    text = text.strip()
    if _EXACT_RE.match(text):
        exact = float(text)
        return exact, exact
    match = _BOUNDS_RE.match(text)
    if not match or (match.group(1) is None and match.group(2) is None):
        return None
    low = float(match.group(1)) if match.group(1) is not None else None
    high = float(match.group(2)) if match.group(2) is not None else None
    if low is not None and high is not None and low > high:
        return None
    return low, high


_REGEX_FLAGS = {"i": re.IGNORECASE, "m": re.MULTILINE, "s": re.DOTALL, "x": re.VERBOSE}


def parse_validate(value: str) -> tuple[ValidateRule | None, str | None]:
    """Parse the argument of one ``@validate`` directive."""
    kind, _, rest = value.strip().partition(" ")
    rest = rest.strip()
    if kind == "regex":
        match = _REGEX_RE.match(rest)
        if not match:
            return None, f"regex must be written as /pattern/, got {rest!r}"
        flags = 0
        for flag in match.group(2):
            flags |= _REGEX_FLAGS[flag]
        try:
            pattern = re.compile(match.group(1), flags)
        except re.error as exc:
            return None, f"invalid regex /{match.group(1)}/: {exc}"
        return ValidateRule(kind="regex", pattern=pattern, source=value), None
    if kind in ("length", "range"):
        bounds = _parse_bounds(rest)
        if bounds is None:
            return None, f"{kind} must be written as MIN-MAX, got {rest!r}"
        return ValidateRule(kind=kind, minimum=bounds[0], maximum=bounds[1], source=value), None
    return None, f"unknown validation kind {kind!r}"


def validate_rules(doc: Doc) -> list[ValidateRule]:
    """Return the well-formed ``@validate`` rules of *doc*; malformed ones are skipped."""
    rules: list[ValidateRule] = []
    for value in doc.tag("validate"):
        rule, _problem = parse_validate(value)
        if rule is not None:
            rules.append(rule)
    return rules
