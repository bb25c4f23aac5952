"""Entity and character reference handling.

Text whose entity references have not been expanded yet is kept in
replaceable character data form: every entity reference appears as
`&name;` and every literal ampersand as `&#38;`. Other characters are
stored as themselves.
"""

from __future__ import annotations

import html.entities
import re
from collections.abc import Mapping
from typing import TYPE_CHECKING

from .errors import UnknownEntityError

if TYPE_CHECKING:
    from collections.abc import Callable

# Python's HTML5 entity list has keys with and without the trailing
# semicolon; only the bare names are needed here.
NAMED_ENTITIES = {}
for key, value in html.entities.html5.items():
    if key.endswith(";"):
        NAMED_ENTITIES[key[:-1]] = value
    else:
        NAMED_ENTITIES.setdefault(key, value)

_RCDATA_REFERENCE_PATTERN = re.compile(r"&(?:#([0-9]+)|([^\W\d_][\w.\-:]*));")
_PARAMETER_ENTITY_PATTERN = re.compile(r"%([^\W\d_][\w.\-:]*);?")


def html_entity_resolver(name: str) -> str | None:
    """Resolve `name` against the HTML5 named character references."""
    return NAMED_ENTITIES.get(name)


def make_resolver(resolver: Callable[[str], str | None] | Mapping[str, str]) -> Callable[[str], str | None]:
    """Return a callable for a resolver given as a callable or a mapping."""
    if isinstance(resolver, Mapping):
        return resolver.get
    return resolver


def resolve(name: str, resolver: Callable[[str], str | None], *, offset: int | None = None) -> str:
    value = resolver(name)
    if value is None:
        raise UnknownEntityError(name, offset=offset)
    return value


def escape_rcdata(text: str) -> str:
    return text.replace("&", "&#38;")


def entity_marker(name: str) -> str:
    return f"&{name};"


def expand_rcdata(content: str, resolver: Callable[[str], str | None]) -> str:
    """Turn replaceable character data into plain text.

    Escaped ampersands are decoded and every entity reference is replaced
    with what `resolver` returns for it. Unknown names raise
    `UnknownEntityError`.
    """
    if "&" not in content:
        return content

    def replace(match: re.Match[str]) -> str:
        if match.group(1) is not None:
            return chr(int(match.group(1)))
        return resolve(match.group(2), resolver)

    return _RCDATA_REFERENCE_PATTERN.sub(replace, content)


def expand_parameter_entities(
    text: str,
    resolver: Callable[[str], str | None] | None,
    *,
    offset: int | None = None,
) -> str:
    """Replace `%name;` parameter entity references in declaration text.

    The semicolon is optional. A `%` not followed by a name is kept as is.
    Without a resolver every reference is unknown.
    """
    if "%" not in text:
        return text

    def replace(match: re.Match[str]) -> str:
        name = match.group(1)
        if resolver is None:
            raise UnknownEntityError(name, offset=offset)
        return resolve(name, resolver, offset=offset)

    return _PARAMETER_ENTITY_PATTERN.sub(replace, text)
