"""Marked section status keywords."""

from __future__ import annotations

from enum import Enum

from .errors import MarkedSectionKeywordError


class _StrEnum(str, Enum):
    """Backport of enum.StrEnum (Python 3.11+).

    We support Python 3.10+, so we use this small mixin instead.
    """


class MarkedSectionKind(_StrEnum):
    CDATA = "CDATA"
    RCDATA = "RCDATA"
    IGNORE = "IGNORE"
    INCLUDE = "INCLUDE"

    def __str__(self) -> str:
        return self.value


# Higher wins when a section lists several keywords
_PRIORITY = {
    MarkedSectionKind.INCLUDE: 0,
    MarkedSectionKind.RCDATA: 1,
    MarkedSectionKind.CDATA: 2,
    MarkedSectionKind.IGNORE: 3,
}

_KEYWORDS = {
    "CDATA": MarkedSectionKind.CDATA,
    "RCDATA": MarkedSectionKind.RCDATA,
    "IGNORE": MarkedSectionKind.IGNORE,
    "INCLUDE": MarkedSectionKind.INCLUDE,
    "TEMP": MarkedSectionKind.INCLUDE,
}


def parse_keywords(keywords: str, *, offset: int | None = None) -> MarkedSectionKind:
    """Return the effective kind of a marked section from its status keywords.

    Keywords are case-insensitive and separated by whitespace. When several
    are given the strongest wins (IGNORE, then CDATA, then RCDATA, then
    INCLUDE). An empty keyword list means INCLUDE.
    """
    kind = MarkedSectionKind.INCLUDE
    for word in keywords.split():
        found = _KEYWORDS.get(word.upper())
        if found is None:
            raise MarkedSectionKeywordError(word, offset=offset)
        if _PRIORITY[found] > _PRIORITY[kind]:
            kind = found
    return kind


def coerce_kind(value: MarkedSectionKind | str) -> MarkedSectionKind:
    if isinstance(value, MarkedSectionKind):
        return value
    found = _KEYWORDS.get(str(value).upper())
    if found is None:
        raise MarkedSectionKeywordError(str(value))
    return found
