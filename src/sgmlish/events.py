"""Structural events and the immutable `Fragment` that holds them."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Union

from .marked_sections import MarkedSectionKind

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Iterator, Mapping

    from .config import ParserConfig


@dataclass(frozen=True, slots=True)
class StartTag:
    name: str
    attributes: tuple[tuple[str, str | None], ...] = ()
    # Attributes whose values still hold unexpanded entity references
    rcdata_attributes: frozenset[str] = field(default=frozenset())

    def __post_init__(self) -> None:
        if not isinstance(self.attributes, tuple):
            object.__setattr__(self, "attributes", tuple(tuple(pair) for pair in self.attributes))
        if not isinstance(self.rcdata_attributes, frozenset):
            object.__setattr__(self, "rcdata_attributes", frozenset(self.rcdata_attributes))

    def get(self, name: str, default: str | None = None) -> str | None:
        for key, value in self.attributes:
            if key == name:
                return value
        return default

    def has_attribute(self, name: str) -> bool:
        return any(key == name for key, _ in self.attributes)


@dataclass(frozen=True, slots=True)
class EndTag:
    name: str


@dataclass(frozen=True, slots=True)
class Text:
    content: str
    rcdata: bool = False


@dataclass(frozen=True, slots=True)
class MarkedSection:
    kind: MarkedSectionKind
    content: str
    # Where the body starts in the parsed text, for error positions
    offset: int | None = field(default=None, compare=False)
    line: int | None = field(default=None, compare=False)
    column: int | None = field(default=None, compare=False)


@dataclass(frozen=True, slots=True)
class MarkupDeclaration:
    text: str


@dataclass(frozen=True, slots=True)
class ProcessingInstruction:
    text: str


Event = Union[StartTag, EndTag, Text, MarkedSection, MarkupDeclaration, ProcessingInstruction]


class Fragment:
    """An immutable, ordered sequence of events.

    Transforms never modify a fragment; they return a new one, or the same
    object when there was nothing to change.
    """

    __slots__ = ("_events",)

    def __init__(self, events: Iterable[Event] = ()) -> None:
        self._events: tuple[Event, ...] = tuple(events)

    @property
    def events(self) -> tuple[Event, ...]:
        return self._events

    def __len__(self) -> int:
        return len(self._events)

    def __iter__(self) -> Iterator[Event]:
        return iter(self._events)

    def __getitem__(self, index):
        if isinstance(index, slice):
            return Fragment(self._events[index])
        return self._events[index]

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Fragment):
            return self._events == other._events
        if isinstance(other, (list, tuple)):
            return self._events == tuple(other)
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._events)

    def __repr__(self) -> str:
        return f"Fragment({list(self._events)!r})"

    def __str__(self) -> str:
        from .serialize import to_sgml

        return to_sgml(self)

    # Transform shortcuts

    def trim_spaces(self) -> Fragment:
        from .transforms import trim_spaces

        return trim_spaces(self)

    def lowercase_identifiers(self) -> Fragment:
        from .transforms import lowercase_identifiers

        return lowercase_identifiers(self)

    def uppercase_identifiers(self) -> Fragment:
        from .transforms import uppercase_identifiers

        return uppercase_identifiers(self)

    def normalize_end_tags(self) -> Fragment:
        from .transforms import normalize_end_tags

        return normalize_end_tags(self)

    def expand_entities(self, resolver: Callable[[str], str | None] | Mapping[str, str]) -> Fragment:
        from .transforms import expand_entities

        return expand_entities(self, resolver)

    def expand_marked_sections(self, config: ParserConfig | None = None) -> Fragment:
        from .transforms import expand_marked_sections

        return expand_marked_sections(self, config)

    def validate(self) -> Fragment:
        """Raise a `ValidationError` unless balanced. Returns self."""
        from .validator import validate

        validate(self)
        return self
