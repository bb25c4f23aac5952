"""Normalization transforms.

Every transform is a pure function taking a `Fragment` and returning a new
`Fragment`, or the very same object when there was nothing to change. Failures
raise a `TransformError` subclass and leave the input untouched.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .config import ascii_lower, ascii_upper
from .entities import escape_rcdata, expand_rcdata, make_resolver
from .errors import DuplicateAttributeError, SgmlishError, UnexpectedEndOfInputError, UnmatchedEndTagError
from .events import EndTag, Fragment, MarkedSection, StartTag, Text
from .marked_sections import MarkedSectionKind

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Mapping

    from .config import ParserConfig
    from .events import Event

    Transform = Callable[[Fragment], Fragment]

logger = logging.getLogger(__name__)

SGML_WHITESPACE = " \t\r\n"


def _is_blank(event: Event) -> bool:
    return isinstance(event, Text) and not event.content.strip(SGML_WHITESPACE)


def _is_tag(event: Event) -> bool:
    return isinstance(event, (StartTag, EndTag))


def _append_text(out: list[Event], event: Text) -> None:
    """Append `event`, joining it with a preceding `Text` if there is one."""
    if not event.content:
        return
    if out and isinstance(out[-1], Text):
        previous = out[-1]
        if previous.rcdata == event.rcdata:
            out[-1] = Text(previous.content + event.content, event.rcdata)
        elif previous.rcdata:
            out[-1] = Text(previous.content + escape_rcdata(event.content), True)
        else:
            out[-1] = Text(escape_rcdata(previous.content) + event.content, True)
        return
    out.append(event)


# -----------------
# Whitespace
# -----------------


def trim_spaces(fragment: Fragment) -> Fragment:
    """Drop whitespace that only separates markup.

    Whitespace-only text next to a start or end tag (or at either end of the
    fragment) is removed. Other text loses its leading or trailing
    whitespace on the sides that touch such a boundary. Marked sections are
    left alone.
    """
    events = fragment.events
    out: list[Event] = []
    changed = False
    last = len(events) - 1

    for i, event in enumerate(events):
        if not isinstance(event, Text):
            out.append(event)
            continue

        left = i == 0 or _is_tag(events[i - 1])
        right = i == last or _is_tag(events[i + 1])
        content = event.content
        if left and right:
            content = content.strip(SGML_WHITESPACE)
        elif left:
            content = content.lstrip(SGML_WHITESPACE)
        elif right:
            content = content.rstrip(SGML_WHITESPACE)

        if content == event.content:
            out.append(event)
        else:
            changed = True
            if content:
                out.append(Text(content, event.rcdata))

    return Fragment(out) if changed else fragment


# -----------------
# Case
# -----------------


def _map_identifiers(fragment: Fragment, convert: Callable[[str], str]) -> Fragment:
    out: list[Event] = []
    changed = False

    for event in fragment:
        if isinstance(event, StartTag):
            name = convert(event.name)
            attributes = []
            seen: set[str] = set()
            for key, value in event.attributes:
                key = convert(key)
                if key in seen:
                    raise DuplicateAttributeError(key, tag=name)
                seen.add(key)
                attributes.append((key, value))
            rcdata = frozenset(convert(key) for key in event.rcdata_attributes)
            new = StartTag(name, tuple(attributes), rcdata)
            if new != event:
                event = new
                changed = True
        elif isinstance(event, EndTag):
            name = convert(event.name)
            if name != event.name:
                event = EndTag(name)
                changed = True
        out.append(event)

    return Fragment(out) if changed else fragment


def lowercase_identifiers(fragment: Fragment) -> Fragment:
    """Lowercase every tag and attribute name.

    Only ASCII letters change case.
    """
    return _map_identifiers(fragment, ascii_lower)


def uppercase_identifiers(fragment: Fragment) -> Fragment:
    """Uppercase every tag and attribute name.

    Only ASCII letters change case.
    """
    return _map_identifiers(fragment, ascii_upper)


# -----------------
# End tags
# -----------------


class _OpenElement:
    __slots__ = ("explicitly_closed", "has_children", "has_text", "name")

    def __init__(self, name: str, explicitly_closed: bool) -> None:
        self.name = name
        self.explicitly_closed = explicitly_closed
        self.has_text = False
        self.has_children = False

    @property
    def is_leaf(self) -> bool:
        return self.has_text and not self.has_children


def _explicitly_closed(events: tuple[Event, ...]) -> set[int]:
    """Return the indices of start tags that a later end tag closes.

    Scans backwards, pairing each start tag with the innermost pending end
    tag of the same name.
    """
    closed: set[int] = set()
    pending: list[str] = []
    for i in range(len(events) - 1, -1, -1):
        event = events[i]
        if isinstance(event, EndTag):
            pending.append(event.name)
        elif isinstance(event, StartTag) and pending and pending[-1] == event.name:
            pending.pop()
            closed.add(i)
    return closed


def _close(out: list[Event], name: str) -> None:
    """Insert an end tag for `name`, keeping trailing blank text outside of it."""
    position = len(out)
    while position > 0 and _is_blank(out[position - 1]):
        position -= 1
    out.insert(position, EndTag(name))
    logger.debug("inserted omitted </%s>", name)


def normalize_end_tags(fragment: Fragment) -> Fragment:
    """Insert omitted end tags.

    An element that directly holds text and has no child elements is taken
    to be a leaf: it is closed as soon as another start tag follows, unless
    a matching end tag appears later. An end tag closes every element opened
    after its own start tag. At the end of input, leaf elements are closed;
    any other element still open is an error.
    """
    events = fragment.events
    explicitly_closed = _explicitly_closed(events)
    out: list[Event] = []
    stack: list[_OpenElement] = []
    inserted = 0

    for i, event in enumerate(events):
        if isinstance(event, StartTag):
            if stack:
                top = stack[-1]
                if top.is_leaf and not top.explicitly_closed:
                    stack.pop()
                    _close(out, top.name)
                    inserted += 1
            if stack:
                stack[-1].has_children = True
            stack.append(_OpenElement(event.name, i in explicitly_closed))
            out.append(event)

        elif isinstance(event, EndTag):
            for depth in range(len(stack) - 1, -1, -1):
                if stack[depth].name == event.name:
                    break
            else:
                raise UnmatchedEndTagError(event.name)
            while len(stack) - 1 > depth:
                _close(out, stack.pop().name)
                inserted += 1
            stack.pop()
            out.append(event)

        else:
            if stack and not _is_blank(event):
                if isinstance(event, Text) or (
                    isinstance(event, MarkedSection)
                    and event.kind in (MarkedSectionKind.CDATA, MarkedSectionKind.RCDATA)
                ):
                    stack[-1].has_text = True
            out.append(event)

    while stack:
        top = stack.pop()
        if not top.is_leaf:
            raise UnexpectedEndOfInputError(top.name)
        _close(out, top.name)
        inserted += 1

    if not inserted:
        return fragment
    logger.debug("normalize_end_tags inserted %d end tags", inserted)
    return Fragment(out)


# -----------------
# Entities
# -----------------


def expand_entities(fragment: Fragment, resolver: Callable[[str], str | None] | Mapping[str, str]) -> Fragment:
    """Resolve the entity references left in text and attribute values.

    Only text and attributes still in replaceable character data form are
    touched; character references were decoded when parsing.
    """
    resolve = make_resolver(resolver)
    out: list[Event] = []
    changed = False

    for event in fragment:
        if isinstance(event, Text) and event.rcdata:
            _append_text(out, Text(expand_rcdata(event.content, resolve)))
            changed = True
            continue
        if isinstance(event, StartTag) and event.rcdata_attributes:
            attributes = tuple(
                (key, expand_rcdata(value, resolve) if key in event.rcdata_attributes and value is not None else value)
                for key, value in event.attributes
            )
            event = StartTag(event.name, attributes)
            changed = True
        if isinstance(event, Text):
            _append_text(out, event)
        else:
            out.append(event)

    return Fragment(out) if changed else fragment


# -----------------
# Marked sections
# -----------------


def expand_marked_sections(fragment: Fragment, config: ParserConfig | None = None) -> Fragment:
    """Replace marked sections by what they stand for.

    CDATA sections become plain text and RCDATA sections text whose entity
    references are resolved with the configured resolver, or kept for
    `expand_entities`. IGNORE sections are dropped. INCLUDE sections are
    parsed with `config` and their events spliced in. Errors inside a section
    body point into the document the section was parsed from.
    """
    from .parser import Parser

    if not any(isinstance(event, MarkedSection) for event in fragment):
        return fragment

    parser = Parser(config)
    out: list[Event] = []

    for event in fragment:
        if not isinstance(event, MarkedSection):
            if isinstance(event, Text):
                _append_text(out, event)
            else:
                out.append(event)
            continue

        logger.debug("expanding %s marked section", event.kind.value)
        try:
            if event.kind is MarkedSectionKind.CDATA:
                content = event.content
                if parser.config.trim_whitespace:
                    content = content.strip(SGML_WHITESPACE)
                _append_text(out, Text(content))
            elif event.kind is MarkedSectionKind.RCDATA:
                _append_text(out, parser.rcdata_text(event.content))
            elif event.kind is MarkedSectionKind.INCLUDE:
                for included in parser.parse(event.content):
                    if isinstance(included, Text):
                        _append_text(out, included)
                    else:
                        out.append(included)
        except SgmlishError as error:
            if event.offset is None:
                raise
            raise error.shift(event.offset, event.line, event.column)

    return Fragment(out)


def reindent(fragment: Fragment, indent: str = "  ") -> Fragment:
    """Put every tag and text run on its own line, indented by nesting depth.

    Meant for display of a trimmed, balanced fragment; the inserted
    whitespace becomes part of the content.
    """
    out: list[Event] = []
    level = 0
    previous: Event | None = None

    for i, event in enumerate(fragment):
        if isinstance(event, EndTag):
            level = max(level - 1, 0)
            if i and not isinstance(previous, StartTag):
                out.append(Text("\n" + indent * level))
        elif i and not isinstance(event, MarkedSection):
            out.append(Text("\n" + indent * level))
        out.append(event)
        if isinstance(event, StartTag):
            level += 1
        previous = event

    return Fragment(out)


def apply_transforms(fragment: Fragment, transforms: Iterable[Transform]) -> Fragment:
    """Run `transforms` over `fragment` from left to right."""
    for transform in transforms:
        logger.debug("applying %s", getattr(transform, "__name__", transform))
        fragment = transform(fragment)
    return fragment

