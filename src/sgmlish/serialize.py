"""SGML serialization of fragments."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .events import EndTag, MarkedSection, MarkupDeclaration, ProcessingInstruction, StartTag, Text

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .events import Event


def _escape_text(text: str, rcdata: bool = False) -> str:
    if not text:
        return ""
    # RCDATA content already carries its ampersands escaped
    if not rcdata:
        text = text.replace("&", "&#38;")
    return text.replace("<", "&#60;")


def _choose_attr_quote(value: str) -> str:
    if '"' in value and "'" not in value:
        return "'"
    return '"'


def _escape_attr_value(value: str, quote_char: str, rcdata: bool = False) -> str:
    if not rcdata:
        value = value.replace("&", "&#38;")
    if quote_char == '"':
        return value.replace('"', "&#34;")
    return value.replace("'", "&#39;")


def serialize_start_tag(
    name: str,
    attributes: Iterable[tuple[str, str | None]] = (),
    rcdata_attributes: frozenset[str] = frozenset(),
) -> str:
    parts: list[str] = ["<", name]
    for key, value in attributes:
        parts.extend((" ", key))
        if value is None:
            continue
        quote = _choose_attr_quote(value)
        parts.extend(("=", quote, _escape_attr_value(value, quote, key in rcdata_attributes), quote))
    parts.append(">")
    return "".join(parts)


def serialize_end_tag(name: str) -> str:
    return f"</{name}>"


def serialize_event(event: Event) -> str:
    if isinstance(event, StartTag):
        return serialize_start_tag(event.name, event.attributes, event.rcdata_attributes)
    if isinstance(event, EndTag):
        return serialize_end_tag(event.name)
    if isinstance(event, Text):
        return _escape_text(event.content, event.rcdata)
    if isinstance(event, MarkedSection):
        return f"<![{event.kind.value}[{event.content}]]>"
    if isinstance(event, (MarkupDeclaration, ProcessingInstruction)):
        return event.text
    raise TypeError(f"cannot serialize {event!r}")


def to_sgml(events: Iterable[Event]) -> str:
    """Render events back to markup that parses to the same events."""
    return "".join(serialize_event(event) for event in events)
