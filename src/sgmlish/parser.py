"""Event builder: turns the token stream into a flat `Fragment`.

The builder groups start tags with their attributes, merges runs of text
and references into single `Text` events and wraps marked sections. It does
not repair the tag hierarchy; that is left to the transforms.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from . import tokens
from .config import DEFAULT_CONFIG, ParserConfig, ascii_lower
from .entities import entity_marker, escape_rcdata, expand_parameter_entities, resolve
from .errors import (
    DuplicateAttributeError,
    MarkedSectionKeywordError,
    ParseError,
    SgmlishError,
    offset_to_line_column,
)
from .events import (
    EndTag,
    Fragment,
    MarkedSection,
    MarkupDeclaration,
    ProcessingInstruction,
    StartTag,
    Text,
)
from .marked_sections import parse_keywords
from .tokenizer import tokenize, tokenize_references

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Iterator

logger = logging.getLogger(__name__)

SGML_WHITESPACE = " \t\r\n"


class _TextRun:
    """Text, character references and entity references waiting to become one event."""

    __slots__ = ("has_entities", "pieces")

    def __init__(self) -> None:
        self.pieces: list[tokens.Token] = []
        self.has_entities = False

    def add(self, token: tokens.Token) -> None:
        if isinstance(token, tokens.EntityRef):
            self.has_entities = True
        self.pieces.append(token)

    def trim(self) -> None:
        """Strip whitespace from the literal text at both ends of the run."""
        pieces = self.pieces
        while pieces and isinstance(pieces[0], tokens.Text):
            first = pieces[0]
            raw = first.raw.lstrip(SGML_WHITESPACE)
            if raw:
                pieces[0] = tokens.Text(raw, first.end - len(raw), first.end)
                break
            del pieces[0]
        while pieces and isinstance(pieces[-1], tokens.Text):
            last = pieces[-1]
            raw = last.raw.rstrip(SGML_WHITESPACE)
            if raw:
                pieces[-1] = tokens.Text(raw, last.start, last.start + len(raw))
                break
            del pieces[-1]

    def build(self, resolver: Callable[[str], str | None] | None) -> tuple[str, bool]:
        """Return the run as `(content, rcdata)`."""
        parts: list[str] = []
        if resolver is not None or not self.has_entities:
            for piece in self.pieces:
                if isinstance(piece, tokens.EntityRef):
                    parts.append(resolve(piece.name, resolver, offset=piece.start))
                elif isinstance(piece, tokens.CharRef):
                    parts.append(piece.char)
                else:
                    parts.append(piece.raw)
            return "".join(parts), False

        for piece in self.pieces:
            if isinstance(piece, tokens.EntityRef):
                parts.append(entity_marker(piece.name))
            elif isinstance(piece, tokens.CharRef):
                parts.append(escape_rcdata(piece.char))
            else:
                parts.append(escape_rcdata(piece.raw))
        return "".join(parts), True

    def __bool__(self) -> bool:
        return bool(self.pieces)


class Parser:
    """Reusable event builder bound to a `ParserConfig`."""

    __slots__ = ("config", "resolver")

    def __init__(self, config: ParserConfig | None = None) -> None:
        self.config = config or DEFAULT_CONFIG
        self.resolver = self.config.resolve_entity

    def parse(self, source: str | bytes | Iterable[tokens.Token]) -> Fragment:
        text: str | None = None
        if isinstance(source, bytes):
            source = source.decode("utf-8")
        if isinstance(source, str):
            text = source
            stream: Iterable[tokens.Token] = tokenize(text)
        else:
            stream = source

        try:
            events = self._build(iter(stream), text)
        except SgmlishError as error:
            raise error.locate(text)
        logger.debug("parsed %d events", len(events))
        return Fragment(events)

    def _name(self, name: str) -> str:
        return ascii_lower(name) if self.config.lowercase_names else name

    def _build(self, stream: Iterator[tokens.Token], text: str | None) -> list:
        config = self.config
        events: list = []
        run = _TextRun()

        def flush() -> None:
            nonlocal run
            if config.trim_whitespace:
                run.trim()
            if run:
                content, rcdata = run.build(self.resolver)
                events.append(Text(content, rcdata))
                run = _TextRun()

        for token in stream:
            if isinstance(token, (tokens.Text, tokens.CharRef, tokens.EntityRef)):
                run.add(token)
            elif isinstance(token, tokens.Comment):
                # Comments vanish; the text on both sides joins up
                continue
            elif isinstance(token, tokens.TagOpen):
                flush()
                events.append(self._start_tag(token, stream, text))
            elif isinstance(token, tokens.TagClose):
                flush()
                events.append(EndTag(self._name(token.name)))
            elif isinstance(token, tokens.MarkedSectionStart):
                flush()
                events.append(self._marked_section(token, stream, text))
            elif isinstance(token, tokens.MarkupDeclaration):
                if not config.ignore_markup_declarations:
                    flush()
                    events.append(MarkupDeclaration(token.raw))
            elif isinstance(token, tokens.ProcessingInstruction):
                if not config.ignore_processing_instructions:
                    flush()
                    events.append(ProcessingInstruction(token.raw))
            else:
                raise ParseError(f"unexpected {type(token).__name__} token", offset=token.start)
        flush()
        return events

    def _start_tag(self, open_token: tokens.TagOpen, stream: Iterator[tokens.Token], text: str | None) -> StartTag:
        name = self._name(open_token.name)
        attributes: list[tuple[str, str | None]] = []
        seen: set[str] = set()
        rcdata_attributes: set[str] = set()

        for token in stream:
            if isinstance(token, tokens.TagEnd):
                return StartTag(name, tuple(attributes), frozenset(rcdata_attributes))
            if isinstance(token, tokens.AttributeName):
                attribute = self._name(token.name)
                if attribute in seen:
                    raise DuplicateAttributeError(attribute, tag=name, offset=token.start)
                seen.add(attribute)
                attributes.append((attribute, None))
            elif isinstance(token, tokens.AttributeValue) and attributes and attributes[-1][1] is None:
                attribute = attributes[-1][0]
                value, rcdata = self._attribute_value(token, text)
                attributes[-1] = (attribute, value)
                if rcdata:
                    rcdata_attributes.add(attribute)
            else:
                raise ParseError(f"unexpected {type(token).__name__} token in <{name}>", offset=token.start)

        raise ParseError(f"start tag <{name}> is never closed", offset=open_token.start)

    def _attribute_value(self, token: tokens.AttributeValue, text: str | None) -> tuple[str, bool]:
        if not token.quoted or "&" not in token.raw:
            return token.raw, False
        run = _TextRun()
        for piece in tokenize_references(token.raw, token.start + 1, text):
            run.add(piece)
        return run.build(self.resolver)

    def rcdata_text(self, content: str) -> Text:
        """Build the `Text` event for the body of an RCDATA marked section.

        Error positions are relative to `content`.
        """
        run = _TextRun()
        try:
            for piece in tokenize_references(content, 0, content):
                run.add(piece)
            if self.config.trim_whitespace:
                run.trim()
            if not run:
                return Text("")
            return Text(*run.build(self.resolver))
        except SgmlishError as error:
            raise error.locate(content)

    def _marked_section(
        self,
        start: tokens.MarkedSectionStart,
        stream: Iterator[tokens.Token],
        text: str | None,
    ) -> MarkedSection:
        keywords = expand_parameter_entities(
            start.keywords,
            self.config.resolve_parameter_entity,
            offset=start.start,
        )
        kind = parse_keywords(keywords, offset=start.start)
        if not self.config.allows(kind):
            raise MarkedSectionKeywordError(kind.value, offset=start.start, disabled=True)

        content: list[str] = []
        for token in stream:
            if isinstance(token, tokens.MarkedSectionEnd):
                logger.debug("marked section %s (%d chars)", kind.value, sum(map(len, content)))
                line = column = None
                if text is not None:
                    line, column = offset_to_line_column(text, start.end)
                return MarkedSection(kind, "".join(content), start.end, line, column)
            if isinstance(token, tokens.Text):
                content.append(token.raw)
            else:
                raise ParseError(f"unexpected {type(token).__name__} token in marked section", offset=token.start)

        raise ParseError("marked section is never closed", offset=start.start)


def parse(source: str | bytes | Iterable[tokens.Token], config: ParserConfig | None = None) -> Fragment:
    """Parse SGML text (or an already tokenized stream) into a `Fragment`."""
    return Parser(config).parse(source)
