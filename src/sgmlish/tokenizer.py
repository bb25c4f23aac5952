import re
from collections import deque

from .errors import NestedMarkedSectionError, TokenizationError
from .tokens import (
    AttributeName,
    AttributeValue,
    CharRef,
    Comment,
    EntityRef,
    MarkedSectionEnd,
    MarkedSectionStart,
    MarkupDeclaration,
    ProcessingInstruction,
    TagClose,
    TagEnd,
    TagOpen,
    Text,
)

# Name start characters are alphabetic; name characters add digits and ". - _ :"
_NAME_PATTERN = re.compile(r"[^\W\d_][\w.\-:]*")
_NAME_START_PATTERN = re.compile(r"[^\W\d_]")
_SPACE_PATTERN = re.compile(r"[ \t\r\n]*")
_DATA_SPECIAL_PATTERN = re.compile(r"[<&]")
_DECIMAL_REF_PATTERN = re.compile(r"&#([0-9]+);?")
_HEX_REF_PATTERN = re.compile(r"&#[xX]([0-9a-fA-F]+);?")
_ENTITY_REF_PATTERN = re.compile(r"&([^\W\d_][\w.\-:]*);?")
_UNQUOTED_VALUE_PATTERN = re.compile(r"[^\"'> \t\r\n]+")
_MARKED_SECTION_KEYWORDS_PATTERN = re.compile(r"[^\[\]<>!]*")
_DECLARATION_SKIP_PATTERN = re.compile(r"[^<>\"'\[\]-]+")

SGML_WHITESPACE = " \t\r\n"


class Tokenizer:
    """Lazy scanner turning SGML text into `Token`s.

    Iterating the tokenizer always starts again from the beginning of the
    input. The scanner never backtracks; at most a handful of characters are
    looked at ahead of the current position to decide whether `<` opens
    markup and whether `&` opens a reference.
    """

    DATA = 0
    START_TAG = 1

    __slots__ = (
        "buffer",
        "discard_bom",
        "length",
        "pending",
        "pos",
        "state",
        "tag_start",
        "text_start",
    )

    def __init__(self, text, discard_bom=True):
        self.buffer = text or ""
        self.length = len(self.buffer)
        self.discard_bom = bool(discard_bom)
        self.pending = deque()
        self.pos = 0
        self.state = self.DATA
        self.tag_start = 0
        self.text_start = None

    def __iter__(self):
        # Every iteration scans with a tokenizer of its own
        return Tokenizer(self.buffer, self.discard_bom)._run()

    def _run(self):
        if self.discard_bom and self.buffer.startswith("\ufeff"):
            self.pos = 1

        while True:
            if self.state == self.DATA:
                done = self._state_data()
            else:
                done = self._state_start_tag()
            while self.pending:
                yield self.pending.popleft()
            if done:
                return

    # ---------------------
    # Helper methods
    # ---------------------

    def _peek_char(self, offset):
        """Peek ahead at character at current position + offset without consuming"""
        peek_pos = self.pos + offset
        if peek_pos < self.length:
            return self.buffer[peek_pos]
        return None

    def _starts_name(self, pos):
        return pos < self.length and _NAME_START_PATTERN.match(self.buffer, pos) is not None

    def _emit(self, token):
        self.pending.append(token)

    def _extend_text(self, pos):
        if self.text_start is None:
            self.text_start = pos

    def _flush_text(self):
        if self.text_start is not None and self.text_start < self.pos:
            self._emit(Text(self.buffer[self.text_start : self.pos], self.text_start, self.pos))
        self.text_start = None

    def _skip_space(self):
        self.pos = _SPACE_PATTERN.match(self.buffer, self.pos).end()

    def _read_name(self):
        match = _NAME_PATTERN.match(self.buffer, self.pos)
        self.pos = match.end()
        return match.group(0)

    def _error(self, code, message, offset):
        return TokenizationError(code, message, offset=offset).locate(self.buffer)

    # ---------------------
    # State handlers
    # ---------------------

    def _state_data(self):
        buffer = self.buffer
        match = _DATA_SPECIAL_PATTERN.search(buffer, self.pos)
        if match is None:
            self._extend_text(self.pos)
            self.pos = self.length
            self._flush_text()
            return True

        if match.start() > self.pos:
            self._extend_text(self.pos)
        self.pos = match.start()

        if buffer[self.pos] == "&":
            self._consume_reference()
        else:
            self._consume_markup()
        return False

    def _consume_reference(self):
        buffer = self.buffer
        start = self.pos
        match = _DECIMAL_REF_PATTERN.match(buffer, start)
        if match is not None:
            self._emit_char_ref(int(match.group(1), 10), match)
            return
        match = _HEX_REF_PATTERN.match(buffer, start)
        if match is not None:
            self._emit_char_ref(int(match.group(1), 16), match)
            return
        match = _ENTITY_REF_PATTERN.match(buffer, start)
        if match is not None:
            self.pos = start
            self._flush_text()
            self._emit(EntityRef(match.group(1), start, match.end()))
            self.pos = match.end()
            return
        # A lone ampersand is ordinary text
        self._extend_text(start)
        self.pos = start + 1

    def _emit_char_ref(self, codepoint, match):
        start = match.start()
        if codepoint > 0x10FFFF or 0xD800 <= codepoint <= 0xDFFF:
            raise self._error(
                "invalid-character-reference",
                f"character reference {match.group(0)!r} is not a valid code point",
                start,
            )
        self._flush_text()
        self._emit(CharRef(codepoint, start, match.end()))
        self.pos = match.end()

    def _consume_markup(self):
        start = self.pos
        next_char = self._peek_char(1)

        if next_char is not None and self._starts_name(start + 1):
            self._flush_text()
            self.pos = start + 1
            name = self._read_name()
            self._emit(TagOpen(name, start, self.pos))
            self.tag_start = start
            self.state = self.START_TAG
            return

        if next_char == "/":
            if self._starts_name(start + 2):
                self._flush_text()
                self._consume_end_tag(start)
                return
            if self._peek_char(2) == ">":
                raise self._error("empty-tag", "empty end tags (</>) are not supported", start)

        elif next_char == ">":
            raise self._error("empty-tag", "empty start tags (<>) are not supported", start)

        elif next_char == "?":
            self._flush_text()
            self._consume_processing_instruction(start)
            return

        elif next_char == "!":
            after = self._peek_char(2)
            if after == "[":
                self._flush_text()
                self._consume_marked_section(start)
                return
            if after == ">" or (after == "-" and self._peek_char(3) == "-"):
                self._flush_text()
                self._consume_comment_declaration(start)
                return
            if self._starts_name(start + 2):
                self._flush_text()
                self._consume_markup_declaration(start)
                return

        # Anything else, e.g. "a < b", is plain text
        self._extend_text(start)
        self.pos = start + 1

    def _consume_end_tag(self, start):
        self.pos = start + 2
        name = self._read_name()
        self._skip_space()
        char = self._peek_char(0)
        if char is None:
            raise self._error("unterminated-tag", f"end tag </{name}> is never closed", start)
        if char != ">":
            raise self._error("illegal-character", f"unexpected {char!r} in end tag </{name}>", self.pos)
        self.pos += 1
        self._emit(TagClose(name, start, self.pos))

    def _consume_comment_declaration(self, start):
        buffer = self.buffer
        self.pos = start + 2
        while True:
            char = self._peek_char(0)
            if char == ">":
                self.pos += 1
                break
            if char is None:
                raise self._error("unterminated-comment", "comment declaration is never closed", start)
            if buffer.startswith("--", self.pos):
                close = buffer.find("--", self.pos + 2)
                if close < 0:
                    raise self._error("unterminated-comment", "comment is never closed", self.pos)
                self.pos = close + 2
                self._skip_space()
                continue
            raise self._error("illegal-character", f"unexpected {char!r} in comment declaration", self.pos)
        self._emit(Comment(buffer[start : self.pos], start, self.pos))

    def _consume_markup_declaration(self, start):
        buffer = self.buffer
        self.pos = start + 2
        depth = 0
        while True:
            match = _DECLARATION_SKIP_PATTERN.match(buffer, self.pos)
            if match is not None:
                self.pos = match.end()
            char = self._peek_char(0)
            if char is None:
                raise self._error(
                    "unterminated-markup-declaration",
                    "markup declaration is never closed",
                    start,
                )
            if char in "\"'":
                close = buffer.find(char, self.pos + 1)
                if close < 0:
                    raise self._error("unterminated-quoted-value", f"closing {char} not found", self.pos)
                self.pos = close + 1
            elif char == "-":
                if buffer.startswith("--", self.pos):
                    close = buffer.find("--", self.pos + 2)
                    if close < 0:
                        raise self._error("unterminated-comment", "comment is never closed", self.pos)
                    self.pos = close + 2
                else:
                    self.pos += 1
            elif char == "[":
                depth += 1
                self.pos += 1
            elif char == "]":
                depth -= 1
                self.pos += 1
            elif char == "<":
                if depth == 0:
                    raise self._error("illegal-character", "unexpected '<' in markup declaration", self.pos)
                self.pos += 1
            elif char == ">":
                self.pos += 1
                if depth <= 0:
                    break
        self._emit(MarkupDeclaration(buffer[start : self.pos], start, self.pos))

    def _consume_processing_instruction(self, start):
        close = self.buffer.find(">", start + 2)
        if close < 0:
            raise self._error(
                "unterminated-processing-instruction",
                "processing instruction is never closed",
                start,
            )
        self.pos = close + 1
        self._emit(ProcessingInstruction(self.buffer[start : self.pos], start, self.pos))

    def _consume_marked_section(self, start):
        buffer = self.buffer
        self.pos = start + 3
        keywords = _MARKED_SECTION_KEYWORDS_PATTERN.match(buffer, self.pos)
        self.pos = keywords.end()
        char = self._peek_char(0)
        if char is None:
            raise self._error("unterminated-marked-section", "marked section is never closed", start)
        if char != "[":
            raise self._error("illegal-character", f"unexpected {char!r} in marked section start", self.pos)
        self.pos += 1
        self._emit(MarkedSectionStart(keywords.group(0).strip(SGML_WHITESPACE), start, self.pos))

        body_start = self.pos
        close = buffer.find("]]>", body_start)
        if close < 0:
            raise self._error("unterminated-marked-section", "marked section is never closed", start)
        nested = buffer.find("<![", body_start, close)
        if nested >= 0:
            raise NestedMarkedSectionError(offset=nested).locate(buffer)
        if close > body_start:
            self._emit(Text(buffer[body_start:close], body_start, close))
        self.pos = close + 3
        self._emit(MarkedSectionEnd(close, self.pos))

    def _state_start_tag(self):
        buffer = self.buffer
        self._skip_space()
        char = self._peek_char(0)
        if char is None:
            raise self._error("unterminated-tag", "start tag is never closed", self.tag_start)
        if char == ">":
            self._emit(TagEnd(self.pos, self.pos + 1))
            self.pos += 1
            self.state = self.DATA
            return False
        if not self._starts_name(self.pos):
            raise self._error("illegal-character", f"unexpected {char!r} in start tag", self.pos)

        name_start = self.pos
        name = self._read_name()
        self._emit(AttributeName(name, name_start, self.pos))
        self._skip_space()
        if self._peek_char(0) != "=":
            return False

        self.pos += 1
        self._skip_space()
        char = self._peek_char(0)
        value_start = self.pos
        if char is None or char == ">":
            raise self._error("missing-attribute-value", f"attribute {name!r} has no value after '='", self.pos)
        if char in "\"'":
            close = buffer.find(char, value_start + 1)
            if close < 0:
                raise self._error("unterminated-quoted-value", f"closing {char} not found", value_start)
            self.pos = close + 1
            self._emit(AttributeValue(buffer[value_start + 1 : close], True, value_start, self.pos))
            return False

        match = _UNQUOTED_VALUE_PATTERN.match(buffer, value_start)
        self.pos = match.end()
        self._emit(AttributeValue(match.group(0), False, value_start, self.pos))
        return False


def tokenize(text, discard_bom=True):
    """Return a lazy iterator over the tokens of `text`."""
    return iter(Tokenizer(text, discard_bom=discard_bom))


def tokenize_references(raw, offset=0, source=None):
    """Split a quoted attribute value into `Text`, `CharRef` and `EntityRef` tokens.

    Offsets are shifted by `offset` so they point into the enclosing text.
    """
    pos = 0
    text_start = 0
    length = len(raw)
    while True:
        amp = raw.find("&", pos)
        if amp < 0:
            break
        match = _DECIMAL_REF_PATTERN.match(raw, amp) or _HEX_REF_PATTERN.match(raw, amp)
        if match is not None:
            base = 16 if raw[amp + 2] in "xX" else 10
            codepoint = int(match.group(1), base)
            if codepoint > 0x10FFFF or 0xD800 <= codepoint <= 0xDFFF:
                error = TokenizationError(
                    "invalid-character-reference",
                    f"character reference {match.group(0)!r} is not a valid code point",
                    offset=offset + amp,
                )
                raise error.locate(source)
            token = CharRef(codepoint, offset + amp, offset + match.end())
        else:
            match = _ENTITY_REF_PATTERN.match(raw, amp)
            if match is None:
                pos = amp + 1
                continue
            token = EntityRef(match.group(1), offset + amp, offset + match.end())
        if amp > text_start:
            yield Text(raw[text_start:amp], offset + text_start, offset + amp)
        yield token
        pos = text_start = match.end()
    if text_start < length:
        yield Text(raw[text_start:], offset + text_start, offset + length)
