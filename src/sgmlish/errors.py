"""Exception types raised by sgmlish.

Every stage of the pipeline fails with its own subclass of `SgmlishError`:
the tokenizer raises `TokenizationError`, the event builder `ParseError`,
the transforms `TransformError`, the validator `ValidationError` and the
binding layer `BindingError`. Positioned errors carry the character offset
into the input along with the derived line and column.
"""

from __future__ import annotations


def offset_to_line_column(text: str, offset: int) -> tuple[int, int]:
    """Return the 1-based (line, column) of `offset` within `text`."""
    offset = max(0, min(offset, len(text)))
    line = text.count("\n", 0, offset) + 1
    last_newline = text.rfind("\n", 0, offset)
    return line, offset - last_newline


class SgmlishError(Exception):
    """Base class for all errors raised by sgmlish."""

    code = "error"

    def __init__(self, message=None, *, offset=None, line=None, column=None):
        self.message = message or self.code
        self.offset = offset
        self.line = line
        self.column = column
        super().__init__(self.message)

    def locate(self, text):
        """Fill in line and column from the source text. Returns self."""
        if self.offset is not None and text is not None:
            self.line, self.column = offset_to_line_column(text, self.offset)
        return self

    def shift(self, offset, line=None, column=None):
        """Move a position inside embedded text into the enclosing text.

        `offset`, `line` and `column` say where the embedded text starts.
        Returns self.
        """
        if self.offset is not None:
            self.offset += offset
        if self.line is not None and line is not None and column is not None:
            if self.line == 1:
                self.column += column - 1
            self.line += line - 1
        else:
            self.line = self.column = None
        return self

    def __repr__(self):
        if self.offset is not None:
            return f"{type(self).__name__}({self.code!r}, offset={self.offset})"
        return f"{type(self).__name__}({self.code!r})"

    def __str__(self):
        if self.line is not None and self.column is not None:
            if self.message != self.code:
                return f"({self.line},{self.column}): {self.code} - {self.message}"
            return f"({self.line},{self.column}): {self.code}"
        if self.offset is not None:
            return f"(offset {self.offset}): {self.code} - {self.message}"
        if self.message != self.code:
            return f"{self.code} - {self.message}"
        return self.code


# ---------------
# Tokenizer
# ---------------


class TokenizationError(SgmlishError):
    """Malformed lexical structure: unterminated constructs, illegal characters."""

    def __init__(self, code, message=None, *, offset=None):
        self.code = code
        super().__init__(message, offset=offset)


class NestedMarkedSectionError(TokenizationError):
    def __init__(self, *, offset=None):
        super().__init__(
            "nested-marked-section",
            "marked sections cannot be nested",
            offset=offset,
        )


# ---------------
# Parser
# ---------------


class ParseError(SgmlishError):
    """A token sequence that cannot be turned into events."""

    code = "parse-error"


# ---------------
# Transforms
# ---------------


class TransformError(SgmlishError):
    """A normalization transform could not be applied."""

    code = "transform-error"


class DuplicateAttributeError(ParseError, TransformError):
    code = "duplicate-attribute"

    def __init__(self, name, *, tag=None, offset=None):
        self.name = name
        self.tag = tag
        where = f" in <{tag}>" if tag else ""
        super().__init__(f"attribute {name!r} specified more than once{where}", offset=offset)


class MarkedSectionKeywordError(ParseError):
    code = "invalid-marked-section-keyword"

    def __init__(self, keyword, *, offset=None, disabled=False):
        self.keyword = keyword
        self.disabled = disabled
        if disabled:
            message = f"{keyword} marked sections are disabled"
        else:
            message = f"invalid marked section keyword: {keyword!r}"
        super().__init__(message, offset=offset)


class UnmatchedEndTagError(TransformError):
    code = "unmatched-end-tag"

    def __init__(self, name):
        self.name = name
        super().__init__(f"unpaired end tag: </{name}>")


class UnexpectedEndOfInputError(TransformError):
    code = "unexpected-end-of-input"

    def __init__(self, name):
        self.name = name
        super().__init__(f"element <{name}> is still open at end of input")


class UnknownEntityError(TransformError):
    code = "unknown-entity"

    def __init__(self, name, *, offset=None):
        self.name = name
        super().__init__(f"entity {name!r} is not defined", offset=offset)


# ---------------
# Validator
# ---------------


class ValidationError(SgmlishError):
    """The fragment is not balanced and may not be handed to a consumer."""

    code = "validation-error"


class MismatchedEndTagError(ValidationError):
    code = "mismatched-end-tag"

    def __init__(self, expected, found):
        self.expected = expected
        self.found = found
        if expected is None:
            message = f"found </{found}> with no open element"
        else:
            message = f"expected </{expected}>, found </{found}>"
        super().__init__(message)


class UnclosedTagError(ValidationError):
    code = "unclosed-tag"

    def __init__(self, name):
        self.name = name
        super().__init__(f"element <{name}> is never closed")


# ---------------
# Binding
# ---------------


class BindingError(SgmlishError):
    """The validated fragment does not fit the requested structure."""

    code = "binding-error"


class MissingFieldError(BindingError):
    code = "missing-field"

    def __init__(self, name, *, container=None):
        self.name = name
        self.container = container
        where = f" in <{container}>" if container else ""
        super().__init__(f"missing field {name!r}{where}")


class CoercionError(BindingError):
    code = "coercion-failed"

    def __init__(self, name, value, target):
        self.name = name
        self.value = value
        self.target = target
        super().__init__(f"cannot convert {value!r} to {target} for field {name!r}")
