from .binding import from_fragment
from .config import ParserConfig
from .entities import html_entity_resolver
from .errors import (
    BindingError,
    CoercionError,
    DuplicateAttributeError,
    MarkedSectionKeywordError,
    MismatchedEndTagError,
    MissingFieldError,
    NestedMarkedSectionError,
    ParseError,
    SgmlishError,
    TokenizationError,
    TransformError,
    UnclosedTagError,
    UnexpectedEndOfInputError,
    UnknownEntityError,
    UnmatchedEndTagError,
    ValidationError,
)
from .events import EndTag, Fragment, MarkedSection, MarkupDeclaration, ProcessingInstruction, StartTag, Text
from .marked_sections import MarkedSectionKind
from .parser import Parser, parse
from .serialize import to_sgml
from .tokenizer import tokenize
from .transforms import (
    apply_transforms,
    expand_entities,
    expand_marked_sections,
    lowercase_identifiers,
    normalize_end_tags,
    trim_spaces,
    uppercase_identifiers,
)
from .validator import is_valid, validate

__all__ = [
    "BindingError",
    "CoercionError",
    "DuplicateAttributeError",
    "EndTag",
    "Fragment",
    "MarkedSection",
    "MarkedSectionKeywordError",
    "MarkedSectionKind",
    "MarkupDeclaration",
    "MismatchedEndTagError",
    "MissingFieldError",
    "NestedMarkedSectionError",
    "ParseError",
    "Parser",
    "ParserConfig",
    "ProcessingInstruction",
    "SgmlishError",
    "StartTag",
    "Text",
    "TokenizationError",
    "TransformError",
    "UnclosedTagError",
    "UnexpectedEndOfInputError",
    "UnknownEntityError",
    "UnmatchedEndTagError",
    "ValidationError",
    "apply_transforms",
    "expand_entities",
    "expand_marked_sections",
    "from_fragment",
    "html_entity_resolver",
    "is_valid",
    "lowercase_identifiers",
    "normalize_end_tags",
    "parse",
    "to_sgml",
    "tokenize",
    "trim_spaces",
    "uppercase_identifiers",
    "validate",
]
