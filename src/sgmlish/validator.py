"""Structural validation of a `Fragment` before it is handed to a consumer."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .errors import MismatchedEndTagError, UnclosedTagError, ValidationError
from .events import EndTag, StartTag

if TYPE_CHECKING:
    from .events import Fragment

logger = logging.getLogger(__name__)


def validate(fragment: Fragment) -> None:
    """Check that start and end tags nest as a proper stack.

    Names are compared case-sensitively. Raises `MismatchedEndTagError` for
    an end tag that does not close the innermost open element and
    `UnclosedTagError` for the innermost element left open.
    """
    stack: list[str] = []
    for event in fragment:
        if isinstance(event, StartTag):
            stack.append(event.name)
        elif isinstance(event, EndTag):
            if not stack:
                raise MismatchedEndTagError(None, event.name)
            if stack[-1] != event.name:
                raise MismatchedEndTagError(stack[-1], event.name)
            stack.pop()
    if stack:
        raise UnclosedTagError(stack[-1])
    logger.debug("fragment of %d events is valid", len(fragment))


def is_valid(fragment: Fragment) -> bool:
    try:
        validate(fragment)
    except ValidationError:
        return False
    return True
