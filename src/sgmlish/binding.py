"""Populate dataclasses from a validated fragment.

The fragment is replayed into a small element tree, and the root element is
bound to the requested dataclass:

- a field's tag or attribute name is `field.metadata["sgml"]` when given,
  otherwise the field name;
- scalar fields come from an attribute of the container or from a child
  element holding only text;
- booleans accept `true`, `false`, `1` and `0`; attributes also accept the
  flag form, an empty value and a value equal to the attribute name;
- nested dataclasses take their tag name from the containing field;
- a field named `$value` captures the element's own text, in which case
  every other field must come from attributes;
- `list[X]` fields collect one contiguous run of sibling elements;
- `Optional[X]` fields and fields with a default may be missing.
"""

from __future__ import annotations

import dataclasses
import logging
import types
import typing
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Any, TypeVar, Union

from .errors import BindingError, CoercionError, MissingFieldError
from .events import EndTag, MarkedSection, StartTag, Text
from .marked_sections import MarkedSectionKind
from .validator import validate

if TYPE_CHECKING:
    from .events import Fragment

T = TypeVar("T")

VALUE_FIELD = "$value"

logger = logging.getLogger(__name__)


class Element:
    """An element rebuilt from the event stream; only used while binding."""

    __slots__ = ("attributes", "children", "name")

    def __init__(self, name: str, attributes: dict[str, str | None]) -> None:
        self.name = name
        self.attributes = attributes
        self.children: list[Element | str] = []

    @property
    def elements(self) -> list[Element]:
        return [child for child in self.children if isinstance(child, Element)]

    @property
    def text(self) -> str:
        return "".join(child for child in self.children if isinstance(child, str))

    def __repr__(self) -> str:
        return f"<Element {self.name} ({len(self.children)} children)>"


def build_tree(fragment: Fragment) -> Element:
    """Validate `fragment` and return its single root element."""
    validate(fragment)
    roots: list[Element] = []
    stack: list[Element] = []

    for event in fragment:
        if isinstance(event, StartTag):
            element = Element(event.name, dict(event.attributes))
            if event.rcdata_attributes:
                raise BindingError(f"<{event.name}> has attributes with unexpanded entity references")
            if stack:
                stack[-1].children.append(element)
            else:
                roots.append(element)
            stack.append(element)
        elif isinstance(event, EndTag):
            stack.pop()
        elif isinstance(event, Text):
            if event.rcdata:
                raise BindingError("text with unexpanded entity references cannot be bound")
            if stack:
                stack[-1].children.append(event.content)
            elif event.content.strip():
                raise BindingError(f"text outside of the root element: {event.content!r}")
        elif isinstance(event, MarkedSection):
            if event.kind is not MarkedSectionKind.CDATA:
                raise BindingError(f"{event.kind.value} marked sections must be expanded before binding")
            if stack:
                stack[-1].children.append(event.content)

    if len(roots) != 1:
        raise BindingError(f"expected exactly one root element, found {len(roots)}")
    return roots[0]


def from_fragment(fragment: Fragment, cls: type[T]) -> T:
    """Bind the root element of `fragment` to the dataclass `cls`."""
    root = build_tree(fragment)
    logger.debug("binding <%s> to %s", root.name, cls.__name__)
    return _bind_struct(root, cls)


def _field_name(field: dataclasses.Field) -> str:
    return field.metadata.get("sgml", field.name)


def _unwrap_optional(tp: Any) -> tuple[Any, bool]:
    if typing.get_origin(tp) in (Union, types.UnionType):
        args = [arg for arg in typing.get_args(tp) if arg is not type(None)]
        if len(args) == 1:
            return args[0], True
    return tp, False


def _has_default(field: dataclasses.Field) -> bool:
    return field.default is not dataclasses.MISSING or field.default_factory is not dataclasses.MISSING


def _bind_struct(element: Element, cls: type[T]) -> T:
    if not dataclasses.is_dataclass(cls):
        raise TypeError(f"{cls!r} is not a dataclass")

    hints = typing.get_type_hints(cls)
    fields = [field for field in dataclasses.fields(cls) if field.init]
    has_value_field = any(_field_name(field) == VALUE_FIELD for field in fields)
    children = element.elements
    values: dict[str, Any] = {}

    for field in fields:
        name = _field_name(field)
        tp, optional = _unwrap_optional(hints[field.name])

        if name == VALUE_FIELD:
            if element.elements:
                raise BindingError(f"<{element.name}> has child elements but binds its text to {field.name!r}")
            values[field.name] = _coerce(element.text, tp, field.name)
            continue

        if typing.get_origin(tp) is list:
            (item_type,) = typing.get_args(tp) or (str,)
            run = _contiguous_run(children, name, element.name)
            if run:
                values[field.name] = [_bind_value(child, item_type, field.name) for child in run]
            elif not _has_default(field):
                values[field.name] = None if optional else []
            continue

        if not dataclasses.is_dataclass(tp) and name in element.attributes:
            values[field.name] = _coerce_attribute(name, element.attributes[name], tp, field.name)
            continue

        matches = [] if has_value_field else [child for child in children if child.name == name]
        if len(matches) > 1:
            raise BindingError(f"<{name}> appears more than once in <{element.name}>")
        if matches:
            values[field.name] = _bind_value(matches[0], tp, field.name)
        elif _has_default(field):
            continue
        elif optional:
            values[field.name] = None
        else:
            raise MissingFieldError(name, container=element.name)

    return cls(**values)


def _contiguous_run(children: list[Element], name: str, container: str) -> list[Element]:
    positions = [i for i, child in enumerate(children) if child.name == name]
    if positions and positions[-1] - positions[0] + 1 != len(positions):
        raise BindingError(f"<{name}> elements in <{container}> must be contiguous")
    return [children[i] for i in positions]


def _bind_value(element: Element, tp: Any, field_name: str) -> Any:
    tp, _ = _unwrap_optional(tp)
    if dataclasses.is_dataclass(tp):
        return _bind_struct(element, tp)
    if element.elements:
        raise CoercionError(field_name, f"<{element.name}> element with children", _type_name(tp))
    return _coerce(element.text, tp, field_name)


def _type_name(tp: Any) -> str:
    return getattr(tp, "__name__", str(tp))


def _coerce_attribute(attribute: str, value: str | None, tp: Any, field_name: str) -> Any:
    if tp is bool and (value is None or value == "" or value.lower() == attribute.lower()):
        return True
    if value is None:
        raise CoercionError(field_name, value, _type_name(tp))
    return _coerce(value, tp, field_name)


def _coerce(value: str, tp: Any, field_name: str) -> Any:
    if tp is str or tp is Any or tp is object:
        return value
    if tp is bool:
        lowered = value.strip().lower()
        if lowered in ("true", "1"):
            return True
        if lowered in ("false", "0"):
            return False
        raise CoercionError(field_name, value, "bool")
    if isinstance(tp, type) and issubclass(tp, Enum):
        try:
            return tp(value)
        except ValueError:
            pass
        try:
            return tp[value]
        except KeyError:
            raise CoercionError(field_name, value, tp.__name__) from None
    if tp in (int, float, Decimal):
        try:
            return tp(value.strip())
        except (ValueError, ArithmeticError) as error:
            raise CoercionError(field_name, value, tp.__name__) from error
    try:
        return tp(value)
    except (TypeError, ValueError) as error:
        raise CoercionError(field_name, value, _type_name(tp)) from error
