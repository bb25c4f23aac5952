"""Parser configuration."""

from __future__ import annotations

import string
from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .entities import make_resolver
from .marked_sections import MarkedSectionKind, coerce_kind

if TYPE_CHECKING:
    from collections.abc import Callable

    EntityResolver = Callable[[str], str | None] | Mapping[str, str]

# Only A-Z and a-z change case; other letters are kept as they are
_TO_LOWER = str.maketrans(string.ascii_uppercase, string.ascii_lowercase)
_TO_UPPER = str.maketrans(string.ascii_lowercase, string.ascii_uppercase)


def ascii_lower(name: str) -> str:
    return name.translate(_TO_LOWER)


def ascii_upper(name: str) -> str:
    return name.translate(_TO_UPPER)


def _check_resolver(name: str, resolver: object) -> None:
    if resolver is not None and not (callable(resolver) or isinstance(resolver, Mapping)):
        raise TypeError(f"{name} must be a callable or a mapping")


@dataclass(frozen=True, slots=True)
class ParserConfig:
    """Options fixed before parsing starts.

    - `lowercase_names` lowercases tag and attribute names as events are built.
    - `entity_resolver` maps entity names to replacement text, either as a
      callable returning `None` for unknown names or as a mapping. Without a
      resolver entity references are kept for a later `expand_entities` pass.
    - `parameter_entity_resolver` does the same for `%name;` references in
      marked section keywords. Without one, such references are an error.
    - `marked_section_policy` enables or disables marked section kinds.
      Kinds that are not listed are enabled.
    - `ignore_markup_declarations` and `ignore_processing_instructions` drop
      `<!DOCTYPE ...>` style declarations and `<?...>` instructions instead of
      keeping them as events.
    - `trim_whitespace` strips leading and trailing whitespace from every
      text event, dropping text that was only whitespace. The contents of
      CDATA and RCDATA sections are trimmed when they are expanded.
    """

    lowercase_names: bool = False
    entity_resolver: EntityResolver | None = None
    parameter_entity_resolver: EntityResolver | None = None
    marked_section_policy: Mapping[MarkedSectionKind | str, bool] | None = None
    ignore_markup_declarations: bool = False
    ignore_processing_instructions: bool = False
    trim_whitespace: bool = False

    def __post_init__(self) -> None:
        _check_resolver("entity_resolver", self.entity_resolver)
        _check_resolver("parameter_entity_resolver", self.parameter_entity_resolver)

        if self.marked_section_policy is not None:
            # Normalize keys so "cdata" and MarkedSectionKind.CDATA mean the same thing.
            normalized = {coerce_kind(kind): bool(enabled) for kind, enabled in self.marked_section_policy.items()}
            object.__setattr__(self, "marked_section_policy", normalized)

    def allows(self, kind: MarkedSectionKind) -> bool:
        if self.marked_section_policy is None:
            return True
        return self.marked_section_policy.get(kind, True)

    @property
    def resolve_entity(self) -> Callable[[str], str | None] | None:
        if self.entity_resolver is None:
            return None
        return make_resolver(self.entity_resolver)

    @property
    def resolve_parameter_entity(self) -> Callable[[str], str | None] | None:
        if self.parameter_entity_resolver is None:
            return None
        return make_resolver(self.parameter_entity_resolver)


DEFAULT_CONFIG = ParserConfig()
