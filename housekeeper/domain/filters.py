import re
from dataclasses import dataclass
from typing import Iterable, Pattern, Sequence


@dataclass(frozen=True)
class IdentifierFilter:
    patterns: tuple[Pattern[str], ...]

    @classmethod
    def from_strings(cls, raw_patterns: Iterable[str]) -> "IdentifierFilter":
        return cls(patterns=tuple(re.compile(raw_pattern) for raw_pattern in raw_patterns))

    def matches(self, identifiers: Sequence[str]) -> bool:
        return any(
            pattern.search(identifier)
            for pattern in self.patterns
            for identifier in identifiers
        )


def is_selected(identifier_filter: IdentifierFilter | None, identifiers: Sequence[str]) -> bool:
    if identifier_filter is None:
        return True
    return identifier_filter.matches(identifiers)
