"""Domain glob pattern compilation.

Pattern syntax:
    *    exactly one non-empty domain label (no dots)
    **   one or more characters, dots included; a leading "**." also
         matches the bare parent domain ("**.github.com" matches "github.com")
    ?    exactly one character
Everything else is literal. Matching is anchored and case-insensitive.
"""

import re
from dataclasses import dataclass
from functools import lru_cache

WILDCARD_CHARS = frozenset("*?")


def glob_to_regex(pattern: str) -> re.Pattern:
    """Translate a domain glob into an anchored, case-insensitive regex."""
    parts: list[str] = []
    i = 0

    if pattern.startswith("**."):
        parts.append(r"(?:.+\.)?")
        i = 3

    while i < len(pattern):
        char = pattern[i]
        if char == "*":
            if pattern[i + 1:i + 2] == "*":
                parts.append(".+")
                i += 2
                continue
            parts.append(r"[^.]+")
        elif char == "?":
            parts.append(".")
        else:
            parts.append(re.escape(char))
        i += 1

    return re.compile("".join(parts), re.IGNORECASE)


@dataclass(frozen=True)
class DomainPattern:
    """A trusted-domain pattern compiled once into a matcher."""

    pattern: str
    _regex: re.Pattern | None = None

    @classmethod
    def compile(cls, pattern: str) -> "DomainPattern":
        source = pattern.strip()
        if WILDCARD_CHARS.isdisjoint(source):
            return cls(pattern=source)
        return cls(pattern=source, _regex=glob_to_regex(source))

    @property
    def is_literal(self) -> bool:
        return self._regex is None

    def matches(self, candidate: str) -> bool:
        """Check whether candidate matches this pattern in full."""
        if not candidate:
            return False
        if self._regex is None:
            return candidate.lower() == self.pattern.lower()
        return self._regex.fullmatch(candidate) is not None


@lru_cache(maxsize=256)
def _cached(pattern: str) -> DomainPattern:
    return DomainPattern.compile(pattern)


def matches_glob_pattern(domain: str, pattern: str) -> bool:
    """Check if a domain matches a glob pattern (compiled patterns are cached)."""
    return _cached(pattern).matches(domain)
