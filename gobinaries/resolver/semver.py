"""Semantic version parsing, ordering and constraints.

This module handles:
- Parsing tags of the form v<major>.<minor>.<patch>[-prerelease][+build]
- Semantic versioning 2.0.0 precedence
- Constraint expressions (=, !=, >, >=, <, <=, ~, ^, wildcards, ||)
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from gobinaries.resolver.errors import InvalidConstraintError, InvalidVersionError
from gobinaries.types import SEMVER_TAG_RE

_WILDCARDS = {"x", "X", "*"}

# One comparison inside a constraint group, e.g. ">= 1.2", "^0.3", "1.x"
_TERM_RE = re.compile(r"(!=|>=|<=|~>|=|>|<|~|\^)?\s*([^\s,|]+)")

_PARTIAL_RE = re.compile(
    r"^v?(?P<parts>(?:\d+|[xX*])(?:\.(?:\d+|[xX*])){0,2})"
    r"(?:-(?P<prerelease>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?"
    r"(?:\+[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*)?$"
)


@dataclass(frozen=True)
class Version:
    """A parsed semantic version.

    Attributes:
        major: Major component.
        minor: Minor component.
        patch: Patch component.
        prerelease: Dot-separated prerelease identifiers.
        build: Build metadata, ignored for precedence.
    """

    major: int
    minor: int
    patch: int
    prerelease: tuple[str, ...] = ()
    build: str = field(default="", compare=False)

    @property
    def is_prerelease(self) -> bool:
        return bool(self.prerelease)

    @property
    def core(self) -> tuple[int, int, int]:
        return (self.major, self.minor, self.patch)

    @property
    def sort_key(self) -> tuple[object, ...]:
        """Key implementing semver precedence.

        A release sorts above its prereleases; numeric identifiers sort
        below alphanumeric ones and compare numerically.
        """
        identifiers = tuple(
            (0, int(p), "") if p.isdigit() else (1, 0, p) for p in self.prerelease
        )
        return (*self.core, 0 if self.prerelease else 1, identifiers)

    def __lt__(self, other: Version) -> bool:
        return self.sort_key < other.sort_key

    def __le__(self, other: Version) -> bool:
        return self.sort_key <= other.sort_key

    def __gt__(self, other: Version) -> bool:
        return self.sort_key > other.sort_key

    def __ge__(self, other: Version) -> bool:
        return self.sort_key >= other.sort_key

    def __str__(self) -> str:
        text = f"v{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            text += "-" + ".".join(self.prerelease)
        if self.build:
            text += "+" + self.build
        return text


def parse_version(tag: str) -> Version:
    """Parse a complete semantic version tag.

    Args:
        tag: Tag such as v1.2.3 or v2.0.0-rc.1+meta.

    Returns:
        Parsed Version.

    Raises:
        InvalidVersionError: If the tag is not a complete, v-prefixed
            semantic version.
    """
    match = SEMVER_TAG_RE.match(tag.strip())
    if not match:
        raise InvalidVersionError(tag)
    prerelease = match.group("prerelease")
    return Version(
        major=int(match.group("major")),
        minor=int(match.group("minor")),
        patch=int(match.group("patch")),
        prerelease=tuple(prerelease.split(".")) if prerelease else (),
        build=match.group("build") or "",
    )


def is_version(tag: str) -> bool:
    """Return True if the tag parses as a complete semantic version."""
    return SEMVER_TAG_RE.match(tag.strip()) is not None


def major_version(tag: str) -> int:
    """Return the major component of a tag.

    Raises:
        InvalidVersionError: If the tag is not a semantic version.
    """
    return parse_version(tag).major


@dataclass(frozen=True)
class _Term:
    """A single interval check, optionally negated."""

    lower: Version | None = None
    lower_inclusive: bool = True
    upper: Version | None = None
    upper_inclusive: bool = False
    negate: bool = False
    prerelease_core: tuple[int, int, int] | None = None

    def matches(self, version: Version) -> bool:
        inside = True
        if self.lower is not None:
            inside = (
                version >= self.lower if self.lower_inclusive else version > self.lower
            )
        if inside and self.upper is not None:
            inside = (
                version <= self.upper if self.upper_inclusive else version < self.upper
            )
        return inside != self.negate


def _bump(numbers: list[int], index: int) -> Version:
    """Return the smallest version above every version sharing numbers[:index+1]."""
    bumped = numbers[: index + 1]
    bumped[index] += 1
    bumped += [0] * (3 - len(bumped))
    return Version(*bumped)


def _parse_term(op: str, text: str, expression: str) -> _Term:
    match = _PARTIAL_RE.match(text)
    if not match:
        raise InvalidConstraintError(expression)

    numbers: list[int] = []
    for part in match.group("parts").split("."):
        if part in _WILDCARDS:
            break
        numbers.append(int(part))

    prerelease_text = match.group("prerelease")
    prerelease = tuple(prerelease_text.split(".")) if prerelease_text else ()
    if prerelease and len(numbers) < 3:
        raise InvalidConstraintError(expression)

    floor = Version(*(numbers + [0] * (3 - len(numbers))), prerelease=prerelease)
    pre_core = floor.core if prerelease else None
    complete = len(numbers) == 3

    # Upper bound of the range covered by a partial version, e.g. 1.2 -> 1.3.0
    ceiling = None if not numbers or complete else _bump(numbers, len(numbers) - 1)

    if op in ("", "="):
        if not numbers:
            return _Term()
        if complete:
            return _Term(floor, True, floor, True, prerelease_core=pre_core)
        return _Term(floor, True, ceiling)
    if op == "!=":
        if not numbers:
            return _Term(negate=True)
        if complete:
            return _Term(floor, True, floor, True, negate=True, prerelease_core=pre_core)
        return _Term(floor, True, ceiling, negate=True)
    if op == ">":
        if not numbers:
            return _Term(negate=True)
        if complete:
            return _Term(floor, False, prerelease_core=pre_core)
        return _Term(ceiling, True)
    if op == ">=":
        return _Term(floor, True, prerelease_core=pre_core)
    if op == "<":
        if not numbers:
            return _Term(negate=True)
        return _Term(upper=floor, upper_inclusive=False, prerelease_core=pre_core)
    if op == "<=":
        if not numbers:
            return _Term()
        if complete:
            return _Term(upper=floor, upper_inclusive=True, prerelease_core=pre_core)
        return _Term(upper=ceiling, upper_inclusive=False)
    if op in ("~", "~>"):
        if not numbers:
            return _Term()
        index = 1 if len(numbers) >= 2 else 0
        return _Term(floor, True, _bump(numbers, index), prerelease_core=pre_core)
    if op == "^":
        if not numbers:
            return _Term()
        # First non-zero component is the one that may not change
        index = next((i for i, n in enumerate(numbers) if n != 0), len(numbers) - 1)
        return _Term(floor, True, _bump(numbers, index), prerelease_core=pre_core)
    raise InvalidConstraintError(expression)


@dataclass(frozen=True)
class Constraint:
    """A parsed version constraint.

    Terms inside a group are ANDed; groups separated by || are ORed.
    """

    expression: str
    groups: tuple[tuple[_Term, ...], ...]

    @classmethod
    def parse(cls, expression: str) -> Constraint:
        """Parse a constraint expression.

        Args:
            expression: e.g. "^1.2", ">= 1.0, < 2", "1.x || 3.x".

        Returns:
            Parsed Constraint.

        Raises:
            InvalidConstraintError: If the expression is malformed.
        """
        groups: list[tuple[_Term, ...]] = []
        for group in expression.split("||"):
            if _TERM_RE.sub("", group).strip(" ,"):
                raise InvalidConstraintError(expression)
            terms = tuple(
                _parse_term(op, text, expression)
                for op, text in _TERM_RE.findall(group)
            )
            if not terms:
                raise InvalidConstraintError(expression)
            groups.append(terms)
        return cls(expression=expression, groups=tuple(groups))

    def matches(self, version: Version) -> bool:
        """Return True if the version satisfies the constraint.

        A prerelease only satisfies a group that names a prerelease of the
        same major.minor.patch.
        """
        for terms in self.groups:
            if version.is_prerelease and not any(
                t.prerelease_core == version.core for t in terms
            ):
                continue
            if all(t.matches(version) for t in terms):
                return True
        return False


__all__ = [
    "Constraint",
    "Version",
    "is_version",
    "major_version",
    "parse_version",
]
