"""Version range expressions.

Grammar (composer flavoured):

    constraint := group ("||" group)*
    group      := term ([,\\s]+ term)*  |  version " - " version
    term       := [op] version | "^" version | "~" version | wildcard
    op         := ">=" | ">" | "<=" | "<" | "=" | "==" | "!="
    wildcard   := "*" | N ".*" | N "." N ".*"   ("x" works like "*")

Caret keeps the leftmost non-zero component: ``^1.2`` is ``>=1.2.0 <2.0.0``
and ``^0.3`` is ``>=0.3.0 <0.4.0``. Tilde follows composer: ``~1.2`` is
``>=1.2.0 <2.0.0`` while ``~1.2.3`` is ``>=1.2.3 <1.3.0``. A bare version is
an exact pin.

Bounds built from a version without a pre-release part use its floor
(``X.Y.Z-0``), so ``^2`` admits ``2.0.0-beta.1`` but never ``3.0.0-beta.1``,
and ``<2.0`` excludes ``2.0.0-rc.1``.
"""

from __future__ import annotations

import operator
import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import Literal, TypeAlias

from selfupdate.release.version import Version, VersionError

__all__ = ["Comparator", "Constraint", "ConstraintError"]

Op: TypeAlias = Literal[">=", ">", "<=", "<", "==", "!="]

_OPS: dict[str, Callable[[Version, Version], bool]] = {
    ">=": operator.ge,
    ">": operator.gt,
    "<=": operator.le,
    "<": operator.lt,
    "==": operator.eq,
    "!=": operator.ne,
}

_OR_RE = re.compile(r"\|\|?")
_OP_SPACE_RE = re.compile(r"(>=|<=|!=|==|>|<|=|\^|~)\s+")
_HYPHEN_RE = re.compile(r"^(\S+)\s+-\s+(\S+)$")
_TERM_RE = re.compile(r"^(>=|<=|!=|==|>|<|=|\^|~)?(.+)$")
_PARTIAL_RE = re.compile(
    r"^[vV]?(\d+|[*xX])(?:\.(\d+|[*xX]))?(?:\.(\d+|[*xX]))?(.*)$",
    re.ASCII,
)
_WILDCARDS = frozenset("*xX")


class ConstraintError(ValueError):
    """Raised for an expression that is not a valid version constraint."""


@dataclass(frozen=True, slots=True)
class Comparator:
    """A single ``<op> <version>`` test."""

    op: Op
    version: Version

    def matches(self, version: Version) -> bool:
        return _OPS[self.op](version, self.version)

    def __str__(self) -> str:
        return f"{self.op}{self.version}"


@dataclass(frozen=True, slots=True)
class _Partial:
    numbers: tuple[int, ...]
    wildcard: bool
    version: Version | None


def _parse_partial(text: str, raw: str) -> _Partial:
    match = _PARTIAL_RE.match(text)
    if match is None:
        raise ConstraintError(f"invalid version {text!r} in constraint {raw!r}")

    components = [c for c in match.groups()[:3] if c is not None]
    rest = match.group(4)
    numbers: list[int] = []
    wildcard = False
    for component in components:
        if component in _WILDCARDS:
            wildcard = True
        elif wildcard:
            raise ConstraintError(f"number after wildcard in {text!r} ({raw!r})")
        else:
            numbers.append(int(component))

    if wildcard:
        if rest:
            raise ConstraintError(f"unexpected suffix on wildcard {text!r} ({raw!r})")
        return _Partial(tuple(numbers), True, None)

    try:
        version = Version.parse(text)
    except VersionError as e:
        raise ConstraintError(f"invalid version {text!r} in constraint {raw!r}") from e
    return _Partial(tuple(numbers), False, version)


def _bump(numbers: tuple[int, ...], index: int) -> Version:
    """Increment component ``index`` and zero everything after it."""
    padded = list(numbers) + [0] * (3 - len(numbers))
    padded[index] += 1
    for i in range(index + 1, 3):
        padded[i] = 0
    return Version(padded[0], padded[1], padded[2])


def _range(lower: Version, upper: Version) -> tuple[Comparator, ...]:
    return (Comparator(">=", lower.floor()), Comparator("<", upper.floor()))


def _wildcard_term(partial: _Partial) -> tuple[Comparator, ...]:
    numbers = partial.numbers
    if not numbers:
        return ()
    lower = Version(*numbers)
    return _range(lower, _bump(numbers, len(numbers) - 1))


def _caret_upper(partial: _Partial, version: Version) -> Version:
    n = len(partial.numbers)
    if version.major > 0 or n == 1:
        return _bump(partial.numbers, 0)
    if version.minor > 0 or n == 2:
        return _bump(partial.numbers, 1)
    return _bump(partial.numbers, 2)


def _tilde_upper(partial: _Partial) -> Version:
    if len(partial.numbers) == 3:
        return _bump(partial.numbers, 1)
    return _bump(partial.numbers, 0)


def _parse_term(term: str, raw: str) -> tuple[Comparator, ...]:
    match = _TERM_RE.match(term)
    if match is None:
        raise ConstraintError(f"invalid term {term!r} in constraint {raw!r}")
    op, text = match.group(1), match.group(2)
    partial = _parse_partial(text, raw)

    if partial.wildcard:
        if op not in (None, "=", "=="):
            raise ConstraintError(f"operator {op!r} cannot be combined with a wildcard ({raw!r})")
        return _wildcard_term(partial)

    version = partial.version
    assert version is not None
    match op:
        case None | "=" | "==":
            return (Comparator("==", version),)
        case "!=" | ">" | "<=":
            return (Comparator(op, version),)
        case ">=" | "<":
            return (Comparator(op, version.floor()),)
        case "^":
            return _range(version, _caret_upper(partial, version))
        case "~":
            return _range(version, _tilde_upper(partial))
    raise ConstraintError(f"unsupported operator {op!r} in {raw!r}")


def _parse_hyphen(low: str, high: str, raw: str) -> tuple[Comparator, ...]:
    lower = _parse_partial(low, raw)
    upper = _parse_partial(high, raw)
    if lower.wildcard or upper.wildcard or lower.version is None or upper.version is None:
        raise ConstraintError(f"wildcards are not allowed in hyphen ranges ({raw!r})")

    low_bound = Comparator(">=", lower.version.floor())
    if len(upper.numbers) == 3 or upper.version.is_prerelease:
        return (low_bound, Comparator("<=", upper.version))
    # A partial upper bound covers its whole range: "1.0 - 2.1" admits 2.1.9.
    ceiling = _bump(upper.numbers, len(upper.numbers) - 1)
    return (low_bound, Comparator("<", ceiling.floor()))


def _parse_group(group: str, raw: str) -> tuple[Comparator, ...]:
    group = _OP_SPACE_RE.sub(r"\1", group.strip())
    if not group:
        raise ConstraintError(f"empty alternative in constraint {raw!r}")

    hyphen = _HYPHEN_RE.match(group)
    if hyphen is not None:
        return _parse_hyphen(hyphen.group(1), hyphen.group(2), raw)

    comparators: list[Comparator] = []
    for term in re.split(r"[\s,]+", group):
        if term:
            comparators.extend(_parse_term(term, raw))
    return tuple(comparators)


@dataclass(frozen=True, slots=True)
class Constraint:
    """A parsed range expression: any of ``groups`` where all comparators hold."""

    text: str
    groups: tuple[tuple[Comparator, ...], ...]

    @classmethod
    def parse(cls, text: str) -> Constraint:
        """Parse a range expression.

        Raises:
            ConstraintError: if ``text`` is empty or malformed.
        """
        if not text.strip():
            raise ConstraintError("empty version constraint")
        groups = tuple(_parse_group(g, text) for g in _OR_RE.split(text))
        return cls(text=text.strip(), groups=groups)

    @classmethod
    def same_major(cls, major: int) -> Constraint:
        """``^<major>``: any version sharing ``major``."""
        return cls.parse(f"^{major}")

    def satisfied_by(self, version: Version) -> bool:
        return any(all(c.matches(version) for c in group) for group in self.groups)

    def __contains__(self, version: object) -> bool:
        return isinstance(version, Version) and self.satisfied_by(version)

    def __str__(self) -> str:
        return self.text
