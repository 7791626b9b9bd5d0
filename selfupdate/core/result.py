"""Result type used at every fallible boundary.

Network calls, config loading and file replacement return ``Ok`` or ``Err``
instead of raising, so callers decide how a failure is presented:

    match manager.resolve_latest(options):
        case Ok(None):
            console.print("No update available")
        case Ok(release):
            console.print(f"Latest: {release.display_tag}")
        case Err(error):
            console.error(error.message)
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, TypeAlias, TypeVar, Union

T = TypeVar("T")
U = TypeVar("U")
E = TypeVar("E")
F = TypeVar("F")

__all__ = ["Ok", "Err", "Result"]


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """Successful outcome carrying ``value``."""

    value: T

    def unwrap(self) -> T:
        return self.value

    def map(self, f: Callable[[T], U]) -> Ok[U]:
        """Transform the carried value."""
        return Ok(f(self.value))

    def map_err(self, f: Callable[[E], F]) -> Ok[T]:
        return self

    def __repr__(self) -> str:
        return f"Ok({self.value!r})"


@dataclass(frozen=True, slots=True)
class Err(Generic[E]):
    """Failed outcome carrying ``error``."""

    error: E

    def unwrap(self) -> None:
        """Raises ValueError: there is no value to return."""
        raise ValueError(f"called unwrap on Err: {self.error}")

    def map(self, f: Callable[[T], U]) -> Err[E]:
        return self

    def map_err(self, f: Callable[[E], F]) -> Err[F]:
        """Transform the carried error, e.g. wrap an HttpError into an UpdateError."""
        return Err(f(self.error))

    def __repr__(self) -> str:
        return f"Err({self.error!r})"


Result: TypeAlias = Union[Ok[T], Err[E]]
