"""Runtime assertions that can veto an otherwise granted permission."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Protocol, runtime_checkable

from .errors import InvalidAssertionError


@runtime_checkable
class Assertion(Protocol):
    def evaluate(self, identity: Any) -> bool: ...


class PredicateAssertion:
    """Adapter turning a plain ``identity -> bool`` callable into an Assertion."""

    def __init__(self, predicate: Callable[[Any], bool]) -> None:
        self._predicate = predicate

    def evaluate(self, identity: Any) -> bool:
        return bool(self._predicate(identity))


def as_assertion(value: Any) -> Assertion:
    """Return ``value`` as an Assertion, wrapping bare callables."""
    if isinstance(value, type):
        raise InvalidAssertionError(
            f"assertions must be instances, class {value.__name__!r} given"
        )
    if isinstance(value, Assertion):
        return value
    if callable(value):
        return PredicateAssertion(value)
    raise InvalidAssertionError(
        f"assertions must be callable or expose evaluate(identity), {type(value).__name__!r} given"
    )
