"""A per-thread meter that adds up the weight used while a call runs."""

from __future__ import annotations

import functools
import threading
from typing import Any, Callable, TypeVar

from .weights import saturating_add

_MAX_DEPTH = 255

F = TypeVar("F", bound=Callable[..., Any])


class _Meter(threading.local):
    def __init__(self) -> None:
        self.used_weight = 0
        # Incremented on each metered call so nested calls share one total.
        self.depth = 0


_METER = _Meter()


def start() -> None:
    """Enter a metered call; the outermost call resets the used weight."""
    if _METER.depth == 0:
        _METER.used_weight = 0
    _METER.depth = min(_METER.depth + 1, _MAX_DEPTH)


def using(weight: int) -> None:
    """Add `weight` to the used weight."""
    _METER.used_weight = saturating_add(_METER.used_weight, weight)


def finish() -> None:
    """Leave a metered call."""
    _METER.depth = max(_METER.depth - 1, 0)


def used_weight() -> int:
    """Weight used so far in the current metered call."""
    return _METER.used_weight


def metered(func: F) -> F:
    """Run `func` inside the weight meter."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        start()
        try:
            return func(*args, **kwargs)
        finally:
            finish()

    return wrapper  # type: ignore[return-value]


def weighs(amount: int) -> Callable[[F], F]:
    """Charge `amount` to the meter each time the decorated function is called."""

    def decorate(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            using(amount)
            return func(*args, **kwargs)

        return wrapper  # type: ignore[return-value]

    return decorate