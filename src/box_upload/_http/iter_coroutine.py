"""Drive non-suspending coroutines from synchronous code."""

from __future__ import annotations

import typing

_T = typing.TypeVar("_T")


def iter_coroutine(coro: typing.Coroutine[None, None, _T]) -> _T:
    """
    Run a coroutine to completion without an event loop.

    The sync upload client shares its coroutines with the async one; with a
    blocking transport underneath, those coroutines finish on the first
    ``send(None)``. Anything that actually suspends is a programming error.

    Raises:
        RuntimeError: If the coroutine yields instead of returning.
    """
    try:
        coro.send(None)
    except StopIteration as stop:
        return stop.value  # type: ignore [no-any-return]
    else:
        raise RuntimeError(f"coroutine {coro!r} suspended; it cannot run synchronously")
    finally:
        coro.close()


__all__ = ["iter_coroutine"]
