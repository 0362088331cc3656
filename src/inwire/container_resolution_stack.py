from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any

from inwire.exceptions import InwireCircularDependencyError

# Tokens currently being resolved, outermost first. The chain is immutable and
# replaced on every push, so threads and asyncio tasks each see the chain of the
# context they were started from and never observe each other's entries.
_resolution_chain: ContextVar[tuple[Any, ...]] = ContextVar(
    "inwire_resolution_chain",
    default=(),
)


def current_resolution_chain() -> tuple[Any, ...]:
    """Return the tokens being resolved in the current context, outermost first."""
    return _resolution_chain.get()


def ensure_not_resolving(token: Any) -> tuple[Any, ...]:
    """Return the current chain, or raise when ``token`` is already on it.

    Raises:
        InwireCircularDependencyError: If ``token`` is being resolved further up
            the current walk.

    """
    chain = _resolution_chain.get()
    if token in chain:
        raise InwireCircularDependencyError(token, list(chain))
    return chain


@contextmanager
def resolving(token: Any) -> Iterator[None]:
    """Track ``token`` on the resolution chain for the duration of the block.

    Tasks scheduled inside the block inherit the chain, so an asynchronous
    producer that resolves one of its own ancestors again is reported as well.

    Raises:
        InwireCircularDependencyError: If ``token`` is already being resolved
            further up the current walk.

    """
    chain = ensure_not_resolving(token)
    reset_token = _resolution_chain.set((*chain, token))
    try:
        yield
    finally:
        _resolution_chain.reset(reset_token)
