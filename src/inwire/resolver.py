"""Recursive dependency resolution with lifetime policy and sync/async unification.

A resolution walk is synchronous: every constructor and producer along the
graph is called as soon as ``resolve`` is called. Only when a producer hands
back an awaitable does the walk return a future instead of a value; that
future is created on the running loop immediately, so shared singleton
productions are visible to every later resolution before anything suspends.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import weakref
from collections.abc import Awaitable, Callable, Iterable, Sequence
from contextlib import AbstractContextManager, nullcontext
from functools import partial
from typing import Any, cast

from inwire.container_resolution_stack import ensure_not_resolving, resolving
from inwire.dependencies import MetadataProvider
from inwire.exceptions import InwireAsyncDependencyInSyncContextError
from inwire.lock_mode import LockMode
from inwire.providers import Lifetime, Registration, Registrations, SlotState, Token

logger = logging.getLogger(__name__)


class Resolver:
    """Produce values for tokens from the registrations of one container."""

    def __init__(
        self,
        registrations: Registrations,
        metadata_provider: MetadataProvider,
        *,
        lock_mode: LockMode = LockMode.THREAD,
    ) -> None:
        self._registrations = registrations
        self._metadata_provider = metadata_provider
        self._lock_mode = lock_mode
        # Pending singleton futures may have other waiters and are never cancelled here
        self._shared_futures: weakref.WeakSet[asyncio.Future[Any]] = weakref.WeakSet()
        # Join futures created for a single walk; dropped along with it
        self._join_futures: weakref.WeakSet[asyncio.Future[Any]] = weakref.WeakSet()

    def resolve(self, token: Token) -> Any:
        """Resolve ``token`` to a value, or to an awaitable when production is asynchronous."""
        registration = self._registrations.get(token)
        lifetime = registration.lifetime

        if lifetime is Lifetime.INSTANCE:
            return registration.value

        if lifetime.is_cached:
            cached = self._cached(registration)
            if cached is not _EMPTY_SLOT:
                if registration.state is SlotState.PENDING:
                    # Waiting on an ancestor's own pending production never completes
                    ensure_not_resolving(token)
                return cached

        with resolving(token):
            if lifetime is Lifetime.FACTORY:
                return registration.factory()  # type: ignore[misc]
            if lifetime.is_cached:
                return self._resolve_cached(registration)
            return self._construct(registration)

    def resolve_all(self, tokens: Iterable[Token]) -> list[Any]:
        """Resolve every token in order, starting each resolution before any is awaited.

        When one token fails, work already started for the earlier ones is
        abandoned: coroutines are closed and join futures owned by this walk
        are cancelled. Shared pending singletons keep running.
        """
        values: list[Any] = []
        try:
            for token in tokens:
                values.append(self.resolve(token))
        except BaseException:
            self._abandon(values)
            raise
        return values

    def call_when_ready(
        self,
        label: Any,
        target: Callable[..., Any],
        values: Sequence[Any],
        args: Sequence[Any] = (),
        kwargs: dict[str, Any] | None = None,
        *,
        await_result: bool = False,
    ) -> Any:
        """Call ``target`` with resolved ``values`` followed by explicit arguments.

        When every value is synchronous the call happens immediately and its
        result is returned unmodified. Otherwise all awaitable values are
        started together and a future is returned that performs the call once
        they are all available; arguments keep their declared order whatever
        the completion order. With ``await_result`` an awaitable returned by
        ``target`` is awaited by that future as well.
        """
        kwargs = kwargs or {}
        awaitable_indices = [
            index for index, value in enumerate(values) if inspect.isawaitable(value)
        ]
        if not awaitable_indices:
            return target(*values, *args, **kwargs)

        loop = self._running_loop(label, values)
        started = list(values)
        owned: list[asyncio.Future[Any]] = []
        for index in awaitable_indices:
            value = values[index]
            future = asyncio.ensure_future(value, loop=loop)
            started[index] = future
            if self._owns(value, future):
                owned.append(future)

        join = asyncio.ensure_future(
            self._join_and_call(
                target=target,
                values=started,
                awaitable_indices=awaitable_indices,
                args=args,
                kwargs=kwargs,
                await_result=await_result,
            ),
            loop=loop,
        )
        self._join_futures.add(join)
        if owned:
            join.add_done_callback(partial(_cancel_when_cancelled, owned))
        return join

    def _cached(self, registration: Registration) -> Any:
        if registration.state is SlotState.RESOLVED:
            return registration.value

        pending = registration.pending
        if registration.state is SlotState.PENDING and pending is not None:
            if pending.done() and not pending.cancelled() and pending.exception() is None:
                registration.resolve_slot(pending.result())
                return registration.value
            if not pending.done():
                return pending
        return _EMPTY_SLOT

    def _resolve_cached(self, registration: Registration) -> Any:
        with self._production_lock(registration):
            # Another thread may have produced while this one waited for the lock
            cached = self._cached(registration)
            if cached is not _EMPTY_SLOT:
                return cached

            if registration.lifetime is Lifetime.SINGLETON_FACTORY:
                result = registration.factory()  # type: ignore[misc]
            else:
                result = self._construct(registration)

            if not inspect.isawaitable(result):
                registration.resolve_slot(result)
                logger.debug("Cached singleton for token %r", registration.token)
                return result

            loop = self._running_loop(registration.token, [result])
            future = asyncio.ensure_future(result, loop=loop)
            self._shared_futures.add(future)
            registration.install_pending(future)
            future.add_done_callback(partial(self._settle, registration))
            logger.debug("Installed pending singleton production for token %r", registration.token)
            return future

    def _construct(self, registration: Registration) -> Any:
        # TRANSIENT and SINGLETON registrations always carry their concrete class
        impl = cast("type[Any]", registration.impl)
        dependency_tokens = self._metadata_provider.get_constructor_dependencies(impl)
        values = self.resolve_all(dependency_tokens)
        return self.call_when_ready(registration.token, impl, values)

    def _settle(self, registration: Registration, future: asyncio.Future[Any]) -> None:
        if registration.pending is not future:
            return

        if future.cancelled():
            registration.reset_slot()
            logger.warning(
                "Singleton production for token %r was cancelled; the next resolution will retry",
                registration.token,
            )
            return

        error = future.exception()
        if error is not None:
            registration.reset_slot()
            logger.warning(
                "Singleton production for token %r failed (%r); the next resolution will retry",
                registration.token,
                error,
            )
            return

        registration.resolve_slot(future.result())
        logger.debug("Cached singleton for token %r", registration.token)

    async def _join_and_call(
        self,
        *,
        target: Callable[..., Any],
        values: list[Any],
        awaitable_indices: list[int],
        args: Sequence[Any],
        kwargs: dict[str, Any],
        await_result: bool,
    ) -> Any:
        # A cancelled join must not cancel singleton productions other callers share
        results = await asyncio.gather(
            *(
                asyncio.shield(values[index])
                if values[index] in self._shared_futures
                else values[index]
                for index in awaitable_indices
            ),
        )
        for index, result in zip(awaitable_indices, results, strict=True):
            values[index] = result

        outcome = target(*values, *args, **kwargs)
        if await_result and inspect.isawaitable(outcome):
            return await outcome
        return outcome

    def _running_loop(
        self,
        label: Any,
        values: Sequence[Any],
    ) -> asyncio.AbstractEventLoop:
        try:
            return asyncio.get_running_loop()
        except RuntimeError:
            _close_coroutines(values)
            raise InwireAsyncDependencyInSyncContextError(label) from None

    def _production_lock(self, registration: Registration) -> AbstractContextManager[Any]:
        if self._lock_mode is LockMode.THREAD:
            return registration.lock
        return nullcontext()

    def _owns(self, value: Any, future: asyncio.Future[Any]) -> bool:
        """Whether ``future`` belongs to the current walk alone and may be cancelled with it."""
        if future in self._shared_futures:
            return False
        # ensure_future wrapped a coroutine, or the value is a join started by this resolver
        return future is not value or future in self._join_futures

    def _abandon(self, values: Iterable[Any]) -> None:
        for value in values:
            if inspect.iscoroutine(value):
                value.close()
            elif isinstance(value, asyncio.Future) and self._owns(value, value):
                value.cancel()


_EMPTY_SLOT: Any = object()


def _close_coroutines(values: Iterable[Awaitable[Any] | Any]) -> None:
    for value in values:
        if inspect.iscoroutine(value):
            value.close()


def _cancel_when_cancelled(
    children: list[asyncio.Future[Any]],
    join: asyncio.Future[Any],
) -> None:
    if not join.cancelled():
        return
    for child in children:
        child.cancel()
