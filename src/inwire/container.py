from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable
from typing import Any, TypeVar, overload

from inwire.dependencies import AnnotationMetadataProvider, MetadataProvider
from inwire.invoker import Invoker
from inwire.lock_mode import LockMode
from inwire.providers import Lifetime, Producer, Registration, Registrations, Token
from inwire.resolver import Resolver
from inwire.validators import RegistrationValidator

T = TypeVar("T")

logger = logging.getLogger(__name__)


class Container:
    """Register production rules for tokens and resolve them with dependency injection.

    Tokens are usually classes; any hashable value works for instance and
    factory registrations, or when an explicit implementation class is given.
    Constructor and method dependencies are described by a metadata provider,
    by default one that reads ``@injectable`` declarations and type hints.

    ``resolve`` returns a plain value when every producer in the graph is
    synchronous and an awaitable as soon as one of them is asynchronous. Use
    ``aresolve`` when you always want to ``await``.

    Examples:
        .. code-block:: python

            container = Container()
            container.register_transient(Logger, ConsoleLogger)
            container.register_singleton(Tool)

            logger = container.resolve(Logger)

    """

    __slots__ = (
        "_invoker",
        "_metadata_provider",
        "_registration_validator",
        "_registrations",
        "_resolver",
    )

    def __init__(
        self,
        *,
        metadata_provider: MetadataProvider | None = None,
        allow_overrides: bool = True,
        lock_mode: LockMode = LockMode.THREAD,
    ) -> None:
        """Initialize an empty container.

        Args:
            metadata_provider: Source of constructor and method dependency
                tokens. Defaults to ``AnnotationMetadataProvider``.
            allow_overrides: When ``True`` (default) registering a token again
                replaces the previous registration and its cached value. When
                ``False`` it raises ``InwireInvalidRegistrationError``.
            lock_mode: Whether synchronous singleton production is guarded
                against concurrent threads.

        """
        self._metadata_provider = metadata_provider or AnnotationMetadataProvider()
        self._registrations = Registrations(allow_overrides=allow_overrides)
        self._registration_validator = RegistrationValidator()
        self._resolver = Resolver(
            self._registrations,
            self._metadata_provider,
            lock_mode=lock_mode,
        )
        self._invoker = Invoker(self._resolver, self._metadata_provider)

    # region Registration Methods
    def register_transient(self, token: Token, impl: type[Any] | None = None) -> None:
        """Construct a new ``impl`` (or ``token``) on every resolution.

        Raises:
            InwireInvalidRegistrationError: If the implementation is not an
                instantiable class.

        """
        self._register_concrete(token, impl, Lifetime.TRANSIENT)

    def register_singleton(self, token: Token, impl: type[Any] | None = None) -> None:
        """Construct ``impl`` (or ``token``) once and share it for the container's lifetime.

        Raises:
            InwireInvalidRegistrationError: If the implementation is not an
                instantiable class.

        """
        self._register_concrete(token, impl, Lifetime.SINGLETON)

    def register_instance(self, token: Token, value: Any) -> None:
        """Bind a pre-built value; every resolution returns ``value`` itself.

        Raises:
            InwireInvalidInstanceTypeError: If ``token`` is a class and ``value``
                is not an instance of it or of a subclass.

        """
        self._registration_validator.validate_instance(token, value)
        self._add(Registration.for_instance(token, value))

    def register_factory(self, token: Token, producer: Producer) -> None:
        """Call ``producer()`` on every resolution and return its result unmodified.

        The producer receives no arguments; capture whatever it needs in a
        closure. It may return an awaitable.
        """
        self._registration_validator.validate_producer(token, producer)
        self._add(Registration(token=token, lifetime=Lifetime.FACTORY, factory=producer))

    def register_singleton_factory(self, token: Token, producer: Producer) -> None:
        """Call ``producer()`` once and share its result for the container's lifetime.

        When the producer returns an awaitable, every resolution issued before
        it completes shares one pending future.
        """
        self._registration_validator.validate_producer(token, producer)
        self._add(
            Registration(token=token, lifetime=Lifetime.SINGLETON_FACTORY, factory=producer),
        )

    # endregion Registration Methods

    # region Resolution Methods
    @overload
    def resolve(self, token: type[T]) -> T | Awaitable[T]: ...

    @overload
    def resolve(self, token: Any) -> Any: ...

    def resolve(self, token: Any) -> Any:
        """Resolve ``token``, wiring its constructor dependencies recursively.

        Producers run as soon as this method is called. The result is the
        value itself when the whole dependency graph is synchronous, or an
        awaitable resolving to it when any producer is asynchronous.

        Raises:
            InwireUnregisteredTokenError: If ``token`` or one of its
                dependencies is not registered.
            InwireCircularDependencyError: If ``token`` depends on itself.
            InwireAsyncDependencyInSyncContextError: If asynchronous
                dependencies must be joined outside a running event loop.

        """
        return self._resolver.resolve(token)

    @overload
    async def aresolve(self, token: type[T]) -> T: ...

    @overload
    async def aresolve(self, token: Any) -> Any: ...

    async def aresolve(self, token: Any) -> Any:
        """Resolve ``token`` and await the result when it is awaitable."""
        result = self._resolver.resolve(token)
        if inspect.isawaitable(result):
            return await result
        return result

    def invoke(self, instance: Any, method_name: str, *args: Any, **kwargs: Any) -> Any:
        """Call ``instance.method_name`` with its dependencies injected first.

        Resolved dependencies are passed positionally in declared order,
        followed by ``args`` and ``kwargs``. The method's result is returned
        unmodified when every dependency is synchronous; otherwise an
        awaitable is returned that calls the method once the dependencies are
        available (and awaits the method's own result when it is awaitable).

        Raises:
            AttributeError: If ``instance`` has no attribute ``method_name``.
            InwireUnregisteredTokenError: If a dependency is not registered.

        """
        return self._invoker.invoke(instance, method_name, *args, **kwargs)

    async def ainvoke(self, instance: Any, method_name: str, *args: Any, **kwargs: Any) -> Any:
        """Invoke ``instance.method_name`` and await the result when it is awaitable."""
        result = self._invoker.invoke(instance, method_name, *args, **kwargs)
        if inspect.isawaitable(result):
            return await result
        return result

    # endregion Resolution Methods

    def is_registered(self, token: Token) -> bool:
        """Return whether ``token`` has a registration."""
        return token in self._registrations

    def __contains__(self, token: object) -> bool:
        return token in self._registrations

    def _register_concrete(
        self,
        token: Token,
        impl: type[Any] | None,
        lifetime: Lifetime,
    ) -> None:
        concrete_type = token if impl is None else impl
        self._registration_validator.validate_concrete_type(token, concrete_type)
        self._add(Registration(token=token, lifetime=lifetime, impl=concrete_type))

    def _add(self, registration: Registration) -> None:
        self._registrations.add(registration)
        logger.debug(
            "Registered token %r with lifetime %s",
            registration.token,
            registration.lifetime.name,
        )
