"""Tests for custom exception hierarchy."""

import asyncio

import pytest

from inwire import Injected, injectable
from inwire.container import Container
from inwire.container_resolution_stack import current_resolution_chain
from inwire.exceptions import (
    InwireAsyncDependencyInSyncContextError,
    InwireCircularDependencyError,
    InwireDependencyInferenceError,
    InwireError,
    InwireInjectedInstantiationError,
    InwireInvalidInstanceTypeError,
    InwireInvalidRegistrationError,
    InwireUnregisteredTokenError,
)


class Dependency:
    pass


class Service:
    constructed = 0

    def __init__(self, dependency: Dependency) -> None:
        Service.constructed += 1
        self.dependency = dependency


class Outer:
    def __init__(self, service: Service) -> None:
        self.service = service


class CycleA:
    def __init__(self, b: "CycleB") -> None:
        self.b = b


class CycleB:
    def __init__(self, a: CycleA) -> None:
        self.a = a


class SelfReferencing:
    def __init__(self, other: "SelfReferencing") -> None:
        self.other = other


class TestInwireUnregisteredTokenError:
    def test_raises_when_token_not_registered(self, container: Container) -> None:
        """Resolving an unknown token names it in the error."""
        with pytest.raises(InwireUnregisteredTokenError) as exc_info:
            container.resolve(Dependency)

        assert exc_info.value.token is Dependency
        assert str(exc_info.value) == "Token Dependency is not registered."

    def test_raises_for_string_token(self, container: Container) -> None:
        """Non-class tokens are rendered with repr."""
        with pytest.raises(InwireUnregisteredTokenError, match="'settings' is not registered"):
            container.resolve("settings")

    def test_raises_for_nested_dependency(self, container: Container) -> None:
        """The deepest missing token is reported and nothing is partially built."""
        Service.constructed = 0
        container.register_transient(Outer)
        container.register_transient(Service)

        with pytest.raises(InwireUnregisteredTokenError) as exc_info:
            container.resolve(Outer)

        assert exc_info.value.token is Dependency
        assert Service.constructed == 0

    def test_container_usable_after_failure(self, container: Container) -> None:
        """Registering the missing token afterwards lets resolution succeed."""
        container.register_transient(Service)
        with pytest.raises(InwireUnregisteredTokenError):
            container.resolve(Service)

        container.register_transient(Dependency)

        assert isinstance(container.resolve(Service).dependency, Dependency)

    async def test_aresolve_raises(self, container: Container) -> None:
        """The async entry point reports missing tokens the same way."""
        with pytest.raises(InwireUnregisteredTokenError):
            await container.aresolve(Dependency)


class TestInwireCircularDependencyError:
    def test_two_class_cycle(self, container: Container) -> None:
        """A -> B -> A is reported with the full chain."""
        container.register_transient(CycleA)
        container.register_transient(CycleB)

        with pytest.raises(InwireCircularDependencyError) as exc_info:
            container.resolve(CycleA)

        assert exc_info.value.token is CycleA
        assert exc_info.value.stack == [CycleA, CycleB]
        assert str(exc_info.value) == "Circular dependency detected: CycleA -> CycleB -> CycleA"

    def test_singleton_cycle(self, container: Container) -> None:
        """Singleton cycles are detected instead of deadlocking or recursing."""
        container.register_singleton(CycleA)
        container.register_singleton(CycleB)

        with pytest.raises(InwireCircularDependencyError):
            container.resolve(CycleB)

    def test_self_dependency(self, container: Container) -> None:
        """A class depending on itself is a cycle of length one."""
        container.register_transient(SelfReferencing)

        with pytest.raises(InwireCircularDependencyError, match="SelfReferencing -> SelfReferencing"):
            container.resolve(SelfReferencing)

    def test_factory_resolving_its_own_token(self, container: Container) -> None:
        """A synchronous factory re-entering its own token is a cycle."""
        container.register_factory("loop", lambda: container.resolve("loop"))

        with pytest.raises(InwireCircularDependencyError):
            container.resolve("loop")

    def test_stack_is_clean_after_cycle(self, container: Container) -> None:
        """A detected cycle does not poison later resolutions."""
        container.register_transient(CycleA)
        container.register_transient(CycleB)
        container.register_transient(Dependency)

        with pytest.raises(InwireCircularDependencyError):
            container.resolve(CycleA)

        assert isinstance(container.resolve(Dependency), Dependency)


class TestInwireAsyncDependencyInSyncContextError:
    def test_message_names_token(self) -> None:
        """The message explains that no event loop is running."""
        error = InwireAsyncDependencyInSyncContextError(Service)

        assert error.token is Service
        assert "Service" in str(error)
        assert "no event loop is running" in str(error)


class TestInwireInjectedInstantiationError:
    def test_injected_cannot_be_instantiated(self) -> None:
        """Injected is only meant to be subscripted."""
        with pytest.raises(InwireInjectedInstantiationError):
            Injected()


class TestExceptionHierarchy:
    @pytest.mark.parametrize(
        "exception_type",
        [
            InwireInvalidRegistrationError,
            InwireInvalidInstanceTypeError,
            InwireUnregisteredTokenError,
            InwireDependencyInferenceError,
            InwireCircularDependencyError,
            InwireAsyncDependencyInSyncContextError,
            InwireInjectedInstantiationError,
        ],
    )
    def test_all_errors_share_base(self, exception_type: type[Exception]) -> None:
        """Every inwire failure can be caught as InwireError."""
        assert issubclass(exception_type, InwireError)

    def test_catching_base_class(self, container: Container) -> None:
        """Catching InwireError covers resolution failures."""
        with pytest.raises(InwireError):
            container.resolve(Dependency)


class AsyncCycleRoot:
    def __init__(self, connection: "AsyncCycleConnection") -> None:
        self.connection = connection


class AsyncCycleConnection:
    pass


@injectable("chain")
class ChainRecorder:
    def __init__(self, chain: tuple[object, ...]) -> None:
        self.chain = chain


class TestResolutionChain:
    def test_chain_lists_active_tokens(self, container: Container) -> None:
        """Producers observe the tokens resolved above them, outermost first."""
        container.register_transient(ChainRecorder)
        container.register_factory("chain", current_resolution_chain)

        recorder = container.resolve(ChainRecorder)

        assert recorder.chain == (ChainRecorder, "chain")
        assert current_resolution_chain() == ()

    async def test_cycle_through_async_producer(self, container: Container) -> None:
        """An async producer resolving its own ancestor is reported instead of waiting forever."""

        async def connect() -> AsyncCycleConnection:
            await container.aresolve(AsyncCycleRoot)
            return AsyncCycleConnection()

        container.register_transient(AsyncCycleRoot)
        container.register_singleton_factory(AsyncCycleConnection, connect)

        with pytest.raises(InwireCircularDependencyError, match="AsyncCycleRoot -> AsyncCycleConnection"):
            await container.aresolve(AsyncCycleRoot)

    async def test_cycle_through_pending_singleton_ancestor(self, container: Container) -> None:
        """A pending singleton re-entered from its own dependency's producer is a cycle."""

        async def connect() -> AsyncCycleConnection:
            await container.aresolve(AsyncCycleRoot)
            return AsyncCycleConnection()

        container.register_singleton(AsyncCycleRoot)
        container.register_singleton_factory(AsyncCycleConnection, connect)

        with pytest.raises(
            InwireCircularDependencyError,
            match="AsyncCycleRoot -> AsyncCycleConnection -> AsyncCycleRoot",
        ):
            await asyncio.wait_for(container.aresolve(AsyncCycleRoot), timeout=1)

    async def test_cycle_back_into_pending_singleton_factory(self, container: Container) -> None:
        """A singleton factory whose producer needs a dependent of itself is a cycle."""

        async def connect() -> AsyncCycleConnection:
            await container.aresolve(AsyncCycleRoot)
            return AsyncCycleConnection()

        container.register_transient(AsyncCycleRoot)
        container.register_singleton_factory(AsyncCycleConnection, connect)

        with pytest.raises(
            InwireCircularDependencyError,
            match="AsyncCycleConnection -> AsyncCycleRoot -> AsyncCycleConnection",
        ):
            await asyncio.wait_for(container.aresolve(AsyncCycleConnection), timeout=1)

    async def test_singleton_retried_after_cycle(self, container: Container) -> None:
        """Both pending slots reset once the cycle is reported."""
        attempts: list[int] = []

        async def connect() -> AsyncCycleConnection:
            attempts.append(1)
            if len(attempts) == 1:
                await container.aresolve(AsyncCycleRoot)
            return AsyncCycleConnection()

        container.register_singleton(AsyncCycleRoot)
        container.register_singleton_factory(AsyncCycleConnection, connect)

        with pytest.raises(InwireCircularDependencyError):
            await asyncio.wait_for(container.aresolve(AsyncCycleRoot), timeout=1)
        await asyncio.sleep(0)

        root = await asyncio.wait_for(container.aresolve(AsyncCycleRoot), timeout=1)

        assert isinstance(root.connection, AsyncCycleConnection)
        assert len(attempts) == 2
