from __future__ import annotations

from typing import Any


class InwireError(Exception):
    """Represent a base class for all inwire-specific failures.

    Catch this type when you want to handle any inwire error path without
    matching each concrete exception class individually.
    """


class InwireInvalidRegistrationError(InwireError):
    """Signal invalid registration arguments.

    Raised by ``Container.register_transient``, ``Container.register_singleton``,
    ``Container.register_factory`` and ``Container.register_singleton_factory``
    when the implementation is not an instantiable class, when a producer is
    not callable, or when a token is registered twice on a container created
    with ``allow_overrides=False``.
    """


class InwireInvalidInstanceTypeError(InwireError):
    """Signal a pre-built instance that does not match its token class.

    Raised by ``Container.register_instance`` when the token is a class and the
    value is neither an instance of it nor of one of its subclasses. A common
    trigger is passing a factory function to ``register_instance`` instead of
    ``register_factory``.
    """

    def __init__(self, token: Any, value: Any) -> None:
        self.token = token
        self.value = value
        super().__init__(
            f"Cannot register {value!r} as an instance of {_token_name(token)}: "
            f"it is a {type(value).__qualname__}, not a {_token_name(token)} or a subclass of it.",
        )


class InwireUnregisteredTokenError(InwireError):
    """Signal that a token has no registration.

    Raised by ``resolve``, ``aresolve``, ``invoke`` and ``ainvoke`` when the
    requested token, or any token reached while wiring its dependencies, was
    never registered. When the failing token is reached inside an asynchronous
    join the error is raised by the returned awaitable.
    """

    def __init__(self, token: Any) -> None:
        self.token = token
        super().__init__(f"Token {_token_name(token)} is not registered.")


class InwireDependencyInferenceError(InwireError):
    """Signal that a dependency list cannot be derived for a constructor or method.

    Common triggers are required parameters without annotations, required
    keyword-only parameters and forward references that cannot be resolved.

    Typical fixes include annotating the parameter or declaring the tokens
    explicitly with ``@injectable(...)``.
    """


class InwireCircularDependencyError(InwireError):
    """Signal that a token re-entered its own resolution walk."""

    def __init__(self, token: Any, stack: list[Any]) -> None:
        self.token = token
        self.stack = stack
        chain = " -> ".join(_token_name(item) for item in [*stack, token])
        super().__init__(f"Circular dependency detected: {chain}")


class InwireAsyncDependencyInSyncContextError(InwireError):
    """Signal an asynchronous dependency chain resolved without a running event loop.

    Joining asynchronous dependencies or sharing a pending singleton requires
    scheduling work on the running loop. Call ``resolve`` (or ``aresolve``)
    from inside a coroutine when the graph contains asynchronous producers.
    """

    def __init__(self, token: Any) -> None:
        self.token = token
        super().__init__(
            f"Resolving {_token_name(token)} requires awaiting an asynchronous dependency, "
            "but no event loop is running.",
        )


class InwireInjectedInstantiationError(InwireError):
    """Signal direct instantiation of the ``Injected`` marker."""

    def __init__(self) -> None:
        super().__init__("Injected is a type marker; use Injected[T] in annotations instead.")


def _token_name(token: Any) -> str:
    return getattr(token, "__qualname__", None) or repr(token)
