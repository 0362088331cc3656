from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Annotated, Any, NamedTuple, TypeVar, Union, get_args, get_origin

from typing_extensions import Self

from inwire.exceptions import InwireInjectedInstantiationError

T = TypeVar("T")
InjectableT = TypeVar("InjectableT", bound=Callable[..., Any])

_DECLARATION_ATTRIBUTE = "__inwire_injectable__"


class InjectedMarker:
    """Annotated metadata flagging a method parameter for injection.

    The metadata provider treats the leading parameters carrying this marker
    as dependencies of an undecorated method.
    """


class InjectableDeclaration(NamedTuple):
    """Dependency declaration attached by ``@injectable``.

    ``tokens`` is ``None`` when the dependency list should be inferred from
    annotations.
    """

    tokens: tuple[Any, ...] | None


if TYPE_CHECKING:
    Injected = Union[T, T]  # noqa: UP007,PYI016
    """Type checkers see ``Injected[T]`` as plain ``T``."""

else:

    class Injected:
        """Request a method parameter from the container.

        ``Injected[T]`` evaluates to ``Annotated[T, InjectedMarker()]``; existing
        ``Annotated`` metadata on ``T`` is kept and becomes part of the token.

        Examples:
            .. code-block:: python

                class Handler:
                    def handle(self, repository: Injected[Repository], order_id: int) -> None:
                        ...


                container.invoke(handler, "handle", 42)

        """

        def __new__(cls, *_args: object, **_kwargs: object) -> Self:
            raise InwireInjectedInstantiationError

        def __class_getitem__(cls, item: T) -> Annotated[T, InjectedMarker]:
            base, metadata = _split_annotated(item)
            return _build_annotated((base, *metadata, InjectedMarker()))


def injectable(*tokens: Any) -> Callable[[InjectableT], InjectableT]:
    """Declare the dependencies of a class constructor or a method.

    Called without arguments the dependency list is inferred from the
    annotations of the decorated constructor or method. Called with tokens,
    those tokens are the dependency list, in order, which also allows
    non-type tokens such as strings.

    Examples:
        .. code-block:: python

            @injectable()
            class ConsoleLogger:
                def __init__(self, tool: Tool) -> None:
                    self.tool = tool

                @injectable()
                def log(self, second_tool: Tool, message: str) -> str: ...


            @injectable("settings", Tool)
            class Reporter:
                def __init__(self, settings: dict[str, str], tool: Tool) -> None: ...

    """
    declaration = InjectableDeclaration(tokens=tokens or None)

    def decorator(target: InjectableT) -> InjectableT:
        setattr(target, _DECLARATION_ATTRIBUTE, declaration)
        return target

    return decorator


def get_declaration(target: Any) -> InjectableDeclaration | None:
    """Return the ``@injectable`` declaration made directly on ``target``.

    Classes are looked up in their own ``__dict__`` so a subclass never
    inherits the constructor declaration of its parent.
    """
    if isinstance(target, type):
        declaration = target.__dict__.get(_DECLARATION_ATTRIBUTE)
    else:
        declaration = getattr(target, _DECLARATION_ATTRIBUTE, None)
    if isinstance(declaration, InjectableDeclaration):
        return declaration
    return None


def is_injected_annotation(annotation: Any) -> bool:
    """Return True when ``annotation`` carries an ``InjectedMarker``."""
    _, metadata = _split_annotated(annotation)
    return any(isinstance(item, InjectedMarker) for item in metadata)


def strip_injected_annotation(annotation: Any) -> Any:
    """Drop the ``InjectedMarker`` and keep any other ``Annotated`` metadata."""
    base, metadata = _split_annotated(annotation)
    remaining = tuple(item for item in metadata if not isinstance(item, InjectedMarker))
    if len(remaining) == len(metadata):
        return annotation
    if not remaining:
        return base
    return _build_annotated((base, *remaining))


def _split_annotated(annotation: Any) -> tuple[Any, tuple[Any, ...]]:
    if get_origin(annotation) is not Annotated:
        return annotation, ()
    base, *metadata = get_args(annotation)
    return base, tuple(metadata)


def _build_annotated(params: tuple[Any, ...]) -> Any:
    # Subscripting with a tuple is what Annotated[a, b] does under the hood
    return Annotated[params]  # type: ignore[valid-type]
