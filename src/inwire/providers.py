from __future__ import annotations

import asyncio
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, TypeAlias

from inwire.exceptions import InwireInvalidRegistrationError, InwireUnregisteredTokenError

Token: TypeAlias = Any
"""An identifier for an abstraction, usually a class. Any hashable value is accepted."""

Producer: TypeAlias = Callable[[], Any]
"""A zero-argument callable returning a value or an awaitable."""


class Lifetime(Enum):
    """Defines how a registration produces and caches its value."""

    TRANSIENT = auto()
    """A new instance of the concrete class is constructed on every resolution."""

    SINGLETON = auto()
    """The concrete class is constructed once and shared for the lifetime of the container."""

    INSTANCE = auto()
    """A pre-built value supplied at registration time is returned as is."""

    FACTORY = auto()
    """The producer is called on every resolution and its result is returned unmodified."""

    SINGLETON_FACTORY = auto()
    """The producer is called once and its result is shared for the lifetime of the container."""

    @property
    def is_cached(self) -> bool:
        """Whether the registration keeps the first produced value."""
        return self in (Lifetime.SINGLETON, Lifetime.SINGLETON_FACTORY)


class SlotState(Enum):
    """State of a registration's cache slot."""

    EMPTY = auto()
    PENDING = auto()
    RESOLVED = auto()


@dataclass(kw_only=True, eq=False)
class Registration:
    """The production rule bound to a token, together with its cache slot."""

    token: Token
    """The token this registration answers for."""
    lifetime: Lifetime
    """How the value is produced and whether it is cached."""
    impl: type[Any] | None = None
    """The concrete class for ``TRANSIENT`` and ``SINGLETON`` registrations."""
    factory: Producer | None = None
    """The producer for ``FACTORY`` and ``SINGLETON_FACTORY`` registrations."""

    state: SlotState = SlotState.EMPTY
    """Current state of the cache slot."""
    value: Any = None
    """The cached value once ``state`` is ``RESOLVED``."""
    pending: asyncio.Future[Any] | None = None
    """The shared in-flight production while ``state`` is ``PENDING``."""
    lock: threading.RLock = field(default_factory=threading.RLock, repr=False)
    """Guards synchronous singleton production when thread locking is enabled."""

    @classmethod
    def for_instance(cls, token: Token, value: Any) -> Registration:
        return cls(
            token=token,
            lifetime=Lifetime.INSTANCE,
            state=SlotState.RESOLVED,
            value=value,
        )

    def resolve_slot(self, value: Any) -> None:
        """Store the final value and drop any pending marker."""
        self.value = value
        self.pending = None
        self.state = SlotState.RESOLVED

    def install_pending(self, future: asyncio.Future[Any]) -> None:
        self.pending = future
        self.state = SlotState.PENDING

    def reset_slot(self) -> None:
        self.value = None
        self.pending = None
        self.state = SlotState.EMPTY


class Registrations:
    """Holds all registrations of one container, keyed by token."""

    def __init__(self, *, allow_overrides: bool = True) -> None:
        self._allow_overrides = allow_overrides
        self._registrations_by_token: dict[Token, Registration] = {}

    def add(self, registration: Registration) -> None:
        """Add a registration, replacing any previous registration for the same token."""
        if not self._allow_overrides and registration.token in self._registrations_by_token:
            msg = (
                f"Token {registration.token!r} is already registered and overrides are disabled "
                "for this container."
            )
            raise InwireInvalidRegistrationError(msg)
        self._registrations_by_token[registration.token] = registration

    def get(self, token: Token) -> Registration:
        """Get the registration for a token or raise ``InwireUnregisteredTokenError``."""
        registration = self._registrations_by_token.get(token)
        if registration is None:
            raise InwireUnregisteredTokenError(token)
        return registration

    def find(self, token: Token) -> Registration | None:
        """Get the registration for a token, if it exists."""
        return self._registrations_by_token.get(token)

    def values(self) -> list[Registration]:
        return list(self._registrations_by_token.values())

    def __contains__(self, token: object) -> bool:
        return token in self._registrations_by_token

    def __len__(self) -> int:
        return len(self._registrations_by_token)
