from __future__ import annotations

import inspect
from typing import Any

from inwire.exceptions import InwireInvalidInstanceTypeError, InwireInvalidRegistrationError
from inwire.providers import Token


class RegistrationValidator:
    """Validates registration arguments before registrations are created."""

    def validate_concrete_type(self, token: Token, concrete_type: object) -> None:
        """Validate that a concrete implementation is instantiable."""
        if not inspect.isclass(concrete_type):
            msg = (
                f"Implementation for token {token!r} must be a class, got {concrete_type!r}. "
                "Pass an explicit implementation class or use register_factory."
            )
            raise InwireInvalidRegistrationError(msg)

        if inspect.isabstract(concrete_type):
            msg = f"Implementation '{concrete_type.__qualname__}' cannot be an abstract class."
            raise InwireInvalidRegistrationError(msg)

    def validate_producer(self, token: Token, producer: object) -> None:
        """Validate that a factory producer can be called."""
        if not callable(producer):
            msg = f"Producer for token {token!r} must be callable, got {producer!r}."
            raise InwireInvalidRegistrationError(msg)

    def validate_instance(self, token: Token, value: Any) -> None:
        """Validate that a pre-built value is an instance of its class token.

        Tokens that are not classes carry no type to check against and accept
        any value. The check is nominal (``isinstance``), so a callable that
        merely looks like the class is rejected while subclass instances pass.
        """
        if not inspect.isclass(token):
            return
        try:
            matches = isinstance(value, token)
        except TypeError:
            # non runtime-checkable protocols only support nominal conformance
            matches = token in type(value).__mro__
        if not matches:
            raise InwireInvalidInstanceTypeError(token, value)
