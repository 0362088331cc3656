from __future__ import annotations

from typing import Any

from inwire.dependencies import MetadataProvider
from inwire.resolver import Resolver


class Invoker:
    """Call methods on existing objects, injecting the method's declared dependencies.

    Every invocation resolves the method's dependency tokens afresh; nothing is
    cached per (instance, method). Singleton registrations still hand back
    their shared value, so repeated invocations see identity-stable
    dependencies.
    """

    def __init__(self, resolver: Resolver, metadata_provider: MetadataProvider) -> None:
        self._resolver = resolver
        self._metadata_provider = metadata_provider

    def invoke(self, instance: Any, method_name: str, *args: Any, **kwargs: Any) -> Any:
        method = getattr(instance, method_name)
        dependency_tokens = self._metadata_provider.get_method_dependencies(
            type(instance),
            method_name,
        )
        values = self._resolver.resolve_all(dependency_tokens)
        return self._resolver.call_when_ready(
            f"{type(instance).__qualname__}.{method_name}",
            method,
            values,
            args,
            kwargs,
            await_result=True,
        )
