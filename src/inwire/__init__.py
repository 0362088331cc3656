from inwire.container import Container
from inwire.dependencies import AnnotationMetadataProvider, MetadataProvider
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
from inwire.lock_mode import LockMode
from inwire.markers import Injected, injectable
from inwire.providers import Lifetime

__all__ = [
    "AnnotationMetadataProvider",
    "Container",
    "Injected",
    "InwireAsyncDependencyInSyncContextError",
    "InwireCircularDependencyError",
    "InwireDependencyInferenceError",
    "InwireError",
    "InwireInjectedInstantiationError",
    "InwireInvalidInstanceTypeError",
    "InwireInvalidRegistrationError",
    "InwireUnregisteredTokenError",
    "Lifetime",
    "LockMode",
    "MetadataProvider",
    "injectable",
]
