from __future__ import annotations

import inspect
from collections.abc import Callable
from inspect import Parameter
from types import FunctionType
from typing import Any, Protocol, get_type_hints, runtime_checkable

from inwire.exceptions import InwireDependencyInferenceError
from inwire.markers import get_declaration, is_injected_annotation, strip_injected_annotation
from inwire.providers import Token

_MISSING_ANNOTATION: Any = object()
_POSITIONAL_KINDS = (Parameter.POSITIONAL_ONLY, Parameter.POSITIONAL_OR_KEYWORD)


@runtime_checkable
class MetadataProvider(Protocol):
    """Supply ordered dependency tokens for constructors and methods.

    The container consults its metadata provider on every construction and
    every invocation; implementations are expected to be pure, order-stable
    lookups and may cache their results.
    """

    def get_constructor_dependencies(self, concrete_type: type[Any]) -> tuple[Token, ...]:
        """Return the tokens to pass, in order, to the constructor of ``concrete_type``."""
        ...

    def get_method_dependencies(
        self,
        concrete_type: type[Any],
        method_name: str,
    ) -> tuple[Token, ...]:
        """Return the tokens to pass, in order, ahead of explicit arguments to a method."""
        ...


class AnnotationMetadataProvider:
    """Derive dependency tokens from ``@injectable`` declarations and type hints."""

    def __init__(self) -> None:
        self._constructor_cache: dict[type[Any], tuple[Token, ...]] = {}
        self._method_cache: dict[tuple[type[Any], str], tuple[Token, ...]] = {}

    def get_constructor_dependencies(self, concrete_type: type[Any]) -> tuple[Token, ...]:
        cached = self._constructor_cache.get(concrete_type)
        if cached is not None:
            return cached

        declaration = get_declaration(concrete_type)
        if declaration is not None and declaration.tokens is not None:
            result = declaration.tokens
        else:
            result = self._extract_constructor_dependencies(concrete_type)

        self._constructor_cache[concrete_type] = result
        return result

    def get_method_dependencies(
        self,
        concrete_type: type[Any],
        method_name: str,
    ) -> tuple[Token, ...]:
        cache_key = (concrete_type, method_name)
        cached = self._method_cache.get(cache_key)
        if cached is not None:
            return cached

        raw_method = inspect.getattr_static(concrete_type, method_name)
        if isinstance(raw_method, staticmethod):
            method = raw_method.__func__
            skip_first_parameter = False
        elif isinstance(raw_method, classmethod):
            method = raw_method.__func__
            skip_first_parameter = True
        else:
            method = raw_method
            skip_first_parameter = True

        if not callable(method):
            msg = f"'{concrete_type.__qualname__}.{method_name}' is not a method."
            raise InwireDependencyInferenceError(msg)

        declaration = get_declaration(raw_method) or get_declaration(method)
        if declaration is not None and declaration.tokens is not None:
            result = declaration.tokens
        else:
            result = self._extract_method_dependencies(
                method=method,
                provider_name=f"{concrete_type.__qualname__}.{method_name}",
                skip_first_parameter=skip_first_parameter,
                injected_only=declaration is None,
            )

        self._method_cache[cache_key] = result
        return result

    def _extract_constructor_dependencies(self, concrete_type: type[Any]) -> tuple[Token, ...]:
        init = concrete_type.__init__
        if not isinstance(init, FunctionType):
            # object.__init__ or a builtin base: nothing to inject
            return ()

        provider_name = concrete_type.__qualname__
        parameters = self._leading_positional_parameters(init, skip_first_parameter=True)
        annotations, annotation_error = self._resolved_type_hints(init)

        for parameter in inspect.signature(init).parameters.values():
            if parameter.kind is Parameter.KEYWORD_ONLY and parameter.default is Parameter.empty:
                msg = (
                    f"Unable to inject required keyword-only parameter '{parameter.name}' "
                    f"in constructor of '{provider_name}'. Give it a default value or make it "
                    "positional."
                )
                raise InwireDependencyInferenceError(msg)

        dependencies: list[Token] = []
        for parameter in parameters:
            annotation = self._parameter_annotation(parameter, annotations)
            if annotation is _MISSING_ANNOTATION:
                self._raise_missing_annotation(
                    parameter_name=parameter.name,
                    provider_name=provider_name,
                    annotation_error=annotation_error,
                )
            dependencies.append(strip_injected_annotation(annotation))
        return tuple(dependencies)

    def _extract_method_dependencies(
        self,
        *,
        method: Callable[..., Any],
        provider_name: str,
        skip_first_parameter: bool,
        injected_only: bool,
    ) -> tuple[Token, ...]:
        parameters = self._leading_positional_parameters(
            method,
            skip_first_parameter=skip_first_parameter,
        )
        annotations, annotation_error = self._resolved_type_hints(method)

        dependencies: list[Token] = []
        for parameter in parameters:
            annotation = self._parameter_annotation(parameter, annotations)
            if annotation is _MISSING_ANNOTATION:
                if isinstance(parameter.annotation, str) and annotation_error is not None:
                    self._raise_missing_annotation(
                        parameter_name=parameter.name,
                        provider_name=provider_name,
                        annotation_error=annotation_error,
                    )
                break
            if injected_only and not is_injected_annotation(annotation):
                break
            dependencies.append(strip_injected_annotation(annotation))
        return tuple(dependencies)

    def _leading_positional_parameters(
        self,
        function: Callable[..., Any],
        *,
        skip_first_parameter: bool,
    ) -> list[Parameter]:
        parameters = list(inspect.signature(function).parameters.values())
        if skip_first_parameter and parameters and parameters[0].kind in _POSITIONAL_KINDS:
            parameters = parameters[1:]

        leading: list[Parameter] = []
        for parameter in parameters:
            if parameter.kind not in _POSITIONAL_KINDS or parameter.default is not Parameter.empty:
                break
            leading.append(parameter)
        return leading

    def _parameter_annotation(self, parameter: Parameter, annotations: dict[str, Any]) -> Any:
        annotation = annotations.get(parameter.name, _MISSING_ANNOTATION)
        if annotation is not _MISSING_ANNOTATION:
            return annotation

        raw_annotation = parameter.annotation
        if raw_annotation is not Parameter.empty and not isinstance(raw_annotation, str):
            return raw_annotation
        return _MISSING_ANNOTATION

    def _resolved_type_hints(
        self,
        function: Callable[..., Any],
    ) -> tuple[dict[str, Any], Exception | None]:
        try:
            return get_type_hints(inspect.unwrap(function), include_extras=True), None
        except (AttributeError, NameError, TypeError) as error:
            return {}, error

    def _raise_missing_annotation(
        self,
        *,
        parameter_name: str,
        provider_name: str,
        annotation_error: Exception | None,
    ) -> None:
        error_message = (
            f"Unable to infer dependency for required parameter '{parameter_name}' "
            f"in '{provider_name}'. Add a type annotation or declare the tokens with "
            "@injectable(...)."
        )
        if annotation_error is None:
            raise InwireDependencyInferenceError(error_message)
        msg = f"{error_message} Original annotation error: {annotation_error}"
        raise InwireDependencyInferenceError(msg) from annotation_error
