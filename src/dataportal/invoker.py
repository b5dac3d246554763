"""Invocation of resolved methods with criteria and injected services.

Arguments are assembled in the method's declared order. Injected parameters
are resolved from the service provider by declared type; criteria-bound
parameters take the next unused criterion, and a ``*args`` catch-all takes
whatever criteria remain. Missing services and missing criteria become
``None`` rather than errors.

Whatever the method's calling convention, :func:`call_method` is awaited
and returns the method's result: coroutine results are awaited, and
methods that produce no value asynchronously yield ``None``.
"""

import functools
import inspect
import logging
from typing import Any, Callable, Optional, Sequence

from dataportal.domain import CandidateMethod, ReturnShape
from dataportal.errors import CallMethodError, MethodNotImplementedError
from dataportal.services import ServiceProvider, current_service_provider

__all__ = ["call_method", "build_arguments", "innermost_cause"]

logger = logging.getLogger(__name__)


async def call_method(
    target: Any,
    method: Optional[CandidateMethod],
    criteria: Optional[Sequence[Any]] = None,
    service_provider: Optional[ServiceProvider] = None,
) -> Any:
    """Call a resolved method on a target.

    Args:
        target: The object the method is called on. Ignored for static
            methods; class methods receive its class.
        method: The method returned by :func:`~dataportal.resolver.find_method`.
        criteria: Criteria values bound to the method's non-injected parameters.
        service_provider: Provider for injected parameters. Defaults to the
            ambient provider set with :func:`~dataportal.services.service_scope`.

    Returns:
        The method's result, or None for methods that return no value.

    Raises:
        MethodNotImplementedError: If ``method`` is None.
        CallMethodError: If the method raises. The innermost cause of the
            exception is attached as ``cause``.
    """
    if method is None:
        raise MethodNotImplementedError(f"{_type_name(target)} method not implemented")

    provider = service_provider if service_provider is not None else current_service_provider()
    args, kwargs = build_arguments(method, criteria, provider)

    try:
        result = _bind(target, method)(*args, **kwargs)
        if method.return_shape is ReturnShape.DEFERRED_NO_VALUE:
            await result
            return None
        if method.return_shape is ReturnShape.DEFERRED_VALUE:
            return await result
        return result
    except Exception as ex:
        cause = innermost_cause(ex)
        logger.debug("Call to %s.%s failed", _type_name(target), method.name, exc_info=True)
        raise CallMethodError(_type_name(target), method.name, cause) from cause


def build_arguments(
    method: CandidateMethod,
    criteria: Optional[Sequence[Any]],
    provider: Optional[ServiceProvider],
) -> tuple[list[Any], dict[str, Any]]:
    """Assemble positional and keyword arguments for a method, excluding ``self``/``cls``.

    Returns:
        A list of positional arguments and a dict of keyword-only arguments.
    """
    criteria = list(criteria) if criteria is not None else []
    fixed_slots = len(method.positional_parameters)
    remaining = iter(criteria[:fixed_slots])

    args: list[Any] = []
    kwargs: dict[str, Any] = {}
    for parameter in method.parameters:
        if parameter.injected:
            value = provider.resolve(parameter.declared_type) if provider is not None else None
        elif parameter.variadic:
            args.extend(criteria[fixed_slots:])
            continue
        else:
            value = next(remaining, None)

        if parameter.keyword_only:
            kwargs[parameter.name] = value
        else:
            args.append(value)

    return args, kwargs


def innermost_cause(ex: BaseException) -> BaseException:
    """Follow the ``__cause__`` chain to the original exception."""
    seen = {id(ex)}
    while ex.__cause__ is not None and id(ex.__cause__) not in seen:
        ex = ex.__cause__
        seen.add(id(ex))
    return ex


def _type_name(target: Any) -> str:
    return target.__name__ if inspect.isclass(target) else type(target).__name__


def _bind(target: Any, method: CandidateMethod) -> Callable:
    """Bind a method to its target, preferring a subclass override with the same parameters.

    A base method whose name is redefined with different parameter names is
    still called directly, as a distinct overload.
    """
    if method.binding == "static":
        return method.function
    owner = target if inspect.isclass(target) else type(target)
    receiver = owner if method.binding == "class" or inspect.isclass(target) else target
    override = inspect.getattr_static(owner, method.name, None)
    if isinstance(override, (classmethod, staticmethod)):
        override = override.__func__
    if inspect.isfunction(override) and _parameter_layout(override) == _parameter_layout(method.function):
        return functools.partial(override, receiver)
    return functools.partial(method.function, receiver)


def _parameter_layout(func: Callable) -> list[tuple[str, Any]]:
    return [(p.name, p.kind) for p in inspect.signature(func).parameters.values()]
