"""Introspection of candidate method signatures.

Splits a method's parameters into those supplied by a service provider and
those bound to caller criteria, and determines the method's return
convention. Both are derived once, from type hints, when a candidate is
discovered.
"""

import collections.abc
import inspect
import logging
import types
from typing import (
    Annotated,
    Any,
    Callable,
    Union,
    get_args,
    get_origin,
    get_type_hints,
)

from dataportal.domain import ParameterDescriptor, ReturnShape
from dataportal.markers import is_inject_marker

__all__ = ["classify", "describe_parameters", "return_shape"]

logger = logging.getLogger(__name__)

_NONE_TYPE = type(None)
_AWAITABLE_ORIGINS = (collections.abc.Awaitable, collections.abc.Coroutine)


def describe_parameters(func: Callable, bound: bool = True) -> tuple[ParameterDescriptor, ...]:
    """Build descriptors for every parameter of a function.

    Args:
        func: The function to analyse.
        bound: Whether the first parameter is the bound ``self`` or ``cls``,
            in which case it is not described.

    Returns:
        Descriptors in declared order. ``**kwargs`` parameters are omitted.

    Example:
        >>> def fetch(self, customer_id: int, repo: Annotated[Repository, Inject]): ...
        >>> describe_parameters(fetch)
        >>> # (ParameterDescriptor("customer_id", 0, int, False, False),
        >>> #  ParameterDescriptor("repo", 1, Repository, False, True))
    """
    sig = inspect.signature(func)
    hints = _type_hints(func)
    parameters = list(sig.parameters.values())
    if bound and parameters:
        parameters = parameters[1:]

    return tuple(
        _make_descriptor(parameter, hints.get(parameter.name), position)
        for position, parameter in enumerate(
            p for p in parameters if p.kind is not inspect.Parameter.VAR_KEYWORD
        )
    )


def classify(
    parameters: tuple[ParameterDescriptor, ...],
) -> tuple[tuple[ParameterDescriptor, ...], tuple[ParameterDescriptor, ...]]:
    """Split descriptors into (injected, positional), each in declared order.

    The inject marker is the only signal: type, name and position play no part.
    """
    injected = tuple(p for p in parameters if p.injected)
    positional = tuple(p for p in parameters if not p.injected)
    return injected, positional


def return_shape(func: Callable) -> ReturnShape:
    """Work out the return convention of a function from its declaration.

    Coroutine functions are deferred. So are plain functions annotated as
    returning an ``Awaitable`` or ``Coroutine``. A deferred or direct result
    annotated as ``None`` produces no value; an unannotated result is
    treated as a value.
    """
    returned = _type_hints(func).get("return", Any)
    if get_origin(returned) is Annotated:
        returned = get_args(returned)[0]

    if inspect.iscoroutinefunction(func):
        return ReturnShape.DEFERRED_NO_VALUE if returned is _NONE_TYPE else ReturnShape.DEFERRED_VALUE

    if get_origin(returned) in _AWAITABLE_ORIGINS:
        args = get_args(returned)
        awaited = args[-1] if args else Any
        return ReturnShape.DEFERRED_NO_VALUE if awaited in (None, _NONE_TYPE) else ReturnShape.DEFERRED_VALUE

    return ReturnShape.NO_VALUE if returned is _NONE_TYPE else ReturnShape.VALUE


def _make_descriptor(parameter: inspect.Parameter, annotation, position: int) -> ParameterDescriptor:
    if annotation is None:
        return ParameterDescriptor(parameter.name, position, object, True, False, parameter.kind)

    # The marker may sit inside Optional[...], which Python 3.10 also adds
    # implicitly for a None default.
    declared_type, nullable = _strip_optional(annotation)
    injected = False
    if get_origin(declared_type) is Annotated:
        declared_type, *metadata = get_args(declared_type)
        injected = any(is_inject_marker(m) for m in metadata)
        declared_type, inner_nullable = _strip_optional(declared_type)
        nullable = nullable or inner_nullable

    return ParameterDescriptor(
        parameter.name, position, declared_type, nullable, injected, parameter.kind
    )


class _AnnotationHolder:
    def __init__(self, annotations: dict):
        self.__annotations__ = annotations


def _type_hints(func: Callable) -> dict:
    """Resolve a function's type hints, one at a time if any fails.

    Annotations that cannot be evaluated, such as names imported only under
    ``TYPE_CHECKING``, resolve to ``object``.
    """
    try:
        return get_type_hints(func, include_extras=True)
    except (NameError, TypeError):
        logger.warning(
            "Cannot resolve every annotation of %s; unresolved ones are treated as object",
            getattr(func, "__qualname__", func),
        )

    globalns = getattr(inspect.unwrap(func), "__globals__", None)
    hints = {}
    for name, annotation in getattr(func, "__annotations__", {}).items():
        try:
            hints.update(
                get_type_hints(
                    _AnnotationHolder({name: annotation}), globalns=globalns, include_extras=True
                )
            )
        except (NameError, TypeError, SyntaxError):
            hints[name] = object
    return hints


def _strip_optional(annotation) -> tuple[Any, bool]:
    """Remove ``None`` from a union annotation.

    Returns:
        The remaining type (a single type or a narrower union) and whether
        ``None`` was part of the annotation.
    """
    if annotation is _NONE_TYPE:
        return _NONE_TYPE, True

    if get_origin(annotation) not in (Union, types.UnionType):
        return annotation, annotation is Any or annotation is object

    members = [arg for arg in get_args(annotation) if arg is not _NONE_TYPE]
    nullable = len(members) < len(get_args(annotation))
    if len(members) == 1:
        return members[0], nullable
    return Union[tuple(members)], nullable
