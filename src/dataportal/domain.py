"""Domain models used throughout the dispatcher."""

import inspect
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable

__all__ = [
    "OperationKind",
    "ReturnShape",
    "ParameterDescriptor",
    "CandidateMethod",
    "ScoredCandidate",
    "describe_target",
]

_CATCH_ALL_TYPES = (object, Any)


class OperationKind(Enum):
    """The lifecycle operation being dispatched.

    Each member's value is its marker name. Child variants end in ``Child``;
    the legacy method-name stem is the marker name with that suffix removed.

    Example:
        >>> OperationKind.FETCH_CHILD.stem
        'Fetch'
        >>> OperationKind.FETCH_CHILD.is_child
        True
    """

    CREATE = "Create"
    FETCH = "Fetch"
    UPDATE = "Update"
    INSERT = "Insert"
    DELETE = "Delete"
    DELETE_SELF = "DeleteSelf"
    EXECUTE = "Execute"
    CREATE_CHILD = "CreateChild"
    FETCH_CHILD = "FetchChild"
    UPDATE_CHILD = "UpdateChild"
    INSERT_CHILD = "InsertChild"
    DELETE_SELF_CHILD = "DeleteSelfChild"

    @property
    def is_child(self) -> bool:
        return "Child" in self.value

    @property
    def stem(self) -> str:
        if self.is_child:
            return self.value[: self.value.index("Child")]
        return self.value


class ReturnShape(Enum):
    """How a method hands back its result, fixed when the method is discovered."""

    VALUE = "value"
    NO_VALUE = "no_value"
    DEFERRED_VALUE = "deferred_value"
    DEFERRED_NO_VALUE = "deferred_no_value"

    @property
    def is_deferred(self) -> bool:
        return self in (ReturnShape.DEFERRED_VALUE, ReturnShape.DEFERRED_NO_VALUE)


@dataclass(frozen=True)
class ParameterDescriptor:
    """A single declared parameter of a candidate method.

    Attributes:
        name: The parameter name in the method signature.
        position: Ordinal position, not counting ``self`` or ``cls``.
        declared_type: The declared type with ``Optional`` and ``Annotated`` stripped.
            Unannotated parameters are declared as ``object``.
        nullable: Whether the annotation admits ``None``.
        injected: True if the value comes from a service provider rather than criteria.
        kind: The ``inspect.Parameter`` kind of the parameter.
    """

    name: str
    position: int
    declared_type: Any
    nullable: bool
    injected: bool
    kind: Any = inspect.Parameter.POSITIONAL_OR_KEYWORD

    @property
    def variadic(self) -> bool:
        return self.kind is inspect.Parameter.VAR_POSITIONAL

    @property
    def keyword_only(self) -> bool:
        return self.kind is inspect.Parameter.KEYWORD_ONLY


@dataclass(frozen=True)
class CandidateMethod:
    """A structurally possible handler for an operation.

    Instances returned by resolution double as method handles. Instance and
    class methods are looked up on the target by name when called, so an
    override in a subclass runs in place of the discovered definition.

    Attributes:
        declaring_type: The class on which the method is declared.
        name: The method name.
        function: The underlying function (unwrapped from staticmethod/classmethod).
        binding: ``"instance"``, ``"static"`` or ``"class"``.
        parameters: All classified parameters in declared order.
        return_shape: The precomputed return convention.
    """

    declaring_type: type
    name: str
    function: Callable
    binding: str
    parameters: tuple[ParameterDescriptor, ...]
    return_shape: ReturnShape

    @property
    def injected_parameters(self) -> tuple[ParameterDescriptor, ...]:
        return tuple(p for p in self.parameters if p.injected)

    @property
    def positional_parameters(self) -> tuple[ParameterDescriptor, ...]:
        """Criteria-bound parameters, excluding a variadic catch-all."""
        return tuple(p for p in self.parameters if not p.injected and not p.variadic)

    @property
    def variadic(self) -> bool:
        """Whether the method takes an untyped ``*args`` catch-all."""
        return any(
            p.variadic and not p.injected and p.declared_type in _CATCH_ALL_TYPES for p in self.parameters
        )

    @property
    def typed_variadic(self) -> bool:
        """Whether the method takes ``*args`` restricted to a narrower type, which never matches."""
        return any(p.variadic and not p.injected for p in self.parameters) and not self.variadic

    @property
    def signature(self) -> str:
        return f"{self.name}{inspect.signature(self.function)}"

    def __str__(self) -> str:
        return f"{self.declaring_type.__qualname__}.{self.signature}"


@dataclass
class ScoredCandidate:
    """A candidate paired with its score for a single scoring pass."""

    method: CandidateMethod
    score: int = 0

    def __repr__(self) -> str:
        return f"ScoredCandidate({self.method}, score={self.score})"


def describe_target(target: Any) -> str:
    target_type = target if inspect.isclass(target) else type(target)
    return f"{target_type.__module__}.{target_type.__qualname__}"