from typing import Any, Iterable, Optional

__all__ = [
    "DataPortalError",
    "ResolutionError",
    "MethodNotFoundError",
    "ParameterMismatchError",
    "AmbiguousMatchError",
    "InvocationError",
    "MethodNotImplementedError",
    "CallMethodError",
]


class DataPortalError(Exception):
    """Base class for all errors raised while resolving or calling data portal methods."""

    pass


class ResolutionError(DataPortalError):
    """Raised when no single method can be chosen for a type and operation."""

    def __init__(self, message: str, target_type: Optional[type] = None, kind: Any = None):
        super().__init__(message)
        self.target_type = target_type
        self.kind = kind


class MethodNotFoundError(ResolutionError):
    """Raised when a type declares no method at all for the requested operation."""

    pass


class ParameterMismatchError(ResolutionError):
    """Raised when candidates exist but none accepts the supplied criteria."""

    pass


class AmbiguousMatchError(ResolutionError):
    """Raised when two or more candidates are equally good matches."""

    def __init__(
        self,
        message: str,
        target_type: Optional[type] = None,
        kind: Any = None,
        candidates: Iterable[Any] = (),
    ):
        super().__init__(message, target_type, kind)
        self.candidates = tuple(candidates)


class InvocationError(DataPortalError):
    """Base class for failures while calling a resolved method."""

    pass


class MethodNotImplementedError(InvocationError):
    """Raised when a call is attempted without a resolved method."""

    pass


class CallMethodError(InvocationError):
    """Raised when the invoked method itself fails.

    Attributes:
        target_type_name: Name of the type the method was called on.
        method_name: Name of the method that failed.
        cause: The innermost exception raised by the method.
    """

    def __init__(self, target_type_name: str, method_name: str, cause: BaseException):
        super().__init__(f"{target_type_name}.{method_name} method call failed: {cause}")
        self.target_type_name = target_type_name
        self.method_name = method_name
        self.cause = cause
