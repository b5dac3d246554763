"""Service providers supplying values for injected parameters.

The dispatcher only needs something that can answer ``resolve(type)``; any
DI container can be adapted to the :class:`ServiceProvider` protocol. The
provider used for a call is either passed explicitly or taken from the
ambient scope established with :func:`service_scope`:

    >>> with service_scope(MappingServiceProvider({Repository: repo})):
    ...     await call_method(customer, method, [42])
"""

import logging
from collections import defaultdict
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Iterator, Optional, Protocol, runtime_checkable

__all__ = [
    "ServiceProvider",
    "MappingServiceProvider",
    "service_scope",
    "current_service_provider",
]

logger = logging.getLogger(__name__)


@runtime_checkable
class ServiceProvider(Protocol):
    """Anything able to supply a service instance for a declared type."""

    def resolve(self, service_type: Any) -> Optional[Any]:
        """Return an instance for ``service_type``, or ``None`` if there is none."""
        ...


class MappingServiceProvider:
    """Service provider backed by a mapping of types to instances.

    Lookup prefers an exact type registration, then a unique registered
    instance of a subtype. Providers may be layered: a child provider falls
    back to its parent when it has no match of its own.

    Example:
        >>> app_services = MappingServiceProvider({Clock: SystemClock()})
        >>> request_services = MappingServiceProvider({Session: session}, app_services)
        >>> request_services.resolve(Clock)  # Found in parent
    """

    def __init__(
        self,
        services: Optional[dict[Any, Any]] = None,
        parent: Optional[ServiceProvider] = None,
    ):
        self.services = dict(services or {})
        self._parent = parent
        self._services_by_type: dict[type, list[Any]] = defaultdict(list)
        for registered_type, service in self.services.items():
            if isinstance(registered_type, type):
                for supertype in registered_type.__mro__:
                    if supertype is not object:
                        self._services_by_type[supertype].append(service)

    def resolve(self, service_type: Any) -> Optional[Any]:
        if service_type in self.services:
            return self.services[service_type]

        candidates = self._services_by_type.get(service_type, [])
        if len(candidates) == 1:
            return candidates[0]
        if len(candidates) > 1:
            logger.warning(
                "No unique service found for type %s: %d candidates", service_type, len(candidates)
            )
            return None

        if self._parent is not None:
            return self._parent.resolve(service_type)
        return None

    def __contains__(self, service_type: Any) -> bool:
        return self.resolve(service_type) is not None


_current_provider: ContextVar[Optional[ServiceProvider]] = ContextVar(
    "dataportal_service_provider", default=None
)


def current_service_provider() -> Optional[ServiceProvider]:
    """Return the ambient service provider for the current context, if any."""
    return _current_provider.get()


@contextmanager
def service_scope(provider: Optional[ServiceProvider]) -> Iterator[Optional[ServiceProvider]]:
    """Make ``provider`` the ambient service provider within a ``with`` block.

    Scopes nest, and each asyncio task or thread sees its own scope.
    """
    token = _current_provider.set(provider)
    try:
        yield provider
    finally:
        _current_provider.reset(token)
