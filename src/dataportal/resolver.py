"""Resolution of the method that handles an operation for given criteria.

    >>> resolver = MethodResolver()
    >>> method = resolver.find_method(Customer, OperationKind.FETCH, [42])
    >>> result = await call_method(customer, method, [42])
"""

import inspect
import logging
import threading
from typing import Any, Optional, Sequence

from dataportal.config import DispatchConfig
from dataportal.discovery import CandidateDiscovery, FactoryLoader
from dataportal.domain import CandidateMethod, OperationKind, describe_target
from dataportal.errors import MethodNotFoundError, ParameterMismatchError
from dataportal.scoring import CandidateScorer, pick

__all__ = ["MethodResolver", "find_method"]

logger = logging.getLogger(__name__)


class MethodResolver:
    """Find the single method on a type that should handle an operation.

    Discovered candidates are cached per type and operation; scoring is
    repeated for each call because it depends on the criteria.
    """

    def __init__(
        self,
        config: Optional[DispatchConfig] = None,
        factory_loader: Optional[FactoryLoader] = None,
    ):
        self._config = config or DispatchConfig()
        self._discovery = CandidateDiscovery(self._config, factory_loader)
        self._scorer = CandidateScorer(self._config)
        self._candidates: dict[tuple[type, OperationKind], tuple[CandidateMethod, ...]] = {}
        self._lock = threading.Lock()

    def find_method(
        self, target: Any, kind: OperationKind, criteria: Optional[Sequence[Any]] = None
    ) -> CandidateMethod:
        """Resolve the method handling ``kind`` for the given criteria.

        Args:
            target: The business object type, or an instance of it.
            kind: The requested operation.
            criteria: Criteria values; None or empty means no criteria.

        Returns:
            The chosen :class:`CandidateMethod`, to be passed to
            :func:`~dataportal.invoker.call_method`.

        Raises:
            TypeError: If ``target`` is None.
            MethodNotFoundError: If the type has no method for the operation.
            ParameterMismatchError: If no method accepts the criteria.
            AmbiguousMatchError: If several methods match equally well.
        """
        if target is None:
            raise TypeError("target must not be None")

        target_type = target if inspect.isclass(target) else type(target)
        criteria = list(criteria) if criteria is not None else []

        candidates = self.candidates(target_type, kind)
        if not candidates:
            raise MethodNotFoundError(
                f"{describe_target(target_type)}.[{kind.value}] method not found", target_type, kind
            )

        matches = self._scorer.score_all(candidates, criteria)
        if not matches:
            raise ParameterMismatchError(
                f"{describe_target(target_type)}.[{kind.value}] has no method accepting "
                f"{len(criteria)} criteria",
                target_type,
                kind,
            )

        method = pick(matches, target_type, kind)
        logger.debug("Resolved %s.[%s] to %s", target_type.__qualname__, kind.value, method)
        return method

    def candidates(self, target_type: type, kind: OperationKind) -> tuple[CandidateMethod, ...]:
        """Return discovered candidates for a type and operation, using the cache if enabled."""
        if not self._config.cache_candidates:
            return self._discovery.discover(target_type, kind)

        key = (target_type, kind)
        with self._lock:
            cached = self._candidates.get(key)
        if cached is not None:
            logger.debug("Using cached candidates for %s.[%s]", target_type.__qualname__, kind.value)
            return cached

        discovered = self._discovery.discover(target_type, kind)
        with self._lock:
            return self._candidates.setdefault(key, discovered)

    def clear_cache(self) -> None:
        with self._lock:
            self._candidates.clear()


_default_resolver = MethodResolver()


def find_method(
    target: Any, kind: OperationKind, criteria: Optional[Sequence[Any]] = None
) -> CandidateMethod:
    """Resolve a method using the default :class:`MethodResolver`.

    See :meth:`MethodResolver.find_method`.
    """
    return _default_resolver.find_method(target, kind, criteria)
