"""Discovery of candidate methods for an operation on a target type.

Three strategies are tried, in priority order:

1. Factory delegation: if the type (or a base) is decorated with
   :func:`~dataportal.markers.object_factory`, candidates come only from the
   factory type, selected by the configured method name for the operation.
2. Marked methods: every method tagged with the operation's marker
   decorator, walking the MRO from the most-derived class to the base.
3. Legacy names: only if no method is marked, methods named
   ``DataPortal_<Stem>`` (or ``Child_<Stem>`` for child operations),
   walking the MRO again and skipping base definitions whose signature was
   already captured.

Discovery only inspects class metadata. It never raises for an empty
result; deciding whether that is an error is left to the resolver.
"""

import importlib
import inspect
import logging
from typing import Any, Iterator, Optional, Protocol, Union

from dataportal.config import DispatchConfig
from dataportal.domain import CandidateMethod, OperationKind
from dataportal.markers import ObjectFactoryInfo, object_factory_info, operation_kinds
from dataportal.parameters import describe_parameters, return_shape

__all__ = ["FactoryLoader", "ImportFactoryLoader", "CandidateDiscovery"]

logger = logging.getLogger(__name__)


class FactoryLoader(Protocol):
    """Loads the factory type named by an :class:`ObjectFactoryInfo`."""

    def get_factory_type(self, factory: Union[str, type]) -> Optional[type]:
        ...


class ImportFactoryLoader:
    """Factory loader that imports factory types by path.

    Accepts ``"package.module:ClassName"`` or ``"package.module.ClassName"``;
    a type is returned as it is.
    """

    def get_factory_type(self, factory: Union[str, type]) -> Optional[type]:
        if inspect.isclass(factory):
            return factory

        module_path, _, class_name = (
            factory.partition(":") if ":" in factory else factory.rpartition(".")
        )
        if not module_path or not class_name:
            logger.warning("Factory type name %r is not a module path", factory)
            return None

        try:
            module = importlib.import_module(module_path)
        except ImportError:
            logger.warning("Unable to import module %s for factory %r", module_path, factory)
            return None

        factory_type = getattr(module, class_name, None)
        if not inspect.isclass(factory_type):
            logger.warning("Factory %r does not name a class", factory)
            return None
        return factory_type


class CandidateDiscovery:
    """Find the structurally eligible methods for an operation on a type."""

    def __init__(
        self,
        config: Optional[DispatchConfig] = None,
        factory_loader: Optional[FactoryLoader] = None,
    ):
        self._config = config or DispatchConfig()
        self._factory_loader = factory_loader or ImportFactoryLoader()

    def discover(self, target_type: type, kind: OperationKind) -> tuple[CandidateMethod, ...]:
        """Return the candidate methods for ``kind`` on ``target_type``.

        Args:
            target_type: The business object type being operated on.
            kind: The requested operation.

        Returns:
            Candidates in discovery order (most-derived class first). Empty
            if no strategy finds anything.
        """
        factory_info = object_factory_info(target_type)
        if factory_info is not None:
            return self._discover_factory_methods(target_type, kind, factory_info)

        candidates = tuple(self._discover_marked_methods(target_type, kind))
        if candidates:
            logger.debug(
                "Found %d marked %s candidates on %s", len(candidates), kind.value, target_type.__qualname__
            )
            return candidates

        method_name = self.legacy_method_name(kind)
        candidates = tuple(_methods_named(target_type, method_name))
        logger.debug(
            "Found %d legacy %s candidates on %s", len(candidates), method_name, target_type.__qualname__
        )
        return candidates

    def legacy_method_name(self, kind: OperationKind) -> str:
        """Return the legacy method name for an operation, e.g. ``DataPortal_Fetch``."""
        if kind.is_child:
            return f"{self._config.legacy_child_prefix}{kind.stem}"
        return f"{self._config.legacy_prefix}{kind.stem}"

    def _discover_factory_methods(
        self, target_type: type, kind: OperationKind, factory_info: ObjectFactoryInfo
    ) -> tuple[CandidateMethod, ...]:
        factory_type = self._factory_loader.get_factory_type(factory_info.factory)
        if factory_type is None:
            logger.warning(
                "Factory %r for %s could not be loaded", factory_info.factory, target_type.__qualname__
            )
            return ()

        method_name = factory_info.method_name_for(kind)
        candidates = tuple(_methods_named(factory_type, method_name))
        logger.debug(
            "Delegating %s on %s to %s.%s: %d candidates",
            kind.value,
            target_type.__qualname__,
            factory_type.__qualname__,
            method_name,
            len(candidates),
        )
        return candidates

    @staticmethod
    def _discover_marked_methods(target_type: type, kind: OperationKind) -> Iterator[CandidateMethod]:
        # Only the most-derived marked definition of a name is a candidate.
        marked_names: set[str] = set()
        for declaring_type in _class_chain(target_type):
            for name, entry in vars(declaring_type).items():
                if kind in operation_kinds(entry) and name not in marked_names:
                    marked_names.add(name)
                    candidate = make_candidate(declaring_type, name, entry)
                    if candidate is not None:
                        yield candidate


def make_candidate(declaring_type: type, name: str, entry: Any) -> Optional[CandidateMethod]:
    """Describe a class attribute as a candidate method.

    Returns:
        The candidate, or None if the attribute is not a function, static
        method or class method.
    """
    if isinstance(entry, staticmethod):
        func, binding = entry.__func__, "static"
    elif isinstance(entry, classmethod):
        func, binding = entry.__func__, "class"
    elif inspect.isfunction(entry):
        func, binding = entry, "instance"
    else:
        return None

    return CandidateMethod(
        declaring_type,
        name,
        func,
        binding,
        describe_parameters(func, bound=binding != "static"),
        return_shape(func),
    )


def _methods_named(target_type: type, method_name: str) -> Iterator[CandidateMethod]:
    """Yield methods with the given name down the MRO, skipping repeated signatures."""
    seen_signatures: set[str] = set()
    for declaring_type in _class_chain(target_type):
        entry = vars(declaring_type).get(method_name)
        if entry is None:
            continue
        candidate = make_candidate(declaring_type, method_name, entry)
        if candidate is None or candidate.signature in seen_signatures:
            continue
        seen_signatures.add(candidate.signature)
        yield candidate


def _class_chain(target_type: type) -> Iterator[type]:
    """Yield the MRO from the most-derived class to the base, excluding ``object``."""
    for declaring_type in inspect.getmro(target_type):
        if declaring_type is not object:
            yield declaring_type
