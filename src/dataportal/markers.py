"""Decorators and annotation markers that target types use to declare data portal methods.

Operation decorators tag a function with the operation kinds it handles:

    >>> class Customer:
    ...     @fetch
    ...     def fetch_by_id(self, customer_id: int, repo: Annotated[Repository, Inject]):
    ...         ...

Parameters annotated with :data:`Inject` are supplied by a service provider;
all other parameters are bound to the caller's criteria.

A class may instead delegate every operation to a separate factory type:

    >>> @object_factory("myapp.factories:CustomerFactory")
    ... class Customer:
    ...     pass
"""

from dataclasses import dataclass
from typing import Any, Callable, Optional, Union

from dataportal.domain import OperationKind

__all__ = [
    "Inject",
    "ObjectFactoryInfo",
    "operation",
    "operation_kinds",
    "object_factory",
    "object_factory_info",
    "create",
    "fetch",
    "update",
    "insert",
    "delete",
    "delete_self",
    "execute",
    "create_child",
    "fetch_child",
    "update_child",
    "insert_child",
    "delete_self_child",
]

METADATA_ATTRIBUTE = "__dataportal_metadata__"
FACTORY_ATTRIBUTE = "__dataportal_factory__"


class _InjectMarker:
    """Marks a parameter as supplied by the service provider.

    Use either the marker itself or a call to it inside ``Annotated``:
    ``Annotated[Repository, Inject]`` and ``Annotated[Repository, Inject()]``
    are equivalent.
    """

    def __call__(self) -> "_InjectMarker":
        return self

    def __repr__(self) -> str:
        return "Inject"


Inject = _InjectMarker()


@dataclass(frozen=True)
class ObjectFactoryInfo:
    """Describes the factory type that handles operations for a class.

    Attributes:
        factory: The factory type, or an import path naming it.
        create_method: Name of the factory method handling create operations.
        fetch_method: Name of the factory method handling fetch operations.
        update_method: Name of the factory method handling update, insert and
            delete-self operations, including their child variants.
        delete_method: Name of the factory method handling delete operations.
        execute_method: Name of the factory method handling execute operations.
    """

    factory: Union[str, type]
    create_method: str = "create"
    fetch_method: str = "fetch"
    update_method: str = "update"
    delete_method: str = "delete"
    execute_method: str = "execute"

    def method_name_for(self, kind: OperationKind) -> str:
        if kind is OperationKind.CREATE:
            return self.create_method
        if kind is OperationKind.FETCH:
            return self.fetch_method
        if kind is OperationKind.DELETE:
            return self.delete_method
        if kind is OperationKind.EXECUTE:
            return self.execute_method
        return self.update_method


def set_metadata(target: Any, **kwargs) -> Any:
    """Merge metadata into the data portal metadata of a function or descriptor.

    Metadata lives on the underlying function, so decorators may be applied
    either inside or outside ``staticmethod`` and ``classmethod``.
    """
    func = getattr(target, "__func__", target)
    metadata = dict(getattr(func, METADATA_ATTRIBUTE, {}))
    for key, value in kwargs.items():
        if isinstance(value, frozenset):
            value = metadata.get(key, frozenset()) | value
        metadata[key] = value
    setattr(func, METADATA_ATTRIBUTE, metadata)
    return target


def operation(*kinds: OperationKind) -> Callable:
    """Decorator tagging a method as a handler for the given operation kinds.

    Example:
        @operation(OperationKind.INSERT, OperationKind.UPDATE)
        def save(self, repo: Annotated[Repository, Inject]):
            ...
    """
    if not kinds:
        raise ValueError("At least one operation kind must be given")

    def decorator(target: Any) -> Any:
        return set_metadata(target, operations=frozenset(kinds))

    return decorator


def operation_kinds(target: Any) -> frozenset:
    """Return the operation kinds a function (or static/class method) is tagged with."""
    func = getattr(target, "__func__", target)
    return getattr(func, METADATA_ATTRIBUTE, {}).get("operations", frozenset())


def _marker(kind: OperationKind) -> Callable:
    def decorator(target: Any) -> Any:
        return set_metadata(target, operations=frozenset({kind}))

    decorator.__name__ = kind.name.lower()
    decorator.__doc__ = f"Mark a method as handling the {kind.value} operation."
    return decorator


create = _marker(OperationKind.CREATE)
fetch = _marker(OperationKind.FETCH)
update = _marker(OperationKind.UPDATE)
insert = _marker(OperationKind.INSERT)
delete = _marker(OperationKind.DELETE)
delete_self = _marker(OperationKind.DELETE_SELF)
execute = _marker(OperationKind.EXECUTE)
create_child = _marker(OperationKind.CREATE_CHILD)
fetch_child = _marker(OperationKind.FETCH_CHILD)
update_child = _marker(OperationKind.UPDATE_CHILD)
insert_child = _marker(OperationKind.INSERT_CHILD)
delete_self_child = _marker(OperationKind.DELETE_SELF_CHILD)


def object_factory(
    factory: Union[str, type],
    create_method: str = "create",
    fetch_method: str = "fetch",
    update_method: str = "update",
    delete_method: str = "delete",
    execute_method: str = "execute",
) -> Callable:
    """Class decorator delegating all data portal operations to a factory type.

    Args:
        factory: The factory type, or an import path such as ``"pkg.module:Factory"``.
        create_method: Factory method name for create operations.
        fetch_method: Factory method name for fetch operations.
        update_method: Factory method name for update, insert and delete-self operations.
        delete_method: Factory method name for delete operations.
        execute_method: Factory method name for execute operations.

    Returns:
        A decorator that records an :class:`ObjectFactoryInfo` on the class.
    """
    info = ObjectFactoryInfo(
        factory, create_method, fetch_method, update_method, delete_method, execute_method
    )

    def decorator(cls: type) -> type:
        setattr(cls, FACTORY_ATTRIBUTE, info)
        return cls

    return decorator


def object_factory_info(cls: type) -> Optional[ObjectFactoryInfo]:
    """Return the factory declared on the class or inherited from a base, if any."""
    return getattr(cls, FACTORY_ATTRIBUTE, None)


def is_inject_marker(value: Any) -> bool:
    return value is Inject or isinstance(value, _InjectMarker)
