"""Dataportal method dispatch.

Dataportal finds, at runtime, the method on a business object type that
should handle a lifecycle operation (create, fetch, update, delete, execute
and their child variants) for a given list of criteria values, and calls it.
Method parameters may freely mix caller criteria with services supplied by a
dependency-injection provider, and methods may be synchronous or coroutines.

Key Features:
    - Declarative operation markers using decorators
    - Service injection using ``Annotated[T, Inject]`` type hints
    - Overload selection by scoring criteria against declared parameter types
    - Legacy ``DataPortal_<Operation>`` / ``Child_<Operation>`` method names
    - Delegation of all operations to a separate factory type
    - Uniform awaitable invocation of sync and async methods

Basic Usage:
    >>> from dataportal.markers import fetch, Inject
    >>> from dataportal.domain import OperationKind
    >>> from dataportal.resolver import find_method
    >>> from dataportal.invoker import call_method
    >>>
    >>> class Customer:
    ...     @fetch
    ...     async def fetch_by_id(self, customer_id: int, repo: Annotated[Repository, Inject]):
    ...         self.data = await repo.load(customer_id)
    >>>
    >>> method = find_method(Customer, OperationKind.FETCH, [42])
    >>> await call_method(Customer(), method, [42], services)

The package consists of several core modules:
    - markers: Operation decorators, the Inject marker and factory delegation
    - discovery: Candidate method discovery on target types
    - parameters: Signature introspection and parameter classification
    - scoring: Candidate scoring and disambiguation
    - resolver: Cached resolution of a single method
    - invoker: Argument assembly and invocation
    - services: Service provider protocol and ambient scope
    - config: Dispatch settings
    - domain: Core domain models (OperationKind, CandidateMethod, ...)
    - errors: Resolution and invocation exceptions
"""
