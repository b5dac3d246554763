from typing import Annotated, Optional

import pytest

from dataportal.config import DispatchConfig
from dataportal.domain import OperationKind
from dataportal.errors import (
    AmbiguousMatchError,
    MethodNotFoundError,
    ParameterMismatchError,
    ResolutionError,
)
from dataportal.markers import Inject, create, fetch, object_factory
from dataportal.resolver import MethodResolver, find_method


class Repository:
    pass


class Widget:
    @fetch
    def fetch_by_id(self, widget_id: int):
        pass

    @fetch
    def fetch_by_code(self, code: str):
        pass


@pytest.fixture
def resolver():
    return MethodResolver()


def test_single_marked_method_with_no_criteria(resolver):
    class Order:
        @create
        def create(self):
            pass

    assert resolver.find_method(Order, OperationKind.CREATE).name == "create"
    assert resolver.find_method(Order, OperationKind.CREATE, []).name == "create"


def test_instances_resolve_like_their_type(resolver):
    assert resolver.find_method(Widget(), OperationKind.FETCH, [1]).name == "fetch_by_id"


def test_overloads_are_chosen_by_criteria_type(resolver):
    assert resolver.find_method(Widget, OperationKind.FETCH, [42]).name == "fetch_by_id"
    assert resolver.find_method(Widget, OperationKind.FETCH, ["abc"]).name == "fetch_by_code"


def test_none_against_primitive_overloads_is_a_mismatch(resolver):
    with pytest.raises(ParameterMismatchError, match=r"Widget\.\[Fetch\]") as info:
        resolver.find_method(Widget, OperationKind.FETCH, [None])

    assert info.value.target_type is Widget
    assert info.value.kind is OperationKind.FETCH


def test_exact_match_outranks_assignable_match(resolver):
    class Animal:
        pass

    class Dog(Animal):
        pass

    class Kennel:
        @fetch
        def fetch_animal(self, animal: Animal):
            pass

        @fetch
        def fetch_dog(self, dog: Dog):
            pass

    assert resolver.find_method(Kennel, OperationKind.FETCH, [Dog()]).name == "fetch_dog"
    assert resolver.find_method(Kennel, OperationKind.FETCH, [Animal()]).name == "fetch_animal"


def test_injected_candidate_wins_tie_with_empty_criteria(resolver):
    class Order:
        @create
        def create_plain(self):
            pass

        @create
        def create_with_repo(self, repo: Annotated[Repository, Inject]):
            pass

    assert resolver.find_method(Order, OperationKind.CREATE, []).name == "create_with_repo"


def test_identical_shapes_are_ambiguous(resolver):
    class Order:
        @create
        def create_a(self, template: str, repo: Annotated[Repository, Inject]):
            pass

        @create
        def create_b(self, repo: Annotated[Repository, Inject], template: str):
            pass

    with pytest.raises(AmbiguousMatchError):
        resolver.find_method(Order, OperationKind.CREATE, ["basic"])


def test_missing_method_raises_not_found(resolver):
    with pytest.raises(MethodNotFoundError, match=r"Widget\.\[Delete\] method not found"):
        resolver.find_method(Widget, OperationKind.DELETE)


def test_resolution_errors_share_a_base_class(resolver):
    with pytest.raises(ResolutionError):
        resolver.find_method(Widget, OperationKind.DELETE)


def test_wrong_arity_raises_mismatch(resolver):
    with pytest.raises(ParameterMismatchError, match="2 criteria"):
        resolver.find_method(Widget, OperationKind.FETCH, [1, 2])


def test_variadic_fallback(resolver):
    class Report:
        @fetch
        def fetch_one(self, report_id: int):
            pass

        @fetch
        def fetch_any(self, *criteria):
            pass

    assert resolver.find_method(Report, OperationKind.FETCH, [1]).name == "fetch_one"
    assert resolver.find_method(Report, OperationKind.FETCH, ["a", 2]).name == "fetch_any"


def test_typed_star_args_is_not_a_catch_all(resolver):
    class Report:
        @fetch
        def fetch_many(self, *ids: int):
            pass

    with pytest.raises(ParameterMismatchError):
        resolver.find_method(Report, OperationKind.FETCH, ["a", "b"])


def test_optional_injected_parameter_is_not_a_criterion(resolver):
    class Account:
        @fetch
        def fetch(self, key: int, repo: Optional[Annotated[Repository, Inject]]):
            pass

    method = resolver.find_method(Account, OperationKind.FETCH, [1])

    assert [p.name for p in method.injected_parameters] == ["repo"]


def test_remarked_override_replaces_base_method(resolver):
    class Base:
        @fetch
        def fetch(self, key: int):
            pass

    class Derived(Base):
        @fetch
        def fetch(self, key: int):
            pass

    method = resolver.find_method(Derived, OperationKind.FETCH, [1])

    assert method.declaring_type is Derived


def test_legacy_method_is_resolved(resolver):
    class Order:
        def DataPortal_Fetch(self, order_id: int):
            pass

    assert resolver.find_method(Order, OperationKind.FETCH, [5]).name == "DataPortal_Fetch"


def test_factory_methods_are_resolved(resolver):
    class OrderFactory:
        def fetch(self, order_id: int, repo: Annotated[Repository, Inject]):
            pass

    @object_factory(OrderFactory)
    class Order:
        pass

    method = resolver.find_method(Order, OperationKind.FETCH, [5])

    assert method.declaring_type is OrderFactory


def test_none_target_is_rejected(resolver):
    with pytest.raises(TypeError):
        resolver.find_method(None, OperationKind.FETCH)


def test_candidates_are_cached(resolver):
    first = resolver.candidates(Widget, OperationKind.FETCH)

    assert resolver.candidates(Widget, OperationKind.FETCH) is first

    resolver.clear_cache()
    assert resolver.candidates(Widget, OperationKind.FETCH) is not first


def test_cache_can_be_disabled():
    resolver = MethodResolver(DispatchConfig(cache_candidates=False))

    first = resolver.candidates(Widget, OperationKind.FETCH)

    assert resolver.candidates(Widget, OperationKind.FETCH) is not first
    assert resolver.candidates(Widget, OperationKind.FETCH) == first


def test_module_level_find_method():
    assert find_method(Widget, OperationKind.FETCH, ["abc"]).name == "fetch_by_code"
