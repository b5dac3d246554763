import pytest

from dataportal.domain import OperationKind
from dataportal.markers import (
    Inject,
    ObjectFactoryInfo,
    create,
    fetch,
    fetch_child,
    object_factory,
    object_factory_info,
    operation,
    operation_kinds,
)


def test_marker_tags_function_and_returns_it_unchanged():
    def load(self):
        return "loaded"

    decorated = fetch(load)

    assert decorated is load
    assert operation_kinds(load) == {OperationKind.FETCH}


def test_markers_accumulate_on_the_same_function():
    @create
    @fetch
    def load(self):
        pass

    assert operation_kinds(load) == {OperationKind.CREATE, OperationKind.FETCH}


def test_operation_decorator_accepts_several_kinds():
    @operation(OperationKind.INSERT, OperationKind.UPDATE)
    def save(self):
        pass

    assert operation_kinds(save) == {OperationKind.INSERT, OperationKind.UPDATE}


def test_operation_decorator_requires_a_kind():
    with pytest.raises(ValueError, match="At least one operation kind"):
        operation()


@pytest.mark.parametrize("outside", [True, False])
def test_marker_works_with_staticmethod_either_side(outside):
    def load():
        pass

    wrapped = fetch_child(staticmethod(load)) if outside else staticmethod(fetch_child(load))

    assert isinstance(wrapped, staticmethod)
    assert operation_kinds(wrapped) == {OperationKind.FETCH_CHILD}


def test_unmarked_function_has_no_kinds():
    def plain(self):
        pass

    assert operation_kinds(plain) == frozenset()


def test_inject_can_be_called():
    assert Inject() is Inject
    assert repr(Inject) == "Inject"


def test_object_factory_is_inherited():
    @object_factory("myapp.factories:CustomerFactory", fetch_method="load")
    class Customer:
        pass

    class PreferredCustomer(Customer):
        pass

    info = object_factory_info(PreferredCustomer)
    assert info == ObjectFactoryInfo("myapp.factories:CustomerFactory", fetch_method="load")
    assert object_factory_info(object) is None


@pytest.mark.parametrize(
    "kind, method_name",
    [
        (OperationKind.CREATE, "make"),
        (OperationKind.FETCH, "load"),
        (OperationKind.DELETE, "remove"),
        (OperationKind.EXECUTE, "run"),
        (OperationKind.UPDATE, "save"),
        (OperationKind.INSERT, "save"),
        (OperationKind.DELETE_SELF, "save"),
        (OperationKind.FETCH_CHILD, "save"),
    ],
)
def test_factory_method_name_for_each_operation(kind, method_name):
    info = ObjectFactoryInfo(object, "make", "load", "save", "remove", "run")

    assert info.method_name_for(kind) == method_name


@pytest.mark.parametrize(
    "kind, stem, is_child",
    [
        (OperationKind.FETCH, "Fetch", False),
        (OperationKind.DELETE_SELF, "DeleteSelf", False),
        (OperationKind.CREATE_CHILD, "Create", True),
        (OperationKind.DELETE_SELF_CHILD, "DeleteSelf", True),
    ],
)
def test_operation_kind_stem(kind, stem, is_child):
    assert kind.stem == stem
    assert kind.is_child == is_child
