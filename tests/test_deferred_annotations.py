from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Annotated, Optional

import pytest

from dataportal.domain import OperationKind, ReturnShape
from dataportal.invoker import call_method
from dataportal.markers import Inject, fetch
from dataportal.parameters import describe_parameters, return_shape
from dataportal.resolver import MethodResolver
from dataportal.services import MappingServiceProvider

if TYPE_CHECKING:
    from decimal import Decimal


class Repository:
    pass


class Ledger:
    @fetch
    def load(self, key: int, amount: Optional[Decimal] = None):
        return key, amount

    @fetch
    async def fetch_with_repo(self, code: str, repo: Annotated[Repository, Inject]) -> Decimal:
        return code, repo


def test_unresolvable_annotation_is_treated_as_object(caplog):
    with caplog.at_level(logging.WARNING, logger="dataportal.parameters"):
        key, amount = describe_parameters(Ledger.load)

    assert key.declared_type is int
    assert not key.nullable
    assert amount.declared_type is object
    assert amount.nullable
    assert "Ledger.load" in caplog.text


def test_resolvable_annotations_keep_inject_marker():
    code, repo = describe_parameters(Ledger.fetch_with_repo)

    assert code.declared_type is str
    assert not code.injected
    assert repo.declared_type is Repository
    assert repo.injected
    assert return_shape(Ledger.fetch_with_repo) is ReturnShape.DEFERRED_VALUE


@pytest.mark.asyncio
async def test_methods_with_type_checking_imports_resolve_and_run():
    resolver = MethodResolver()
    repo = Repository()

    method = resolver.find_method(Ledger, OperationKind.FETCH, [1, None])
    assert method.name == "load"
    assert await call_method(Ledger(), method, [1, None]) == (1, None)

    method = resolver.find_method(Ledger, OperationKind.FETCH, ["abc"])
    assert method.name == "fetch_with_repo"
    assert await call_method(Ledger(), method, ["abc"], MappingServiceProvider({Repository: repo})) == (
        "abc",
        repo,
    )
