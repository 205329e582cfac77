from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from user_registry.query import UserQuery


@pytest.fixture
def store():
    fake = AsyncMock()
    fake.list_all.return_value = ["everyone"]
    fake.search.return_value = ["matches"]
    return fake


@pytest.mark.asyncio
@pytest.mark.parametrize("term", [None, "", "   \t"])
async def test_blank_term_lists_everything(store, term) -> None:
    assert await UserQuery(store).search(term) == ["everyone"]
    store.search.assert_not_awaited()


@pytest.mark.asyncio
async def test_term_is_delegated_on_every_call(store) -> None:
    query = UserQuery(store)

    await query.search("ann")
    await query.search("ann")

    assert store.search.await_count == 2
    store.search.assert_awaited_with("ann")


@pytest.mark.asyncio
async def test_term_is_passed_through_unstripped(store) -> None:
    await UserQuery(store).search(" Lee")

    store.search.assert_awaited_once_with(" Lee")
