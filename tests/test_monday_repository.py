import datetime as dt
from unittest.mock import AsyncMock, MagicMock

import pytest

from pldash.core.cache import TTLCache
from pldash.repositories.monday_repository import MondayRepository


def _item(item_id, name, group_id, status=None, assignee=None, next_steps=None, due=None):
    columns = []
    if due is not None:
        columns.append({"id": "timeline__1", "text": due})
    if status is not None:
        columns.append({"id": "status", "text": status})
    if assignee is not None:
        columns.append({"id": "multiple_person_mkq8raaf", "text": assignee})
    if next_steps is not None:
        columns.append({"id": "text_mkkv8te7", "text": next_steps})
    titles = {"g1": "ANGE", "g2": "Ops"}
    return {"id": item_id, "name": name, "group": {"id": group_id, "title": titles[group_id]},
            "column_values": columns}


BOARD = {
    "groups": [{"id": "g1", "title": "ANGE"}, {"id": "g2", "title": "Ops"}],
    "items_page": {
        "items": [
            _item("1", "Chase Suited invoice", "g1", status="Working on it", assignee="Ange",
                  next_steps="Email AP", due="2024-03-05 - 2024-03-08"),
            _item("2", "Renew Banner cap", "g1", status="Done"),
            _item("3", "New card", "g1"),
            _item("4", "Payroll", "g2", status="Working on it", assignee="Sam", due="2024-03-05"),
        ]
    },
}


@pytest.fixture
def monday_client():
    fake = MagicMock()
    fake.board_id = "42"
    fake.board = AsyncMock(return_value=BOARD)
    fake.create_item = AsyncMock(return_value={"id": "99", "name": "Call Suited"})
    fake.change_column_value = AsyncMock(return_value={"id": "1"})
    return fake


@pytest.fixture
def repo(monday_client):
    return MondayRepository(monday_client, TTLCache())


@pytest.mark.asyncio
async def test_active_tasks_in_group(repo):
    tasks = await repo.list_tasks("ange")

    assert [t.id for t in tasks] == ["1", "3"]
    first, unset = tasks
    assert first.assignee == "Ange"
    assert first.next_steps == "Email AP"
    assert first.group == "ANGE"
    # missing columns read as N/A
    assert unset.status == "N/A"
    assert unset.due_date == "N/A"


@pytest.mark.asyncio
async def test_explicit_status_filter(repo):
    tasks = await repo.list_tasks(None, statuses=["done"])
    assert [t.name for t in tasks] == ["Renew Banner cap"]


@pytest.mark.asyncio
async def test_unknown_group_is_empty(repo):
    assert await repo.list_tasks("Nobody") == []


@pytest.mark.asyncio
async def test_board_is_cached_until_a_write(repo, monday_client):
    await repo.list_tasks("ANGE")
    await repo.list_tasks("Ops")
    assert monday_client.board.await_count == 1

    created = await repo.create_item("Call Suited", group_id="g1")
    assert created.id == "99"
    await repo.list_tasks("ANGE")
    assert monday_client.board.await_count == 2


@pytest.mark.asyncio
async def test_update_status_by_index_or_label(repo, monday_client):
    assert await repo.update_status("1", 1) == "1"
    monday_client.change_column_value.assert_awaited_with("1", "status", {"index": 1})

    await repo.update_status("1", "Done")
    monday_client.change_column_value.assert_awaited_with("1", "status", {"label": "Done"})


@pytest.mark.asyncio
async def test_update_due_date_sets_single_day_timeline(repo, monday_client):
    await repo.list_tasks("ANGE")

    assert await repo.update_due_date("1", dt.date(2024, 3, 9)) == "1"
    monday_client.change_column_value.assert_awaited_with(
        "1", "timeline__1", {"from": "2024-03-09", "to": "2024-03-09"}
    )
    await repo.list_tasks("ANGE")
    assert monday_client.board.await_count == 2


@pytest.mark.asyncio
async def test_calendar_for_a_day(repo):
    items = await repo.list_calendar(dt.date(2024, 3, 5))
    assert [t.id for t in items] == ["1", "4"]

    mine = await repo.list_calendar(dt.date(2024, 3, 5), assignee="ange")
    assert [t.name for t in mine] == ["Chase Suited invoice"]

    assert await repo.list_calendar(dt.date(2024, 3, 6)) == []
