import datetime as dt
import logging
from typing import Any, Dict, Iterable, List, Optional, Union

from pldash.core.cache import TTLCache
from pldash.core.monday_client import MondayClient
from pldash.models.monday import MISSING, CreatedItem, MondayTask

logger = logging.getLogger(__name__)

# Column ids on the task board
COLUMN_IDS = {
    "status": "status",
    "assignee": "multiple_person_mkq8raaf",
    "due_date": "timeline__1",
    "next_steps": "text_mkkv8te7",
}
ACTIVE_STATUSES = ("working on it",)
UNSET_STATUSES = ("", MISSING.lower(), "set status", "no status")


def column_text(item: Dict[str, Any], column_id: str) -> str:
    """Text of a column value, or "N/A" when the column is missing or empty."""
    for column in item.get("column_values") or []:
        if column.get("id") == column_id:
            return (column.get("text") or "").strip() or MISSING
    return MISSING


def is_active(task: MondayTask) -> bool:
    status = task.status.strip().lower()
    return status in UNSET_STATUSES or any(s in status for s in ACTIVE_STATUSES)


def _board_tasks(board: Dict[str, Any], group_id: Optional[str] = None) -> List[MondayTask]:
    tasks = []
    for item in (board.get("items_page") or {}).get("items") or []:
        group = item.get("group") or {}
        if group_id and group.get("id") != group_id:
            continue
        tasks.append(
            MondayTask(
                id=str(item.get("id")),
                name=item.get("name") or MISSING,
                group=group.get("title") or MISSING,
                **{field: column_text(item, column_id) for field, column_id in COLUMN_IDS.items()},
            )
        )
    return tasks


class MondayRepository:
    def __init__(self, client: MondayClient, cache: TTLCache, ttl: Optional[float] = None):
        self.client = client
        self.cache = cache
        self.ttl = ttl

    @property
    def _board_key(self) -> str:
        return f"monday:board:{self.client.board_id}"

    async def _board(self) -> Dict[str, Any]:
        board = self.cache.get(self._board_key)
        if board is None:
            board = await self.client.board()
            self.cache.put(self._board_key, board, self.ttl)
        return board

    async def list_tasks(
        self,
        group_name: Optional[str] = None,
        statuses: Optional[Iterable[str]] = None,
    ) -> List[MondayTask]:
        """
        Tasks on the board, optionally limited to one group (matched by title).

        With no `statuses`, only active tasks are returned: those being worked
        on or without a status yet.
        """
        board = await self._board()

        group_id = None
        if group_name:
            groups = board.get("groups") or []
            match = next((g for g in groups if (g.get("title") or "").lower() == group_name.lower()), None)
            if match is None:
                logger.warning(f"Group '{group_name}' not found on board {self.client.board_id}")
                return []
            group_id = match.get("id")

        tasks = _board_tasks(board, group_id)
        if statuses is None:
            selected = [t for t in tasks if is_active(t)]
        else:
            wanted = {s.lower() for s in statuses}
            selected = [t for t in tasks if t.status.lower() in wanted]
        logger.info(f"Monday.com: {len(selected)} of {len(tasks)} tasks selected")
        return selected

    async def list_calendar(self, day: dt.date, assignee: Optional[str] = None) -> List[MondayTask]:
        """Tasks whose timeline starts or ends on `day`, optionally only those assigned to `assignee`."""
        board = await self._board()
        tasks = _board_tasks(board)
        wanted_day = day.isoformat()

        selected = [t for t in tasks if wanted_day in t.due_date]
        if assignee:
            selected = [t for t in selected if assignee.lower() in t.assignee.lower()]
        logger.info(f"Monday.com calendar {wanted_day}: {len(selected)} of {len(tasks)} items")
        return selected

    async def create_item(
        self,
        name: str,
        group_id: Optional[str] = None,
        column_values: Optional[Dict[str, Any]] = None,
    ) -> CreatedItem:
        created = await self.client.create_item(name, group_id=group_id, column_values=column_values)
        self.cache.delete(self._board_key)
        logger.info(f"Created Monday.com item {created.get('id')}: {name}")
        return CreatedItem(id=str(created.get("id")), name=created.get("name"))

    async def update_status(self, item_id: str, status: Union[int, str]) -> str:
        """Set the status column by index (int) or by label (str)."""
        value = {"index": status} if isinstance(status, int) else {"label": status}
        changed = await self.client.change_column_value(item_id, COLUMN_IDS["status"], value)
        self.cache.delete(self._board_key)
        logger.info(f"Updated Monday.com item {item_id} status to {status!r}")
        return str(changed.get("id") or item_id)

    async def update_due_date(self, item_id: str, due_date: dt.date) -> str:
        """Set the timeline column to a single day."""
        day = due_date.isoformat()
        changed = await self.client.change_column_value(item_id, COLUMN_IDS["due_date"], {"from": day, "to": day})
        self.cache.delete(self._board_key)
        logger.info(f"Updated Monday.com item {item_id} due date to {day}")
        return str(changed.get("id") or item_id)
