from typing import Optional

from pldash.models.base import Record

MISSING = "N/A"


class MondayTask(Record):
    id: str
    name: str
    group: str = MISSING
    status: str = MISSING
    assignee: str = MISSING
    due_date: str = MISSING
    next_steps: str = MISSING


class CreatedItem(Record):
    id: str
    name: Optional[str] = None
