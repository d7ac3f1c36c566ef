import datetime as dt
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from pldash.api.deps import get_monday_repository, get_settings
from pldash.core.config import Settings
from pldash.repositories.monday_repository import MondayRepository
from pldash.schemas.dashboard import (
    CreateItemRequest,
    DueDateUpdateRequest,
    Envelope,
    StatusUpdateRequest,
    success_envelope,
)

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/tasks", response_model=Envelope)
async def list_tasks(
    group: Optional[str] = None,
    status: Optional[List[str]] = Query(None),
    repository: MondayRepository = Depends(get_monday_repository),
    config: Settings = Depends(get_settings),
):
    tasks = await repository.list_tasks(group_name=group or config.MONDAY_GROUP_NAME, statuses=status)
    return success_envelope({"tasks": tasks, "count": len(tasks)})


@router.get("/calendar", response_model=Envelope)
async def list_calendar(
    day: Optional[dt.date] = None,
    assignee: Optional[str] = None,
    repository: MondayRepository = Depends(get_monday_repository),
):
    day = day or dt.date.today()
    items = await repository.list_calendar(day, assignee=assignee)
    return success_envelope({"items": items, "count": len(items), "day": day})


@router.post("/items", response_model=Envelope)
async def create_item(
    payload: CreateItemRequest,
    repository: MondayRepository = Depends(get_monday_repository),
):
    if not payload.itemName or not payload.itemName.strip():
        raise HTTPException(status_code=400, detail="Item name is required")
    item = await repository.create_item(
        payload.itemName.strip(),
        group_id=payload.groupId,
        column_values=payload.columnValues,
    )
    return success_envelope(item)


@router.post("/items/{item_id}/status", response_model=Envelope)
async def update_item_status(
    item_id: str,
    payload: StatusUpdateRequest,
    repository: MondayRepository = Depends(get_monday_repository),
):
    updated_id = await repository.update_status(item_id, payload.status)
    return success_envelope({"itemId": updated_id, "status": payload.status})


@router.post("/items/{item_id}/due-date", response_model=Envelope)
async def update_item_due_date(
    item_id: str,
    payload: DueDateUpdateRequest,
    repository: MondayRepository = Depends(get_monday_repository),
):
    if payload.dueDate is None:
        raise HTTPException(status_code=400, detail="Missing required field: dueDate")
    updated_id = await repository.update_due_date(item_id, payload.dueDate)
    return success_envelope({"itemId": updated_id, "dueDate": payload.dueDate})
