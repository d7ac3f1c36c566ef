import datetime as dt
from typing import Any, Dict, List, Optional, Union

from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel


def _timestamp() -> str:
    return dt.datetime.now(dt.timezone.utc).isoformat()


def success_envelope(data: Any) -> Dict[str, Any]:
    """{success, data, timestamp} with records rendered in camelCase."""
    return {
        "success": True,
        "data": jsonable_encoder(data, by_alias=True),
        "timestamp": _timestamp(),
    }


def error_envelope(error: str, details: Any = None) -> Dict[str, Any]:
    return {
        "success": False,
        "error": error,
        "details": details,
        "timestamp": _timestamp(),
    }


class Envelope(BaseModel):
    success: bool
    data: Any = None
    timestamp: str


class SlackMessageRequest(BaseModel):
    # Presence is checked by the handler so a missing field answers 400
    message: Optional[str] = None
    channel: Optional[str] = None


class NotificationRequest(BaseModel):
    type: Optional[str] = None
    data: Optional[Dict[str, Any]] = None


class CreateItemRequest(BaseModel):
    itemName: Optional[str] = None
    groupId: Optional[str] = None
    columnValues: Optional[Dict[str, Any]] = None


class StatusUpdateRequest(BaseModel):
    # Status index on the board (1 is "Done") or a status label
    status: Union[int, str] = 1


class DueDateUpdateRequest(BaseModel):
    dueDate: Optional[dt.date] = None


class CampaignParseRequest(BaseModel):
    names: List[str] = []
