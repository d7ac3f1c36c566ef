import json
import logging
from typing import Any, Dict, List, Optional

import httpx

from pldash.core.config import Settings, settings
from pldash.core.errors import UpstreamError

logger = logging.getLogger(__name__)

SERVICE = "Monday.com"

BOARD_ITEMS_QUERY = """
query ($boardId: [ID!]) {
  boards(ids: $boardId) {
    groups { id title }
    items_page(limit: 500) {
      items {
        id
        name
        group { id title }
        column_values { id type value text }
      }
    }
  }
}
"""

CREATE_ITEM_MUTATION = """
mutation ($boardId: ID!, $groupId: String, $itemName: String!, $columnValues: JSON) {
  create_item(board_id: $boardId, group_id: $groupId, item_name: $itemName, column_values: $columnValues) {
    id
    name
  }
}
"""

CHANGE_COLUMN_MUTATION = """
mutation ($boardId: ID!, $itemId: ID!, $columnId: String!, $value: JSON!) {
  change_column_value(board_id: $boardId, item_id: $itemId, column_id: $columnId, value: $value) {
    id
  }
}
"""


class MondayClient:
    """GraphQL client for a single Monday.com board."""

    def __init__(
        self,
        token: str,
        board_id: str,
        url: str = "https://api.monday.com/v2",
        api_version: str = "2023-10",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.board_id = board_id
        self.url = url
        self._headers = {
            "Authorization": token,
            "Content-Type": "application/json",
            "API-Version": api_version,
        }
        self._transport = transport

    @classmethod
    def from_settings(cls, config: Settings = settings) -> "MondayClient":
        config.require("MONDAY_API_TOKEN", "MONDAY_BOARD_ID")
        return cls(
            token=config.MONDAY_API_TOKEN,
            board_id=config.MONDAY_BOARD_ID,
            url=config.MONDAY_API_URL,
            api_version=config.MONDAY_API_VERSION,
        )

    async def execute(self, query: str, variables: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        payload = {"query": query, "variables": variables or {}}
        try:
            async with httpx.AsyncClient(timeout=30.0, transport=self._transport) as client:
                resp = await client.post(self.url, headers=self._headers, json=payload)
        except httpx.HTTPError as e:
            logger.error(f"Monday.com request failed: {e}")
            raise UpstreamError(SERVICE, str(e)) from e

        if resp.status_code != 200:
            logger.error(f"Monday.com API error: {resp.status_code} - {resp.text}")
            raise UpstreamError(SERVICE, resp.text or "request failed", resp.status_code)

        try:
            body = resp.json()
        except ValueError as e:
            raise UpstreamError(SERVICE, f"malformed JSON response: {e}", resp.status_code) from e
        if not isinstance(body, dict):
            raise UpstreamError(SERVICE, f"unexpected response body: {str(body)[:200]}", resp.status_code)

        if body.get("errors"):
            logger.error(f"Monday.com API errors: {body['errors']}")
            messages = "; ".join(
                str(err.get("message", err) if isinstance(err, dict) else err) for err in body["errors"]
            )
            raise UpstreamError(SERVICE, messages, resp.status_code)
        return body.get("data") or {}

    async def board(self) -> Dict[str, Any]:
        data = await self.execute(BOARD_ITEMS_QUERY, {"boardId": [self.board_id]})
        boards: List[Dict[str, Any]] = data.get("boards") or []
        if not boards:
            raise UpstreamError(SERVICE, f"board {self.board_id} not found")
        return boards[0]

    async def create_item(
        self,
        item_name: str,
        group_id: Optional[str] = None,
        column_values: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        data = await self.execute(
            CREATE_ITEM_MUTATION,
            {
                "boardId": self.board_id,
                "groupId": group_id,
                "itemName": item_name,
                "columnValues": json.dumps(column_values) if column_values else None,
            },
        )
        return data.get("create_item") or {}

    async def change_column_value(self, item_id: str, column_id: str, value: Dict[str, Any]) -> Dict[str, Any]:
        data = await self.execute(
            CHANGE_COLUMN_MUTATION,
            {
                "boardId": self.board_id,
                "itemId": str(item_id),
                "columnId": column_id,
                "value": json.dumps(value),
            },
        )
        return data.get("change_column_value") or {}
