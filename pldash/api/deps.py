from fastapi import Depends, Request

from pldash.core.cache import TTLCache
from pldash.core.config import Settings, settings
from pldash.core.monday_client import MondayClient
from pldash.core.sheets_client import SheetsClient
from pldash.core.slack_client import SlackWebhookClient
from pldash.repositories.monday_repository import MondayRepository
from pldash.repositories.sheets_repository import SheetsRepository
from pldash.services.dashboard_service import DashboardService


def get_settings() -> Settings:
    return settings


def get_cache(request: Request) -> TTLCache:
    return request.app.state.cache


def get_sheets_client(request: Request, config: Settings = Depends(get_settings)) -> SheetsClient:
    # Building the discovery client is slow, so keep one per process
    client = getattr(request.app.state, "sheets_client", None)
    if client is None:
        client = SheetsClient.from_settings(config)
        request.app.state.sheets_client = client
    return client


def get_sheets_repository(
    client: SheetsClient = Depends(get_sheets_client),
    cache: TTLCache = Depends(get_cache),
    config: Settings = Depends(get_settings),
) -> SheetsRepository:
    return SheetsRepository(client, cache, config.CACHE_TTL_SECONDS)


def get_dashboard_service(
    repository: SheetsRepository = Depends(get_sheets_repository),
    config: Settings = Depends(get_settings),
) -> DashboardService:
    return DashboardService(repository, config)


def get_monday_repository(
    cache: TTLCache = Depends(get_cache),
    config: Settings = Depends(get_settings),
) -> MondayRepository:
    return MondayRepository(MondayClient.from_settings(config), cache, config.CACHE_TTL_SECONDS)


def get_slack_client() -> SlackWebhookClient:
    return SlackWebhookClient()
