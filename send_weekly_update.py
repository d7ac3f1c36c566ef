"""
Post the weekly performance report to Slack.

Meant to run from cron, e.g. every Monday at 9am:
    0 9 * * 1 cd /path/to/pl-dashboard && python send_weekly_update.py
"""
import asyncio
import sys

from pldash.core.cache import TTLCache
from pldash.core.config import settings
from pldash.core.errors import DashboardError
from pldash.core.sheets_client import SheetsClient
from pldash.core.slack_client import SlackWebhookClient
from pldash.repositories.sheets_repository import SheetsRepository
from pldash.services.notification_service import build_weekly_performance_message, resolve_webhook, weekly_report_data


async def send_weekly_update() -> None:
    repository = SheetsRepository(SheetsClient.from_settings(settings), TTLCache(settings.CACHE_TTL_SECONDS))
    data = weekly_report_data(repository.load_performance())
    print(f"Weekly report for {data['dateRange']}: revenue {data['totalRevenue']:.2f}, spend {data['totalSpend']:.2f}")

    webhook_url = resolve_webhook(None, settings)
    await SlackWebhookClient().post(webhook_url, build_weekly_performance_message(data))


if __name__ == "__main__":
    print("Generating weekly performance report...")
    try:
        asyncio.run(send_weekly_update())
        print("✅ Report sent to Slack.")
    except DashboardError as e:
        print(f"❌ Weekly report failed: {e}")
        sys.exit(1)
