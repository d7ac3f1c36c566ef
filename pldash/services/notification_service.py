import datetime as dt
import logging
from typing import Any, Callable, Dict, List, Optional, Sequence

from pldash.core.config import Settings
from pldash.core.errors import ConfigurationError
from pldash.models.performance import AggregateRow, PerformanceRow
from pldash.services.aggregation import aggregate, by_media_buyer, by_offer, filter_by_date_range, summarize

logger = logging.getLogger(__name__)

SLACK_WEBHOOK_PREFIX = "https://hooks.slack.com/"
DAILY_UPDATES_CHANNEL = "daily-updates-mgmt"
BOT_USERNAME = "Daily Update Bot"
BOT_ICON = ":robot_face:"
FOOTER = "Sent from the PL Dashboard"
RANKED_LIMIT = 5


def format_currency(amount: Optional[float]) -> str:
    amount = amount or 0.0
    sign = "-" if amount < 0 else ""
    return f"{sign}${abs(amount):,.2f}"


def _roi_text(revenue: Optional[float], spend: Optional[float]) -> str:
    if not spend:
        return "0.00"
    revenue = revenue or 0.0
    return f"{(revenue - spend) / spend * 100:.2f}"


def _section(text: str) -> Dict[str, Any]:
    return {"type": "section", "text": {"type": "mrkdwn", "text": text}}


def _fields(*texts: str) -> Dict[str, Any]:
    return {"type": "section", "fields": [{"type": "mrkdwn", "text": t} for t in texts]}


def _header(text: str) -> Dict[str, Any]:
    return {"type": "header", "text": {"type": "plain_text", "text": text, "emoji": True}}


def _divider() -> Dict[str, Any]:
    return {"type": "divider"}


def _footer() -> Dict[str, Any]:
    return {"type": "context", "elements": [{"type": "mrkdwn", "text": FOOTER}]}


def _generated_on(now: Optional[dt.datetime] = None) -> str:
    now = now or dt.datetime.now()
    return f"{now:%B} {now.day}, {now.year}"


def _totals_blocks(data: Dict[str, Any]) -> List[Dict[str, Any]]:
    revenue = data.get("totalRevenue") or 0
    spend = data.get("totalSpend") or 0
    return [
        _fields(
            f"*Total Revenue:*\n:large_green_square: {format_currency(revenue)}",
            f"*Total Ad Spend:*\n:large_red_square: {format_currency(spend)}",
        ),
        _fields(
            f"*Total Profit:*\n:large_green_square: {format_currency(data.get('totalProfit'))}",
            f"*Overall ROI:*\n:chart_with_upwards_trend: {_roi_text(revenue, spend)}%",
        ),
    ]


def _offer_line(index: int, entry: Dict[str, Any]) -> str:
    return (
        f"*{index}. {entry.get('name') or 'Unknown Offer'}*\n"
        f"Revenue: {format_currency(entry.get('revenue'))} | "
        f"Profit: {format_currency(entry.get('profit'))} | ROI: {entry.get('roi') or 0}%"
    )


def _buyer_line(index: int, entry: Dict[str, Any]) -> str:
    return (
        f"*{index}. {entry.get('name') or 'Unknown Buyer'}*\n"
        f"Spend: {format_currency(entry.get('spend'))} | "
        f"Profit: {format_currency(entry.get('profit'))} | ROI: {entry.get('roi') or 0}%"
    )


def _ranked_blocks(
    title: str,
    entries: Sequence[Dict[str, Any]],
    line: Callable[[int, Dict[str, Any]], str],
) -> List[Dict[str, Any]]:
    if not entries:
        return []
    blocks = [_divider(), _section(title)]
    for index, entry in enumerate(entries[:RANKED_LIMIT], start=1):
        blocks.append(_section(line(index, entry)))
    return blocks


def build_text_message(message: str, channel: str) -> Dict[str, Any]:
    return {
        "text": message,
        "channel": channel,
        "username": BOT_USERNAME,
        "icon_emoji": BOT_ICON,
    }


def _performance_report(title: str, intro: str, data: Dict[str, Any], sections) -> Dict[str, Any]:
    blocks = [
        _header(title),
        _section(f"{intro}\n*Generated on:* {_generated_on()}"),
        _divider(),
        *_totals_blocks(data),
    ]
    for heading, key, line in sections:
        blocks.extend(_ranked_blocks(heading, data.get(key) or [], line))
    blocks.extend([_divider(), _footer()])
    return {"text": title, "blocks": blocks}


def build_weekly_performance_message(data: Dict[str, Any]) -> Dict[str, Any]:
    """Weekly update payload: totals plus the best and worst offers and buyers."""
    return _performance_report(
        "📊 Weekly Performance Update 📊",
        f"*Weekly performance update for {data.get('dateRange') or 'the past week'}*",
        data,
        [
            ("*Top Performing Offers* :rocket:", "topOffers", _offer_line),
            ("*Underperforming Offers* :warning:", "underperformingOffers", _offer_line),
            ("*Top Media Buyers* :trophy:", "topBuyers", _buyer_line),
            ("*Struggling Media Buyers* :sos:", "strugglingBuyers", _buyer_line),
        ],
    )


def build_offer_performance_message(data: Dict[str, Any]) -> Dict[str, Any]:
    return _performance_report(
        "📊 Offer Performance Report 📊",
        f"*Offer performance report for {data.get('dateRange') or 'the selected period'}*",
        data,
        [
            ("*Top Performing Offers* :rocket:", "topOffers", _offer_line),
            ("*Underperforming Offers* :warning:", "underperformingOffers", _offer_line),
            ("*Top Media Buyers* :trophy:", "topMediaBuyers", _buyer_line),
            ("*Underperforming Media Buyers* :warning:", "underperformingMediaBuyers", _buyer_line),
        ],
    )


def build_break_even_message(data: Dict[str, Any]) -> Dict[str, Any]:
    now = dt.datetime.now()
    title = "🎉 Break-Even Alert! 🎉"
    return {
        "text": title,
        "blocks": [
            _header(title),
            _section(
                "*The business has reached the break-even point for this month!*\n"
                f"*Date:* {_generated_on(now)} at {now:%I:%M %p}"
            ),
            _divider(),
            _fields(
                f"*Current Profit:*\n:large_green_square: {format_currency(data.get('profit'))}",
                f"*Break-Even Point:*\n:large_red_square: {format_currency(data.get('expenses'))}",
            ),
            _fields(
                f"*Total Revenue:*\n:large_green_square: {format_currency(data.get('revenue'))}",
                f"*Total Ad Spend:*\n:large_red_square: {format_currency(data.get('adSpend'))}",
            ),
            _fields(
                f"*Media Buyer Commission:*\n:large_red_square: {format_currency(data.get('commissions'))}",
                f"*Projected Month-End:*\n:large_green_square: {format_currency(data.get('projectedProfit'))}",
            ),
            _divider(),
            _footer(),
        ],
    }


MESSAGE_BUILDERS = {
    "break-even": build_break_even_message,
    "weekly-performance": build_weekly_performance_message,
    "offer-performance": build_offer_performance_message,
}


def build_notification(notification_type: str, data: Dict[str, Any]) -> Dict[str, Any]:
    """Pick the builder for a notification type. Unknown types raise ValueError."""
    builder = MESSAGE_BUILDERS.get((notification_type or "").lower())
    if builder is None:
        raise ValueError(f"Invalid notification type: {notification_type}")
    return builder(data)


def _ranking_entry(row: AggregateRow) -> Dict[str, Any]:
    return {
        "name": row.key,
        "spend": round(row.spend, 2),
        "revenue": round(row.revenue, 2),
        "profit": round(row.margin, 2),
        "roi": round(row.roi, 1),
    }


def _split_rankings(rows: List[AggregateRow]):
    ranked = sorted(rows, key=lambda r: r.margin, reverse=True)
    winners = [_ranking_entry(r) for r in ranked if r.margin > 0]
    losers = [_ranking_entry(r) for r in reversed(ranked) if r.margin < 0]
    return winners[:RANKED_LIMIT], losers[:RANKED_LIMIT]


def last_week_range(as_of: dt.date):
    """Yesterday and the six days before it."""
    end = as_of - dt.timedelta(days=1)
    return end - dt.timedelta(days=6), end


def weekly_report_data(records: Sequence[PerformanceRow], as_of: Optional[dt.date] = None) -> Dict[str, Any]:
    """Build the weekly-performance payload from raw performance rows."""
    start, end = last_week_range(as_of or dt.date.today())
    week = filter_by_date_range(records, start, end)
    totals = summarize(week)
    top_offers, weak_offers = _split_rankings(aggregate(week, by_offer))
    top_buyers, weak_buyers = _split_rankings(aggregate(week, by_media_buyer))
    logger.info(f"Weekly report covers {len(week)} rows from {start} to {end}")

    return {
        "topOffers": top_offers,
        "underperformingOffers": weak_offers,
        "topBuyers": top_buyers,
        "strugglingBuyers": weak_buyers,
        "totalProfit": totals.margin,
        "totalRevenue": totals.revenue,
        "totalSpend": totals.spend,
        "dateRange": f"{start:%b} {start.day}, {start.year} - {end:%b} {end.day}, {end.year}",
    }


def resolve_webhook(channel: Optional[str], config: Settings) -> str:
    """daily-updates-mgmt posts through its own webhook; every other channel uses the default."""
    if channel == DAILY_UPDATES_CHANNEL:
        name, url = "DAILY_UPDATES_WEBHOOK_URL", config.DAILY_UPDATES_WEBHOOK_URL
    else:
        name, url = "SLACK_WEBHOOK_URL", config.SLACK_WEBHOOK_URL
    if not url:
        raise ConfigurationError(name)
    if not url.startswith(SLACK_WEBHOOK_PREFIX):
        raise ConfigurationError(name, f"must start with {SLACK_WEBHOOK_PREFIX}")
    return url
