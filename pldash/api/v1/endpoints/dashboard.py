import datetime as dt
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from pldash.api.deps import get_dashboard_service
from pldash.schemas.dashboard import CampaignParseRequest, Envelope, success_envelope
from pldash.services.campaigns import parse_campaign_name
from pldash.services.dashboard_service import DashboardService

router = APIRouter()
logger = logging.getLogger(__name__)

# Handlers are plain `def` so FastAPI runs the blocking Sheets calls in its threadpool


@router.get("/overview", response_model=Envelope)
def get_overview(
    days: Optional[int] = Query(None, ge=1, le=90),
    exclude_weekends: bool = False,
    service: DashboardService = Depends(get_dashboard_service),
):
    overview = service.overview(days=days, exclude_weekends=exclude_weekends)
    if overview["errors"]:
        logger.warning(f"Overview served with failed sections: {', '.join(overview['errors'])}")
    return success_envelope(overview)


@router.get("/performance", response_model=Envelope)
def get_performance(
    group_by: str = "network",
    sort_by: Optional[str] = None,
    descending: bool = True,
    start: Optional[dt.date] = None,
    end: Optional[dt.date] = None,
    service: DashboardService = Depends(get_dashboard_service),
):
    try:
        report = service.performance_report(group_by, sort_by, descending, start, end)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return success_envelope(report)


@router.get("/financial-resources", response_model=Envelope)
def get_financial_resources(service: DashboardService = Depends(get_dashboard_service)):
    return success_envelope(service.financial_position())


@router.get("/cash-flow/projection", response_model=Envelope)
def get_cash_flow_projection(
    days: Optional[int] = Query(None, ge=1, le=90),
    exclude_weekends: bool = False,
    service: DashboardService = Depends(get_dashboard_service),
):
    return success_envelope(service.cash_flow_projection(days=days, exclude_weekends=exclude_weekends))


@router.get("/media-buyer-spend", response_model=Envelope)
def get_media_buyer_spend(service: DashboardService = Depends(get_dashboard_service)):
    return success_envelope(service.media_buyer_spend())


@router.get("/pl", response_model=Envelope)
def get_profit_and_loss(
    months: Optional[List[str]] = Query(None),
    service: DashboardService = Depends(get_dashboard_service),
):
    return success_envelope(service.pl_summary(months))


@router.post("/campaigns/parse", response_model=Envelope)
def parse_campaigns(payload: CampaignParseRequest):
    return success_envelope([parse_campaign_name(name) for name in payload.names])
