import logging

from fastapi import APIRouter, Depends

from pldash.api.deps import get_dashboard_service
from pldash.schemas.dashboard import Envelope, success_envelope
from pldash.services.dashboard_service import DashboardService

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("", response_model=Envelope)
def read_invoices(service: DashboardService = Depends(get_dashboard_service)):
    result = service.invoices()
    logger.info(f"Returning {result['count']} invoices")
    return success_envelope(result)
