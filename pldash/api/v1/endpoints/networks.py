from fastapi import APIRouter, Depends

from pldash.api.deps import get_dashboard_service
from pldash.schemas.dashboard import Envelope, success_envelope
from pldash.services.dashboard_service import DashboardService

router = APIRouter()


@router.get("/terms", response_model=Envelope)
def read_network_terms(service: DashboardService = Depends(get_dashboard_service)):
    return success_envelope(service.network_terms())


@router.get("/exposure", response_model=Envelope)
def read_network_exposure(service: DashboardService = Depends(get_dashboard_service)):
    return success_envelope(service.network_exposure())
