from fastapi import APIRouter
from pldash.api.v1.endpoints import dashboard, invoices, monday, networks, notifications

api_router = APIRouter()
api_router.include_router(dashboard.router, prefix="/dashboard", tags=["dashboard"])
api_router.include_router(invoices.router, prefix="/invoices", tags=["invoices"])
api_router.include_router(networks.router, prefix="/networks", tags=["networks"])
api_router.include_router(monday.router, prefix="/monday", tags=["monday"])
api_router.include_router(notifications.router, prefix="/notifications", tags=["notifications"])
