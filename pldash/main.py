import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from pldash.core.cache import TTLCache
from pldash.core.config import settings
from pldash.core.errors import ConfigurationError, DashboardError, SchemaMismatch, UpstreamError
from pldash.schemas.dashboard import error_envelope

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="P&L Dashboard Backend")
app.state.cache = TTLCache(default_ttl=settings.CACHE_TTL_SECONDS)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(UpstreamError)
async def upstream_error_handler(request: Request, exc: UpstreamError):
    logger.error(f"{request.method} {request.url.path} failed upstream: {exc}")
    return JSONResponse(status_code=500, content=error_envelope(f"Failed to fetch from {exc.service}", str(exc)))


@app.exception_handler(ConfigurationError)
async def configuration_error_handler(request: Request, exc: ConfigurationError):
    logger.error(f"{request.method} {request.url.path} is misconfigured: {exc}")
    return JSONResponse(status_code=500, content=error_envelope("Server is not configured", str(exc)))


@app.exception_handler(SchemaMismatch)
async def schema_mismatch_handler(request: Request, exc: SchemaMismatch):
    logger.error(f"{request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=500,
        content=error_envelope(f"Unexpected layout in sheet '{exc.sheet}'", str(exc)),
    )


@app.exception_handler(DashboardError)
async def dashboard_error_handler(request: Request, exc: DashboardError):
    logger.error(f"{request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content=error_envelope("Dashboard error", str(exc)))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content=error_envelope("Invalid request", jsonable_errors(exc)))


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content=error_envelope(str(exc.detail)))


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(status_code=500, content=error_envelope("Internal server error", str(exc)))


def jsonable_errors(exc: RequestValidationError):
    return [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", "")}
        for err in exc.errors()
    ]


from pldash.api.v1.router import api_router
app.include_router(api_router, prefix="/api/v1")


@app.get("/")
def read_root():
    return {"message": "Welcome to the P&L Dashboard API"}


@app.get("/health")
def health():
    return {"status": "ok", "cachedItems": len(app.state.cache)}
