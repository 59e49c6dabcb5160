"""FastAPI application entrypoint."""

from contextlib import asynccontextmanager
import logging
import uuid

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text

from fuelwise.config import get_settings
from fuelwise.db.session import SessionLocal
from fuelwise.errors import AppError, AuthenticationError, InternalInconsistencyError
from fuelwise.routers import fuel_types, proposals, stations, vehicles

settings = get_settings()
logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
logger = logging.getLogger(__name__)


def _warm_backend_state() -> None:
    """Prime the DB connection pool at process start."""

    try:
        with SessionLocal() as db:
            db.execute(text("SELECT 1"))
    except Exception:
        logger.exception("Backend warm-up failed; continuing without startup pre-warm.")


@asynccontextmanager
async def lifespan(_: FastAPI):
    _warm_backend_state()
    yield


app = FastAPI(title=settings.app_name, version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(stations.router, tags=["stations"])
app.include_router(proposals.router, tags=["proposals"])
app.include_router(vehicles.router, tags=["vehicles"])
app.include_router(fuel_types.router, tags=["fuel-types"])


def _internal_error_response(error_id: str) -> JSONResponse:
    return JSONResponse(
        status_code=500,
        content={"status": "error", "message": "Internal server error", "errors": [], "error_id": error_id},
    )


@app.exception_handler(AppError)
async def handle_app_error(request: Request, exc: AppError) -> JSONResponse:
    if isinstance(exc, InternalInconsistencyError) or not exc.is_operational:
        error_id = uuid.uuid4().hex
        logger.error(
            "request.internal_error error_id=%s path=%s cause=%s",
            error_id,
            request.url.path,
            exc.message,
            exc_info=exc,
        )
        return _internal_error_response(error_id)

    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthenticationError) else None
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "status": "fail",
            "message": exc.message,
            "errors": [{"path": detail.path, "message": detail.message} for detail in exc.errors],
        },
        headers=headers,
    )


@app.exception_handler(RequestValidationError)
async def handle_request_validation_error(_: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {"path": ".".join(str(part) for part in error.get("loc", ())), "message": error.get("msg", "Invalid value")}
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content={"status": "fail", "message": "Invalid request.", "errors": errors},
    )


@app.exception_handler(Exception)
async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    error_id = uuid.uuid4().hex
    logger.exception("request.unhandled_error error_id=%s path=%s", error_id, request.url.path, exc_info=exc)
    return _internal_error_response(error_id)


@app.get("/health")
def health() -> dict[str, str]:
    """Simple health check endpoint."""

    return {"status": "ok"}
