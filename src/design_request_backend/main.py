from __future__ import annotations

import logging
import secrets
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import Body, Depends, FastAPI, Header, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .configuration import get_settings
from .errors import AuthorizationError, PersistenceError
from .intake import FAILURE_MESSAGE, IntakeService
from .models import DesignRequest

settings = get_settings()

logging.basicConfig(
    level=getattr(logging, str(settings.logging.level).upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    intake_service.shutdown()


app = FastAPI(title="Design Request API", version="0.1.0", lifespan=lifespan)


def cors_options(allowed_origins) -> dict:
    """Credentials are only allowed when every origin is listed explicitly."""
    origins = list(allowed_origins)
    return {
        "allow_origins": origins,
        "allow_credentials": bool(origins) and "*" not in origins,
        "allow_methods": ["*"],
        "allow_headers": ["*"],
    }


app.add_middleware(CORSMiddleware, **cors_options(settings.cors.allowed_origins))

intake_service = IntakeService.from_settings(settings)


def get_intake_service() -> IntakeService:
    return intake_service


def require_admin_key(x_api_key: Optional[str] = Header(None)) -> None:
    expected = settings.admin.api_key
    if not expected or not x_api_key or not secrets.compare_digest(x_api_key.encode(), str(expected).encode()):
        raise AuthorizationError("Invalid or missing admin API key")


@app.exception_handler(AuthorizationError)
async def authorization_error_handler(request: Request, exc: AuthorizationError) -> JSONResponse:
    logger.warning(f"Unauthorized access to {request.url.path}")
    return JSONResponse(status_code=401, content={"error": "Unauthorized"})


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.warning(f"Malformed request body on {request.url.path}: {exc.errors()}")
    return JSONResponse(status_code=400, content={"success": False, "error": "Request body must be a JSON object"})


@app.exception_handler(Exception)
async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(status_code=500, content={"success": False, "error": "An unexpected error occurred"})


@app.get("/healthz")
def healthcheck() -> Dict[str, str]:
    return {"status": "ok"}


@app.post("/api/submit-request")
def submit_request(
    fields: Dict[str, Any] = Body(...),
    service: IntakeService = Depends(get_intake_service),
) -> JSONResponse:
    result = service.submit(fields)
    if result.success:
        return JSONResponse(content={"success": True, "requestId": result.request_id, "message": result.message})
    if result.violations:
        return JSONResponse(
            status_code=400,
            content={"success": False, "error": result.message, "violations": result.violations},
        )
    return JSONResponse(status_code=500, content={"success": False, "error": FAILURE_MESSAGE})


@app.get("/api/requests", response_model=list[DesignRequest], dependencies=[Depends(require_admin_key)])
def list_requests(service: IntakeService = Depends(get_intake_service)):
    try:
        return service.list_requests()
    except PersistenceError as exc:
        logger.error(f"Error fetching requests: {exc}", exc_info=True)
        return JSONResponse(status_code=500, content={"error": "Failed to fetch requests"})
