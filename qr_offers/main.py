import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import Settings, get_settings
from .errors import ClientInputError, DependencyFailure
from .logic import check_scan, require_identifier, scan_status
from .models import (
    CheckScanRequest,
    CheckScanResponse,
    GenerateQrRequest,
    GenerateQrResponse,
    ScanCountResponse,
)
from .qr import generate_codes
from .storage import CodeStore

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(levelname)s: %(message)s"


# ---------------------------
# Dependencies
# ---------------------------

def get_store(request: Request) -> CodeStore:
    return request.app.state.store


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


# ---------------------------
# Routes
# ---------------------------

router = APIRouter()


@router.get("/health")
def health_check():
    return {"status": "ok"}


@router.post("/generate-qr", response_model=GenerateQrResponse)
def generate_qr(
    payload: GenerateQrRequest,
    store: CodeStore = Depends(get_store),
    settings: Settings = Depends(get_app_settings),
):
    if not payload.phoneNumbers:
        raise ClientInputError("Please provide an array of phone numbers.")

    images = generate_codes(store, settings.base_url, payload.phoneNumbers)
    return GenerateQrResponse(message="QR codes generated successfully!", images=images)


@router.get("/scan-qr", response_model=CheckScanResponse)
def scan_qr(code: Optional[str] = None, store: CodeStore = Depends(get_store)):
    identifier = require_identifier(code, "Invalid QR Code.")
    return check_scan(store, identifier)


@router.post("/check-scan", response_model=CheckScanResponse)
def check_scan_count(payload: CheckScanRequest, store: CodeStore = Depends(get_store)):
    identifier = require_identifier(payload.code, "Invalid request.")
    return check_scan(store, identifier)


@router.get("/scan-counts/{code}", response_model=ScanCountResponse)
def get_scan_count(code: str, store: CodeStore = Depends(get_store)):
    identifier = require_identifier(code, "Invalid request.")
    return scan_status(store, identifier)


# ---------------------------
# Error handlers
# ---------------------------

async def client_input_error_handler(request: Request, exc: ClientInputError):
    return JSONResponse(status_code=400, content={"error": exc.message})


async def validation_error_handler(request: Request, exc: RequestValidationError):
    logger.info("Rejected %s %s: %s", request.method, request.url.path, exc.errors())
    return JSONResponse(status_code=400, content={"error": "Invalid request body."})


async def dependency_failure_handler(request: Request, exc: DependencyFailure):
    logger.error("%s %s failed", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"error": exc.message})


# ---------------------------
# FastAPI App
# ---------------------------

def create_app(settings: Optional[Settings] = None, store: Optional[CodeStore] = None) -> FastAPI:
    """
    Build the service. A ready ``store`` may be passed in; otherwise one is
    loaded from ``settings.scan_counts_file`` at startup, and a corrupt file
    aborts startup with StartupCorruption.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logging.basicConfig(level=settings.log_level, format=LOG_FORMAT)
        if app.state.store is None:
            loaded = CodeStore(settings.scan_counts_file)
            loaded.load()
            app.state.store = loaded
        logger.info("Server running on %s", settings.base_url)
        yield

    app = FastAPI(title="QR Offer Redemption Service", lifespan=lifespan)
    app.state.settings = settings
    app.state.store = store

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type", "Authorization"],
    )

    app.add_exception_handler(ClientInputError, client_input_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(DependencyFailure, dependency_failure_handler)

    app.include_router(router)
    return app


app = create_app()


def run() -> None:
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "qr_offers.main:app",
        host=settings.host,
        port=settings.port,
        reload=False,
    )


if __name__ == "__main__":
    run()
