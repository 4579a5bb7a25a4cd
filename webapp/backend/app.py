"""
FastAPI application exposing the treatment generator over HTTP.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from anyio import to_thread
from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from plant_treatment import __version__
from plant_treatment.errors import ExternalServiceError, InvalidInputError, TreatmentError
from plant_treatment.generation import GeminiClient
from plant_treatment.utils import configure_logging

from .deps import Settings, build_gemini_client, get_gemini_client, get_settings
from .schemas import ErrorResponse, TreatmentRequest, TreatmentResponse
from .services import run_treatment

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health")
async def health_check(request: Request) -> dict:
    settings: Settings = request.app.state.settings
    return {
        "status": "ok",
        "llm_model": settings.llm_model_name,
        "temperature": settings.temperature,
        "credential_configured": bool(settings.gemini_api_key),
    }


@router.post(
    "/api/treatment",
    response_model=TreatmentResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def treatment(
    payload: TreatmentRequest,
    client: GeminiClient = Depends(get_gemini_client),
) -> TreatmentResponse:
    try:
        result = await to_thread.run_sync(run_treatment, payload.disease, client)
    except TreatmentError:
        raise
    except Exception as exc:  # noqa: BLE001
        logger.exception("Gemini client call failed")
        raise ExternalServiceError(str(exc)) from exc
    return TreatmentResponse(**result)


async def _treatment_error_handler(request: Request, exc: TreatmentError) -> JSONResponse:
    if exc.details:
        logger.error(f"{exc.error} {exc.details}")
    else:
        logger.error(exc.error)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    # An unreadable body or a non-string disease is reported like a missing one.
    logger.debug(f"Rejected request body: {exc.errors()}")
    return JSONResponse(status_code=400, content=InvalidInputError().to_dict())


@asynccontextmanager
async def _lifespan(app: FastAPI):
    if app.state.gemini_client is None:
        # Refuse to start serving without a credential.
        app.state.gemini_client = build_gemini_client(app.state.settings)
    logger.info(f"Treatment API ready (model={app.state.gemini_client.model_name})")
    yield


def create_app(settings: Optional[Settings] = None, client: Optional[GeminiClient] = None) -> FastAPI:
    app = FastAPI(
        title="Plant Treatment API",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=_lifespan,
    )
    if settings is None:
        # Launched straight by an ASGI server, outside the CLI.
        configure_logging()
        settings = get_settings()
    app.state.settings = settings
    app.state.gemini_client = client

    # Any frontend may call the relay.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(TreatmentError, _treatment_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.include_router(router)
    return app


app = create_app()
