"""FastAPI application exposing imported invoices."""

import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any, Dict

from fastapi import Depends, FastAPI, Request, status
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from invimport.config import get_config
from invimport.database import Database
from invimport.dependencies import AppResources, get_query_service
from invimport.exceptions import InvoiceImportError
from invimport.models import ErrorResponse, InvoiceListResponse
from invimport.services.query_service import InvoiceQueryService

logger = logging.getLogger(__name__)


def get_allowed_origins() -> list[str]:
    """Get allowed CORS origins from environment."""
    origins = os.getenv("ALLOWED_ORIGINS", "http://localhost:5173")
    return [origin.strip() for origin in origins.split(",") if origin.strip()]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Load config and bootstrap the schema once per process."""
    config = get_config()
    database = Database.from_config(config)
    try:
        await run_in_threadpool(database.init_schema)
    finally:
        database.disconnect()
    app.state.invimport_resources = AppResources(config=config)
    yield


def _error_response(message: str, status_code: int) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(message=message).model_dump(),
    )


def create_app() -> FastAPI:
    """Build the API application."""
    app = FastAPI(
        title="Invoice Import Service",
        description="Read invoices imported from spreadsheets",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=get_allowed_origins(),
        allow_credentials=True,
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    @app.get("/health")
    async def health_check() -> Dict[str, Any]:
        """Health check endpoint for container orchestration."""
        return {
            "status": "healthy",
            "service": "invoice-import",
            "version": "1.0.0",
        }

    @app.get(
        "/invoices",
        response_model=InvoiceListResponse,
        status_code=status.HTTP_200_OK,
        responses={500: {"model": ErrorResponse, "description": "Query failed"}},
    )
    async def list_invoices(
        query_service: InvoiceQueryService = Depends(get_query_service),
    ) -> InvoiceListResponse:
        """List every invoice with its customer, items and products."""
        invoices = await run_in_threadpool(query_service.get_all_invoices_with_details)
        return InvoiceListResponse(count=len(invoices), invoices=invoices)

    @app.exception_handler(InvoiceImportError)
    async def import_error_handler(request: Request, exc: InvoiceImportError) -> JSONResponse:
        """Map domain errors to the error envelope."""
        logger.error("Request failed: %s", exc.message)
        return _error_response(exc.message, exc.status_code)

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
        """Map anything else to the error envelope with status 500."""
        logger.exception("Unexpected error: %s", str(exc))
        return _error_response(str(exc), status.HTTP_500_INTERNAL_SERVER_ERROR)

    return app


app = create_app()
