"""Shared FastAPI app resource container and provider dependencies."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from typing import cast

from fastapi import Depends, HTTPException, Request, status

from invimport.config import ImportConfig
from invimport.database import Database
from invimport.services.query_service import InvoiceQueryService


@dataclass
class AppResources:
    """App-scoped resources initialized during FastAPI lifespan."""

    config: ImportConfig


def get_app_resources(request: Request) -> AppResources:
    """Return initialized app resources from state."""
    resources = getattr(request.app.state, "invimport_resources", None)
    if resources is None:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Application resources are not initialized",
        )
    return cast(AppResources, resources)


def get_app_config(resources: AppResources = Depends(get_app_resources)) -> ImportConfig:
    """Get app-scoped config instance."""
    return resources.config


def get_database(config: ImportConfig = Depends(get_app_config)) -> Iterator[Database]:
    """Open a database connection for the duration of one request."""
    database = Database.from_config(config)
    try:
        yield database
    finally:
        database.disconnect()


def get_query_service(database: Database = Depends(get_database)) -> InvoiceQueryService:
    """Get invoice query service bound to the request's database."""
    return InvoiceQueryService(database)
