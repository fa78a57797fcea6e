"""Health check endpoints."""

from typing import Any, Dict

from fastapi import APIRouter, Depends

from schemabuilder.api.container import ServiceContainer
from schemabuilder.api.dependencies import get_container

router = APIRouter()


@router.get("/health")
async def health_check(container: ServiceContainer = Depends(get_container)) -> Dict[str, Any]:
    """Report service and document store status."""
    database_ok = await container.database.ping()
    return {
        "status": "healthy" if database_ok else "degraded",
        "version": container.settings.app.version,
        "environment": container.settings.app.environment,
        "database": "connected" if database_ok else "unreachable",
    }
