"""Translation of domain errors into HTTP responses."""

from typing import Any, Dict, List

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from schemabuilder.core.exceptions import InternalError, SchemaBuilderError, UpstreamDependencyError, ValidationError
from schemabuilder.core.logging import get_logger

logger = get_logger(__name__)


def _validation_details(exc: RequestValidationError) -> Dict[str, List[Dict[str, Any]]]:
    errors = []
    for error in exc.errors():
        errors.append({
            "field": ".".join(str(part) for part in error.get("loc", ()) if part != "body"),
            "message": error.get("msg", ""),
            "type": error.get("type", ""),
        })
    return {"errors": errors}


async def domain_error_handler(request: Request, exc: SchemaBuilderError) -> JSONResponse:
    if isinstance(exc, (UpstreamDependencyError, InternalError)):
        logger.error("Request failed", error=exc.kind, cause=repr(exc.__cause__), path=request.url.path)
    else:
        logger.info("Request rejected", error=exc.kind, status_code=exc.status_code, path=request.url.path)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    error = ValidationError("Invalid request", details=_validation_details(exc))
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled error", path=request.url.path, error=str(exc), exc_info=exc)
    return JSONResponse(status_code=500, content=InternalError().to_dict())


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(SchemaBuilderError, domain_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
