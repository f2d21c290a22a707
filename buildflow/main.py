"""
Main FastAPI Application for the BuildFlow estimation back end.

Mounts the v1 REST API and maps domain errors to HTTP responses.
"""
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from buildflow.models import init_db, get_db
from buildflow.config import get_config
from buildflow.api.v1 import api_router as v1_router
from buildflow.domain.exceptions import (
    DomainError,
    DtoMappingError,
    DuplicateEmailError,
    DuplicateUserError,
    InvariantViolationError,
    NotFoundError,
    PreconditionViolationError,
    ValidationError,
)

logger = logging.getLogger(__name__)

__all__ = ["app", "get_db"]

# First match wins; subclasses before their bases
ERROR_STATUS_CODES = [
    (NotFoundError, 404),
    (DuplicateUserError, 409),
    (DuplicateEmailError, 409),
    (InvariantViolationError, 409),
    (PreconditionViolationError, 400),
    (ValidationError, 400),
    (DtoMappingError, 400),
]


def status_code_for(exc: DomainError) -> int:
    for error_class, status_code in ERROR_STATUS_CODES:
        if isinstance(exc, error_class):
            return status_code
    return 500


app = FastAPI(
    title="BuildFlow Estimation API",
    description="Projects, work items, quotes and multiplier-based cost estimates",
    version=get_config().version,
)

app.include_router(v1_router)


@app.on_event("startup")
async def startup_event():
    init_db()


@app.get("/health")
def health():
    return {"status": "ok", "version": get_config().version}


# ------------ Error Handlers ------------

@app.exception_handler(DomainError)
async def domain_exception_handler(request: Request, exc: DomainError):
    status_code = status_code_for(exc)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.code} {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected ({status_code}): {exc.code}")
    return JSONResponse(
        status_code=status_code,
        content={"error": exc.code, "message": exc.message},
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
