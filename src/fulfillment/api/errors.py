"""HTTP mapping for domain errors."""

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from protean.exceptions import ExpectedVersionError
from protean.integrations.fastapi import register_exception_handlers

from fulfillment.errors import FulfillmentError

logger = structlog.get_logger(__name__)


async def _fulfillment_error(request: Request, exc: FulfillmentError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.messages, **exc.extra})


async def _stale_write(request: Request, exc: ExpectedVersionError) -> JSONResponse:
    logger.info("Concurrent update rejected", path=request.url.path)
    return JSONResponse(
        status_code=409,
        content={"error": {"_entity": ["Record was modified concurrently; retry the request"]}},
    )


def register_error_handlers(app: FastAPI) -> None:
    """Install Protean's handlers, then the fulfillment taxonomy on top."""
    register_exception_handlers(app)
    app.add_exception_handler(FulfillmentError, _fulfillment_error)
    app.add_exception_handler(ExpectedVersionError, _stale_write)
