# trustcircle/middleware/errors.py
import logging

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from trustcircle.core.errors import InvalidInputError, MembershipError
from trustcircle.schemas import ErrorResponse

logger = logging.getLogger(__name__)


async def membership_error_handler(request: Request, exc: MembershipError):
    body = ErrorResponse(detail=exc.detail, code=exc.code, meta=exc.meta)
    return JSONResponse(status_code=exc.status_code, content=body.model_dump())


async def validation_error_handler(request: Request, exc: RequestValidationError):
    # Malformed bodies are rejected before the service, cache or store are touched
    errors = [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", "")}
        for err in exc.errors()
    ]
    logger.debug(f"Rejected {request.method} {request.url.path}: {errors}")
    return await membership_error_handler(request, InvalidInputError("Invalid input", meta=errors))


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}", exc_info=exc)
    body = ErrorResponse(detail="Internal Server Error", code="internal_error")
    return JSONResponse(status_code=500, content=body.model_dump())
