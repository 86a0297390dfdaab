"""
Homesite – Exception handlers.

Every failure leaves the server as ``{"error": "<message>"}`` so the
admin and public scripts can show it inline next to the form.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.exceptions import HomesiteError

logger = logging.getLogger(__name__)


def _error_body(detail) -> dict:
    if isinstance(detail, dict):
        return detail
    return {"error": str(detail) if detail is not None else "Error"}


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(HomesiteError)
    async def domain_exception_handler(request: Request, exc: HomesiteError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse({"error": exc.message}, status_code=exc.status_code)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(
            _error_body(exc.detail),
            status_code=exc.status_code,
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return JSONResponse(
            {"error": "Invalid request", "details": jsonable_encoder(exc.errors())},
            status_code=422,
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse({"error": "Internal Server Error"}, status_code=500)
