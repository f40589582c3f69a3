"""
API error taxonomy.

Routes answer failures with the same envelope they use for success:
contact and reservation forms speak `{success, message}`, checkout speaks
`{success, error}`, and the account/admin routes speak `{ok, error}`.
Each error carries the envelope of the route raising it.
"""

import logging

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

FORM = ("success", "message")
CHECKOUT = ("success", "error")
ACCOUNT = ("ok", "error")

_ENVELOPES = {
    "/api/contact": FORM,
    "/api/reservas": FORM,
    "/api/checkout": CHECKOUT,
}


def envelope_for(path: str):
    return _ENVELOPES.get(path, ACCOUNT)


class ApiError(Exception):
    status_code = 500

    def __init__(self, message: str, envelope=ACCOUNT):
        super().__init__(message)
        self.message = message
        self.envelope = envelope

    def body(self) -> dict:
        flag, field = self.envelope
        return {flag: False, field: self.message}


class ValidationError(ApiError):
    status_code = 400


class AuthError(ApiError):
    status_code = 401


class NotFoundError(ApiError):
    status_code = 404


class ConflictError(ApiError):
    # duplicate registration answers 200 with ok:false, the login page reads `ok`
    status_code = 200


class ServerError(ApiError):
    status_code = 500


async def api_error_handler(request: Request, exc: ApiError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.body())


async def request_validation_handler(request: Request, exc: RequestValidationError):
    logger.info("Rejected payload on %s: %s", request.url.path, exc.errors())
    flag, field = envelope_for(request.url.path)
    return JSONResponse(status_code=400, content={flag: False, field: "Solicitud inválida."})


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    flag, field = envelope_for(request.url.path)
    return JSONResponse(status_code=500, content={flag: False, field: "Error interno del servidor."})


def register_error_handlers(app):
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
