# estimator/core/error_handlers.py

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging
import math
import uuid

from .exceptions import EstimatorError, ErrorCode

logger = logging.getLogger(__name__)

STATUS_CODE_MAP = {
    ErrorCode.INVALID_PARAMETERS: 400,
    ErrorCode.RULE_DATA_INVALID: 422,
    ErrorCode.INVALID_RULE_BOUNDS: 422,
    ErrorCode.UNKNOWN_SETTINGS_KEY: 404,
    ErrorCode.MISSING_WELD_RATE: 422,
    ErrorCode.PRICING_CALCULATION_FAILED: 400,
    ErrorCode.INTERNAL_SERVER_ERROR: 500,
}


def _jsonable(value):
    # Echoed inputs may be Decimals, NaN floats or whole part dicts; JSONResponse rejects NaN
    if isinstance(value, float) and not math.isfinite(value):
        return str(value)
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    return str(value)


def _error(status_code: int, code: str, message: str, **extra) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": {"code": code, "message": message, **extra}})


def setup_error_handlers(app: FastAPI):
    """Map estimator errors, bad request bodies and decimal overflow onto one error envelope."""

    @app.exception_handler(EstimatorError)
    async def estimator_error_handler(request: Request, exc: EstimatorError):
        # Already logged in full when raised
        status_code = STATUS_CODE_MAP.get(exc.code, 400)
        logger.warning(f"{request.method} {request.url.path} -> {status_code} {exc.code.value}")
        return JSONResponse(status_code=status_code, content=exc.to_response())

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Rejected estimate, feasibility or weld bodies: one entry per bad field."""
        errors = [
            {
                "field": ".".join(str(loc) for loc in error["loc"] if loc != "body"),
                "message": error["msg"],
                "input": _jsonable(error.get("input")),
            }
            for error in exc.errors()
        ]
        logger.warning(f"{request.method} {request.url.path} rejected: {len(errors)} invalid field(s)")
        return _error(422, "VALIDATION_ERROR", "Request validation failed", details=errors)

    @app.exception_handler(ArithmeticError)
    async def arithmetic_error_handler(request: Request, exc: ArithmeticError):
        # Totals too large to round to cents fail while the response is being built
        logger.error(f"{request.method} {request.url.path} decimal overflow: {exc!r}")
        return _error(
            STATUS_CODE_MAP[ErrorCode.PRICING_CALCULATION_FAILED],
            ErrorCode.PRICING_CALCULATION_FAILED.value,
            "Values are too large to price",
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        # Unknown routes and wrong methods
        return _error(exc.status_code, f"HTTP_{exc.status_code}", str(exc.detail))

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled exception on {request.method} {request.url.path}")
        return _error(500, ErrorCode.INTERNAL_SERVER_ERROR.value, "An internal server error occurred.")


async def add_request_id_middleware(request: Request, call_next):
    """Add request ID for better error tracking."""
    request_id = str(uuid.uuid4())
    request.state.request_id = request_id

    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response
