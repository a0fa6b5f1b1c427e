"""Exception taxonomy and global exception handlers for the FastAPI application."""

import traceback

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..messages import MessageCode, get_default_message
from src.utils.logger import get_logger

logger = get_logger(__name__)


class StoryledgerException(Exception):
    """Base exception for the credits API with unified message codes."""

    def __init__(
        self,
        message_code: MessageCode,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: dict | None = None,
        headers: dict | None = None,
        message: str | None = None,
    ):
        self.message_code = message_code
        self.status_code = status_code
        self.message: str = message or get_default_message(message_code)
        self.details = details or {}
        self.headers = headers or {}
        super().__init__(self.message)

    def to_response_dict(self) -> dict:
        """Convert exception to API response format."""
        return {
            "message_code": self.message_code,
            "message": self.message,
            "details": self.details,
        }


class InvalidRequestError(StoryledgerException):
    """Malformed request, unknown package, non-positive amount."""

    def __init__(
        self,
        message: str,
        details: dict | None = None,
        message_code: MessageCode = MessageCode.INVALID_INPUT,
    ):
        super().__init__(
            message_code,
            status.HTTP_400_BAD_REQUEST,
            details=details,
            message=message,
        )


class InsufficientCreditsError(StoryledgerException):
    def __init__(self, required: int, available: int):
        self.required = required
        self.available = available
        super().__init__(
            MessageCode.INSUFFICIENT_CREDITS,
            status.HTTP_402_PAYMENT_REQUIRED,
            details={"required": required, "available": available},
        )


class ResourceNotFoundError(StoryledgerException):
    def __init__(
        self,
        message_code: MessageCode = MessageCode.RESOURCE_NOT_FOUND,
        details: dict | None = None,
    ):
        super().__init__(message_code, status.HTTP_404_NOT_FOUND, details=details)


class PaymentProviderError(StoryledgerException):
    """Payment provider unreachable or answered with an error."""

    def __init__(self, description: str, provider_status: int | None = None):
        details: dict = {"description": description}
        if provider_status is not None:
            details["provider_status"] = provider_status
        super().__init__(
            MessageCode.EXTERNAL_SERVICE_ERROR,
            status.HTTP_502_BAD_GATEWAY,
            details=details,
        )


class ConfigurationError(StoryledgerException):
    def __init__(self, description: str):
        super().__init__(
            MessageCode.CONFIGURATION_ERROR,
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            details={"description": description},
        )


def _serializable_errors(errors: list) -> list[dict]:
    serializable_errors = []
    for error in errors:
        error_dict = dict(error)
        if "input" in error_dict and hasattr(error_dict["input"], "isoformat"):
            error_dict["input"] = error_dict["input"].isoformat()
        # ctx may carry exception instances
        if "ctx" in error_dict:
            error_dict["ctx"] = {k: str(v) for k, v in error_dict["ctx"].items()}
        serializable_errors.append(error_dict)
    return serializable_errors


def _error_response(
    status_code: int,
    message_code: MessageCode,
    details: dict,
    message: str | None = None,
    headers: dict | None = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "message_code": message_code,
            "message": message or get_default_message(message_code),
            "details": details,
        },
        headers=headers,
    )


def _validation_response(
    errors: list, message_code: MessageCode
) -> JSONResponse:
    try:
        validation_errors = _serializable_errors(errors)
    except (TypeError, ValueError):
        validation_errors = [
            {"msg": "Validation error occurred", "type": "validation_error"}
        ]
    return _error_response(
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        message_code,
        {"validation_errors": validation_errors},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app.

    Every error leaves the API as ``{message_code, message, details}``.
    """

    @app.exception_handler(StoryledgerException)
    async def storyledger_exception_handler(
        request: Request, exc: StoryledgerException
    ) -> JSONResponse:
        log = logger.error if exc.status_code >= 500 else logger.warning
        log(
            "api_exception",
            path=request.url.path,
            method=request.method,
            message_code=exc.message_code.value,
            status_code=exc.status_code,
            details=exc.details,
        )
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.to_response_dict(),
            headers=exc.headers,
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        """Routing errors (404, 405) and any HTTPException raised by FastAPI."""
        logger.warning(
            "http_exception",
            path=request.url.path,
            method=request.method,
            status_code=exc.status_code,
            detail=str(exc.detail),
        )
        if exc.status_code == status.HTTP_404_NOT_FOUND:
            message_code = MessageCode.RESOURCE_NOT_FOUND
        elif exc.status_code < 500:
            message_code = MessageCode.BAD_REQUEST
        else:
            message_code = MessageCode.INTERNAL_ERROR
        return _error_response(
            exc.status_code,
            message_code,
            {"description": "HTTP exception occurred"},
            message=str(exc.detail),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        logger.warning(
            "request_validation_failed", path=request.url.path, method=request.method
        )
        return _validation_response(exc.errors(), MessageCode.INVALID_INPUT)

    @app.exception_handler(ValidationError)
    async def model_validation_handler(
        request: Request, exc: ValidationError
    ) -> JSONResponse:
        """Response or internal model validation failures."""
        logger.warning(
            "model_validation_failed", path=request.url.path, method=request.method
        )
        return _validation_response(exc.errors(), MessageCode.VALIDATION_ERROR)

    @app.exception_handler(SQLAlchemyError)
    async def sqlalchemy_exception_handler(
        request: Request, exc: SQLAlchemyError
    ) -> JSONResponse:
        logger.error(
            "database_error",
            path=request.url.path,
            method=request.method,
            exception_type=type(exc).__name__,
            error=str(exc),
        )
        if isinstance(exc, IntegrityError):
            return _error_response(
                status.HTTP_409_CONFLICT,
                MessageCode.CONFLICT,
                {"database_error": "Constraint violation"},
            )
        # 500 makes the payment provider retry its webhook delivery
        return _error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            MessageCode.INTERNAL_ERROR,
            {"database_error": "Internal database error"},
            message="Database error occurred",
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        logger.error(
            "unhandled_exception",
            path=request.url.path,
            method=request.method,
            exception_type=type(exc).__name__,
            traceback=traceback.format_exc(),
        )
        return _error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            MessageCode.INTERNAL_ERROR,
            {"error_type": type(exc).__name__},
        )
