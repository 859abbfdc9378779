import uuid
import traceback
from typing import Any, Dict, Optional

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from pds.core.logging import get_logger

logger = get_logger(__name__)


class PersonalDataServerError(Exception):
    """Base exception for the personal data server."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.error_code = error_code or "INTERNAL_ERROR"
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(PersonalDataServerError):
    """Caller supplied malformed input."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        details = details or {}
        if field:
            details["field"] = field
        super().__init__(message, "VALIDATION_ERROR", details)


class ConflictError(PersonalDataServerError):
    """A uniqueness constraint would be violated."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "CONFLICT", details)


class UsernameTakenError(ConflictError):
    """Account username already exists."""

    def __init__(self, username: str):
        super().__init__(
            "Account username is already taken, try a different one",
            {"username": username},
        )
        self.username = username


class NameTakenError(ConflictError):
    """Document name already exists for this owner."""

    def __init__(self, name: str, owner_id: int):
        super().__init__(
            f"Cannot create document because name already exists: {name}",
            {"name": name, "owner_id": owner_id},
        )
        self.name = name
        self.owner_id = owner_id


class NotFoundError(PersonalDataServerError):
    """Referenced record does not resolve."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "NOT_FOUND", details)


class DocumentNotFoundError(NotFoundError):
    """No document with this id belongs to this owner."""

    def __init__(self, document_id: int, owner_id: int):
        super().__init__(
            f"Unknown document id #{document_id} or owner id #{owner_id}",
            {"document_id": document_id, "owner_id": owner_id},
        )
        self.document_id = document_id
        self.owner_id = owner_id


class AuthenticationError(PersonalDataServerError):
    """Authentication related errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "AUTHENTICATION_ERROR", details)


class InvalidCredentialsError(AuthenticationError):
    """Unknown username, missing hash or password mismatch."""

    def __init__(self, message: str = "Invalid username or password"):
        super().__init__(message)


class TokenExpiredError(AuthenticationError):
    """Token expired error."""

    def __init__(self, message: str = "Access token has expired"):
        super().__init__(message, {"action": "relogin_required"})
        self.error_code = "TOKEN_EXPIRED"


class TokenInvalidError(AuthenticationError):
    """Token invalid error."""

    def __init__(self, message: str = "Access token is invalid"):
        super().__init__(message)
        self.error_code = "TOKEN_INVALID"


class StorageUnavailableError(PersonalDataServerError):
    """Underlying database or blob storage cannot be reached."""

    def __init__(
        self,
        message: str = "Storage is temporarily unavailable",
        store: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        details = details or {}
        if store:
            details["store"] = store
        super().__init__(message, "STORAGE_UNAVAILABLE", details)


class StorageInconsistencyError(PersonalDataServerError):
    """Catalog and blob storage no longer agree."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "STORAGE_INCONSISTENCY", details)


STATUS_CODE_MAP = {
    "VALIDATION_ERROR": status.HTTP_400_BAD_REQUEST,
    "CONFLICT": status.HTTP_409_CONFLICT,
    "NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "AUTHENTICATION_ERROR": status.HTTP_401_UNAUTHORIZED,
    "TOKEN_EXPIRED": status.HTTP_401_UNAUTHORIZED,
    "TOKEN_INVALID": status.HTTP_401_UNAUTHORIZED,
    "STORAGE_UNAVAILABLE": status.HTTP_503_SERVICE_UNAVAILABLE,
    "STORAGE_INCONSISTENCY": status.HTTP_500_INTERNAL_SERVER_ERROR,
}

STORAGE_UNAVAILABLE_MESSAGE = (
    "This operation is temporarily unavailable due to some storage problem "
    "on our end, please try again later."
)


def create_error_response(
    status_code: int,
    message: str,
    error_code: str = "INTERNAL_ERROR",
    details: Optional[Dict[str, Any]] = None,
    error_id: Optional[str] = None,
    request_path: Optional[str] = None,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    """Create standardized error response."""

    error_id = error_id or str(uuid.uuid4())[:8]

    error_response = {
        "error": {
            "code": error_code,
            "message": message,
            "error_id": error_id,
        }
    }

    if details:
        error_response["error"]["details"] = details

    if request_path:
        error_response["error"]["path"] = request_path

    return JSONResponse(
        status_code=status_code, content=error_response, headers=headers
    )


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Handle HTTP exceptions raised by routes and the framework."""
    error_id = str(uuid.uuid4())[:8]

    logger.warning(
        "HTTP exception occurred",
        status_code=exc.status_code,
        detail=exc.detail,
        path=request.url.path,
        method=request.method,
        error_id=error_id,
    )

    return create_error_response(
        status_code=exc.status_code,
        message=str(exc.detail),
        error_code="HTTP_ERROR",
        error_id=error_id,
        request_path=str(request.url.path),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle request validation errors."""
    error_id = str(uuid.uuid4())[:8]

    logger.warning(
        "Validation exception occurred",
        path=request.url.path,
        method=request.method,
        error_id=error_id,
    )

    # Inputs are left out on purpose: they may carry passwords or key material
    formatted_errors = [
        {
            "field": ".".join(str(x) for x in error["loc"]),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in exc.errors()
    ]

    return create_error_response(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        message="Request validation failed",
        error_code="VALIDATION_ERROR",
        details={"validation_errors": formatted_errors},
        error_id=error_id,
        request_path=str(request.url.path),
    )


async def personal_data_server_exception_handler(
    request: Request, exc: PersonalDataServerError
) -> JSONResponse:
    """Handle custom application exceptions."""
    error_id = str(uuid.uuid4())[:8]

    status_code = STATUS_CODE_MAP.get(
        exc.error_code, status.HTTP_500_INTERNAL_SERVER_ERROR
    )

    log = logger.error if status_code >= 500 else logger.warning
    log(
        "Application exception occurred",
        error_code=exc.error_code,
        message=exc.message,
        details=exc.details,
        path=request.url.path,
        method=request.method,
        error_id=error_id,
    )

    message = exc.message
    details = exc.details
    headers = None
    if isinstance(exc, StorageUnavailableError):
        message = STORAGE_UNAVAILABLE_MESSAGE
        details = None
    elif isinstance(exc, AuthenticationError):
        headers = {"WWW-Authenticate": "Bearer"}

    return create_error_response(
        status_code=status_code,
        message=message,
        error_code=exc.error_code,
        details=details,
        error_id=error_id,
        request_path=str(request.url.path),
        headers=headers,
    )


def make_general_exception_handler(include_internals: bool):
    """Build the catch-all handler; internals are only exposed in development."""

    async def general_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        """Handle all other unhandled exceptions."""
        error_id = str(uuid.uuid4())[:8]

        logger.error(
            "Unhandled exception occurred",
            error=str(exc),
            error_type=type(exc).__name__,
            path=request.url.path,
            method=request.method,
            error_id=error_id,
            exc_info=True,
        )

        if include_internals:
            details = {
                "error_type": type(exc).__name__,
                "traceback": traceback.format_exc().split("\n"),
            }
            message = str(exc)
        else:
            details = None
            message = "An unexpected error occurred"

        return create_error_response(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            message=message,
            error_code="INTERNAL_ERROR",
            details=details,
            error_id=error_id,
            request_path=str(request.url.path),
        )

    return general_exception_handler


def setup_exception_handlers(app, include_internals: bool = False):
    """Setup all exception handlers for the FastAPI app."""

    # Custom application exceptions
    app.add_exception_handler(
        PersonalDataServerError, personal_data_server_exception_handler
    )

    # HTTP exceptions (fastapi.HTTPException subclasses the Starlette one)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)

    # Validation errors
    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    # General exception handler (catch-all)
    app.add_exception_handler(
        Exception, make_general_exception_handler(include_internals)
    )
