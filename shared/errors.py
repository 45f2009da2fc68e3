"""
Domain error taxonomy shared by every service.

Services raise these instead of HTTPException so the same rules can be
exercised directly (tests, in-process callers) and rendered consistently
by each mounted sub-application.
"""
import structlog
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

logger = structlog.get_logger(__name__)

GENERIC_FAILURE = "Could not complete the request. Please try again later."


class MarketError(Exception):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "market_error"

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message or self.__class__.__name__


class ValidationError(MarketError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "validation_error"


class PermissionDenied(MarketError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "permission_denied"


class NotFound(MarketError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"


class Conflict(MarketError):
    status_code = status.HTTP_409_CONFLICT
    code = "conflict"


class AlreadyReviewed(Conflict):
    code = "already_reviewed"


class InvalidTransition(Conflict):
    code = "invalid_transition"


class OutOfStock(MarketError):
    status_code = status.HTTP_409_CONFLICT
    code = "out_of_stock"


class PersistenceError(MarketError):
    """The backing store rejected a write for reasons opaque to the caller."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    code = "persistence_error"


async def market_error_handler(request: Request, exc: MarketError) -> JSONResponse:
    if isinstance(exc, PersistenceError):
        logger.error("persistence_error", path=request.url.path, cause=exc.message)
        detail = GENERIC_FAILURE
    else:
        detail = exc.message
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": detail, "code": exc.code},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(MarketError, market_error_handler)
