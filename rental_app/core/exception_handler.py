import logging

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from .responses import send_response

logger = logging.getLogger(__name__)


class ValidationErrorHandler:
    async def __call__(self, request: Request, exc: RequestValidationError):
        errors = []

        for err in exc.errors():
            errors.append(
                {
                    "loc": err.get("loc"),
                    "msg": str(err.get("msg")),
                    "type": err.get("type"),
                }
            )

        return send_response(
            400, "Validation failed", {"errors": errors}, success=False
        )


class HTTPErrorHandler:
    async def __call__(self, request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404 and exc.detail == "Not Found":
            message = "Route Not Found"
        else:
            message = str(exc.detail)

        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} -> {message}")

        return send_response(
            exc.status_code,
            message,
            None,
            success=False,
            headers=getattr(exc, "headers", None),
        )
