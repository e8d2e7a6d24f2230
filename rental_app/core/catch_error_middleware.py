import logging

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from .friendly_msg import DEFAULT_MESSAGE
from .responses import send_response

logger = logging.getLogger(__name__)


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)
        except Exception as e:
            logger.exception(f"Unhandled server error: {e}")
            return send_response(500, DEFAULT_MESSAGE, None, success=False)
