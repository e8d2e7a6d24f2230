import logging
from functools import wraps

from fastapi import HTTPException, Request

from .friendly_msg import get_friendly_message

logger = logging.getLogger(__name__)


def _find_request(args, kwargs) -> Request | None:
    for arg in list(args) + list(kwargs.values()):
        if isinstance(arg, Request):
            return arg
    return None


def safe_handler(func):
    @wraps(func)
    async def wrapper(*args, **kwargs):
        request = _find_request(args, kwargs)
        where = request.url.path if request else func.__name__

        try:
            return await func(*args, **kwargs)
        except HTTPException as e:
            logger.warning(f"[HTTPException] {e.status_code} - {where}: {e.detail}")
            raise
        except Exception as e:
            logger.error(
                f"[Unhandled Error] in {func.__name__} | {where} | Error: {e}",
                exc_info=True,
            )
            raise HTTPException(status_code=500, detail=get_friendly_message(e))

    return wrapper
