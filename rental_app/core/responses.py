from typing import Any

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


def envelope(success: bool, message: str, data: Any = None) -> dict:
    return {"success": success, "message": message, "data": jsonable_encoder(data)}


def send_response(
    status_code: int,
    message: str,
    data: Any = None,
    *,
    success: bool = True,
    headers: dict | None = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=envelope(success, message, data),
        headers=headers,
    )
