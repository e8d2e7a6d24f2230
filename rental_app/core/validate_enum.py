from enum import Enum
from typing import Type, TypeVar

from fastapi import HTTPException

E = TypeVar("E", bound=Enum)


def validate_enum(
    value: str | Enum | None,
    enum_cls: Type[E],
    *,
    field: str,
) -> E | None:
    if value is None or value == "":
        return None

    if isinstance(value, enum_cls):
        return value

    if isinstance(value, str):
        try:
            return enum_cls(value.strip().lower())
        except ValueError:
            pass

        try:
            return enum_cls(value.strip())
        except ValueError:
            pass

    allowed = ", ".join(e.value for e in enum_cls)
    raise HTTPException(
        status_code=400,
        detail=f"Invalid {field}: {value}. Allowed values: {allowed}",
    )
