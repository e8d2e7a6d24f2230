from datetime import datetime, timezone
from enum import Enum
from typing import Type

from sqlalchemy import Enum as SAEnum


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def enum_column(enum_cls: Type[Enum], length: int = 32) -> SAEnum:
    return SAEnum(
        enum_cls,
        native_enum=False,
        length=length,
        values_callable=lambda members: [m.value for m in members],
    )


WEEKS_PER_MONTH = 4.33
DAYS_PER_MONTH = 30


def to_monthly(amount: float, period: str) -> float:
    if period == "weekly":
        return round(amount * WEEKS_PER_MONTH, 2)
    if period == "daily":
        return round(amount * DAYS_PER_MONTH, 2)
    return amount
