from typing import Type, TypeVar

from fastapi import HTTPException
from pydantic import BaseModel, ValidationError

T = TypeVar("T", bound=BaseModel)


def parse_form_model(raw: str | None, schema: Type[T]) -> T:
    try:
        return schema.model_validate_json(raw or "{}")
    except ValidationError as e:
        errors = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'data'}: {err['msg']}"
            for err in e.errors()
        )
        raise HTTPException(status_code=400, detail=f"Validation failed: {errors}")
