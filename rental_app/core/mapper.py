from typing import Iterable, Type, TypeVar

from pydantic import BaseModel

T = TypeVar("T", bound=BaseModel)


class ORMMapper:
    @staticmethod
    def one(item, schema: Type[T]) -> dict:
        return schema.model_validate(item).model_dump(mode="json")

    @staticmethod
    def many(items: Iterable, schema: Type[T]) -> list[dict]:
        return [schema.model_validate(item).model_dump(mode="json") for item in items]
