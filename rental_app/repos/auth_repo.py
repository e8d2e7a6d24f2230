import uuid
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from models.models import User


class AuthRepo:
    def __init__(self, db):
        self.db = db

    async def by_id(self, user_id: uuid.UUID) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def get_by_email(self, email: str) -> User | None:
        email_payload = email.strip().lower()
        result = await self.db.execute(select(User).where(User.email == email_payload))
        return result.scalar_one_or_none()

    async def email_taken(
        self, email: str, exclude_user_id: uuid.UUID | None = None
    ) -> bool:
        stmt = select(User.id).where(User.email == email.strip().lower())
        if exclude_user_id is not None:
            stmt = stmt.where(User.id != exclude_user_id)
        result = await self.db.execute(stmt)
        return result.first() is not None

    async def count(self) -> int:
        result = await self.db.execute(select(func.count(User.id)))
        return result.scalar_one()

    async def create(self, user: User) -> User:
        self.db.add(user)
        return await self._commit_and_refresh(user)

    async def save(self, user: User) -> User:
        self.db.add(user)
        return await self._commit_and_refresh(user)

    async def _commit_and_refresh(self, user: User) -> User:
        try:
            await self.db.commit()
            await self.db.refresh(user)
            return user
        except SQLAlchemyError:
            await self.db.rollback()
            raise
