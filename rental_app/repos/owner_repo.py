import uuid
from typing import Optional

from sqlalchemy import func, or_, select
from sqlalchemy.exc import SQLAlchemyError

from models.enums import OwnerStatus
from models.models import Owner, User


class OwnerRepo:
    def __init__(self, db):
        self.db = db

    async def get_by_id(self, owner_id: uuid.UUID) -> Optional[Owner]:
        result = await self.db.execute(select(Owner).where(Owner.id == owner_id))
        return result.scalar_one_or_none()

    async def get_by_user_id(self, user_id: uuid.UUID) -> Optional[Owner]:
        result = await self.db.execute(select(Owner).where(Owner.user_id == user_id))
        return result.scalar_one_or_none()

    async def email_taken(
        self, email: str, exclude_owner_id: uuid.UUID | None = None
    ) -> bool:
        stmt = select(Owner.id).where(Owner.email == email.strip().lower())
        if exclude_owner_id is not None:
            stmt = stmt.where(Owner.id != exclude_owner_id)
        result = await self.db.execute(stmt)
        return result.first() is not None

    async def list_all(
        self,
        *,
        offset: int,
        limit: int,
        status: OwnerStatus | None = None,
        search: str | None = None,
    ) -> tuple[list[Owner], int]:
        filters = []
        if status is not None:
            filters.append(Owner.status == status)
        if search:
            pattern = f"%{search.strip()}%"
            filters.append(
                or_(
                    Owner.first_name.ilike(pattern),
                    Owner.last_name.ilike(pattern),
                    Owner.email.ilike(pattern),
                    Owner.business_name.ilike(pattern),
                )
            )

        total = await self.db.scalar(
            select(func.count(Owner.id)).where(*filters)
        )
        result = await self.db.execute(
            select(Owner)
            .where(*filters)
            .order_by(Owner.created_at.desc())
            .offset(offset)
            .limit(limit)
        )
        return list(result.scalars().all()), total or 0

    async def create_with_user(self, user: User, owner: Owner) -> Owner:
        try:
            self.db.add(user)
            await self.db.flush()
            owner.user_id = user.id
            self.db.add(owner)
            await self.db.commit()
            await self.db.refresh(owner)
            return owner
        except SQLAlchemyError:
            await self.db.rollback()
            raise

    async def save(self, owner: Owner) -> Owner:
        try:
            await self.db.commit()
            await self.db.refresh(owner)
            return owner
        except SQLAlchemyError:
            await self.db.rollback()
            raise

    async def delete_with_user(self, owner: Owner) -> None:
        try:
            user = await self.db.get(User, owner.user_id)
            await self.db.delete(user if user is not None else owner)
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            raise

    async def stats(self) -> dict:
        result = await self.db.execute(
            select(Owner.status, func.count(Owner.id)).group_by(Owner.status)
        )
        counts = {status: count for status, count in result.all()}
        stats = {s.value: counts.get(s, 0) for s in OwnerStatus}
        stats["total"] = sum(counts.values())
        return stats
