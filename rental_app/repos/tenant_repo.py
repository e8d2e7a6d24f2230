import uuid
from typing import Optional

from sqlalchemy import func, or_, select
from sqlalchemy.exc import SQLAlchemyError

from models.enums import TenantStatus
from models.models import Tenant, User


class TenantRepo:
    def __init__(self, db):
        self.db = db

    async def get_by_id(self, tenant_id: uuid.UUID) -> Optional[Tenant]:
        result = await self.db.execute(select(Tenant).where(Tenant.id == tenant_id))
        return result.scalar_one_or_none()

    async def get_by_user_id(self, user_id: uuid.UUID) -> Optional[Tenant]:
        result = await self.db.execute(select(Tenant).where(Tenant.user_id == user_id))
        return result.scalar_one_or_none()

    async def email_taken(
        self, email: str, exclude_tenant_id: uuid.UUID | None = None
    ) -> bool:
        stmt = select(Tenant.id).where(Tenant.email == email.strip().lower())
        if exclude_tenant_id is not None:
            stmt = stmt.where(Tenant.id != exclude_tenant_id)
        result = await self.db.execute(stmt)
        return result.first() is not None

    async def list_all(
        self,
        *,
        offset: int,
        limit: int,
        status: TenantStatus | None = None,
        search: str | None = None,
    ) -> tuple[list[Tenant], int]:
        filters = []
        if status is not None:
            filters.append(Tenant.status == status)
        if search:
            pattern = f"%{search.strip()}%"
            filters.append(
                or_(
                    Tenant.first_name.ilike(pattern),
                    Tenant.last_name.ilike(pattern),
                    Tenant.email.ilike(pattern),
                )
            )

        total = await self.db.scalar(
            select(func.count(Tenant.id)).where(*filters)
        )
        result = await self.db.execute(
            select(Tenant)
            .where(*filters)
            .order_by(Tenant.created_at.desc())
            .offset(offset)
            .limit(limit)
        )
        return list(result.scalars().all()), total or 0

    async def create_with_user(self, user: User, tenant: Tenant) -> Tenant:
        try:
            self.db.add(user)
            await self.db.flush()
            tenant.user_id = user.id
            self.db.add(tenant)
            await self.db.commit()
            await self.db.refresh(tenant)
            return tenant
        except SQLAlchemyError:
            await self.db.rollback()
            raise

    async def save(self, tenant: Tenant) -> Tenant:
        try:
            await self.db.commit()
            await self.db.refresh(tenant)
            return tenant
        except SQLAlchemyError:
            await self.db.rollback()
            raise

    async def delete_with_user(self, tenant: Tenant) -> None:
        try:
            user = await self.db.get(User, tenant.user_id)
            await self.db.delete(user if user is not None else tenant)
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            raise
