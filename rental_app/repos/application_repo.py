import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import extract, func, select
from sqlalchemy.exc import SQLAlchemyError

from models.enums import (
    ACTIVE_APPLICATION_STATUSES,
    ApplicationStatus,
    AvailabilityStatus,
)
from models.models import Apartment, Application
from models.utils import utcnow

STATS_MONTHS = 6


def months_back(now: datetime, months: int) -> datetime:
    year, month = now.year, now.month - (months - 1)
    while month <= 0:
        month += 12
        year -= 1
    return datetime(year, month, 1)


class ApplicationRepo:
    def __init__(self, db):
        self.db = db

    async def get_by_id(self, application_id: uuid.UUID) -> Optional[Application]:
        result = await self.db.execute(
            select(Application)
            .where(Application.id == application_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def find_active(
        self, tenant_id: uuid.UUID, apartment_id: uuid.UUID
    ) -> Optional[Application]:
        result = await self.db.execute(
            select(Application).where(
                Application.tenant_id == tenant_id,
                Application.apartment_id == apartment_id,
                Application.status.in_(ACTIVE_APPLICATION_STATUSES),
            )
        )
        return result.scalars().first()

    async def _stored_documents(self, *criteria) -> list[str]:
        result = await self.db.execute(
            select(
                Application.id_proof,
                Application.income_proof,
                Application.bank_statement,
                Application.references,
            )
            .join(Application.apartment)
            .where(*criteria)
        )
        paths = []
        for id_proof, income_proof, bank_statement, references in result.all():
            paths.extend(p for p in (id_proof, income_proof, bank_statement) if p)
            paths.extend(references or [])
        return paths

    async def documents_for_tenant(self, tenant_id: uuid.UUID) -> list[str]:
        return await self._stored_documents(Application.tenant_id == tenant_id)

    async def documents_for_apartment(self, apartment_id: uuid.UUID) -> list[str]:
        return await self._stored_documents(Application.apartment_id == apartment_id)

    async def documents_for_owner(self, owner_id: uuid.UUID) -> list[str]:
        return await self._stored_documents(Apartment.owner_id == owner_id)

    async def list_all(
        self,
        *,
        offset: int,
        limit: int,
        tenant_id: uuid.UUID | None = None,
        apartment_id: uuid.UUID | None = None,
        owner_id: uuid.UUID | None = None,
        status: ApplicationStatus | None = None,
        sort_order: str = "desc",
    ) -> tuple[list[Application], int]:
        stmt = select(Application)
        count_stmt = select(func.count(Application.id))

        if owner_id is not None:
            stmt = stmt.join(Apartment, Application.apartment_id == Apartment.id)
            count_stmt = count_stmt.join(
                Apartment, Application.apartment_id == Apartment.id
            )

        filters = []
        if owner_id is not None:
            filters.append(Apartment.owner_id == owner_id)
        if tenant_id is not None:
            filters.append(Application.tenant_id == tenant_id)
        if apartment_id is not None:
            filters.append(Application.apartment_id == apartment_id)
        if status is not None:
            filters.append(Application.status == status)

        ordering = (
            Application.created_at.asc()
            if sort_order == "asc"
            else Application.created_at.desc()
        )

        total = await self.db.scalar(count_stmt.where(*filters))
        result = await self.db.execute(
            stmt.where(*filters)
            .order_by(ordering, Application.id)
            .offset(offset)
            .limit(limit)
        )
        return list(result.scalars().all()), total or 0

    async def create(self, data: dict) -> Application:
        application = Application(**data)
        self.db.add(application)

        try:
            await self.db.commit()
            await self.db.refresh(application)
            return application
        except SQLAlchemyError:
            await self.db.rollback()
            raise

    async def update(self, application: Application, values: dict) -> Application:
        for key, value in values.items():
            setattr(application, key, value)

        try:
            await self.db.commit()
            await self.db.refresh(application)
            return application
        except SQLAlchemyError:
            await self.db.rollback()
            raise

    async def review(
        self,
        application: Application,
        values: dict,
        *,
        rent_apartment: bool = False,
    ) -> Application:
        for key, value in values.items():
            setattr(application, key, value)

        if rent_apartment:
            apartment = await self.db.get(Apartment, application.apartment_id)
            apartment.availability_status = AvailabilityStatus.RENTED

        try:
            await self.db.commit()
            await self.db.refresh(application)
            return application
        except SQLAlchemyError:
            await self.db.rollback()
            raise

    async def delete(self, application: Application) -> None:
        try:
            await self.db.delete(application)
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            raise

    async def stats(self) -> dict:
        result = await self.db.execute(
            select(Application.status, func.count(Application.id)).group_by(
                Application.status
            )
        )
        counts = {status: count for status, count in result.all()}
        stats = {s.value: counts.get(s, 0) for s in ApplicationStatus}
        stats["total"] = sum(counts.values())

        year = extract("year", Application.created_at)
        month = extract("month", Application.created_at)
        monthly = await self.db.execute(
            select(year, month, func.count(Application.id))
            .where(Application.created_at >= months_back(utcnow(), STATS_MONTHS))
            .group_by(year, month)
            .order_by(year, month)
        )
        stats["monthly_stats"] = [
            {"year": int(y), "month": int(m), "count": c}
            for y, m, c in monthly.all()
        ]
        return stats
