import uuid
from typing import Optional

from sqlalchemy import func, or_, select
from sqlalchemy.exc import SQLAlchemyError

from models.enums import ApartmentStatus, AvailabilityStatus
from models.models import Apartment

SORTABLE_FIELDS = {
    "created_at": Apartment.created_at,
    "updated_at": Apartment.updated_at,
    "rent": Apartment.rent_amount,
    "bedrooms": Apartment.bedrooms,
    "bathrooms": Apartment.bathrooms,
    "title": Apartment.title,
}


class ApartmentRepo:
    def __init__(self, db):
        self.db = db

    async def get_by_id(self, apartment_id: uuid.UUID) -> Optional[Apartment]:
        result = await self.db.execute(
            select(Apartment)
            .where(Apartment.id == apartment_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    def _filters(
        self,
        *,
        owner_id: uuid.UUID | None = None,
        status: ApartmentStatus | None = None,
        availability: AvailabilityStatus | None = None,
        city: str | None = None,
        state: str | None = None,
        min_rent: float | None = None,
        max_rent: float | None = None,
        bedrooms: int | None = None,
        bathrooms: int | None = None,
        search: str | None = None,
    ) -> list:
        filters = []
        if owner_id is not None:
            filters.append(Apartment.owner_id == owner_id)
        if status is not None:
            filters.append(Apartment.status == status)
        if availability is not None:
            filters.append(Apartment.availability_status == availability)
        if city:
            filters.append(Apartment.city.ilike(f"%{city.strip()}%"))
        if state:
            filters.append(Apartment.state.ilike(f"%{state.strip()}%"))
        if min_rent is not None:
            filters.append(Apartment.rent_amount >= min_rent)
        if max_rent is not None:
            filters.append(Apartment.rent_amount <= max_rent)
        if bedrooms is not None:
            filters.append(Apartment.bedrooms == bedrooms)
        if bathrooms is not None:
            filters.append(Apartment.bathrooms == bathrooms)
        if search:
            pattern = f"%{search.strip()}%"
            filters.append(
                or_(
                    Apartment.title.ilike(pattern),
                    Apartment.description.ilike(pattern),
                    Apartment.street.ilike(pattern),
                    Apartment.city.ilike(pattern),
                )
            )
        return filters

    async def list_all(
        self,
        *,
        offset: int,
        limit: int,
        sort_by: str = "created_at",
        sort_order: str = "desc",
        **criteria,
    ) -> tuple[list[Apartment], int]:
        filters = self._filters(**criteria)
        column = SORTABLE_FIELDS[sort_by]
        ordering = column.asc() if sort_order == "asc" else column.desc()

        total = await self.db.scalar(
            select(func.count(Apartment.id)).where(*filters)
        )
        result = await self.db.execute(
            select(Apartment)
            .where(*filters)
            .order_by(ordering, Apartment.id)
            .offset(offset)
            .limit(limit)
        )
        return list(result.scalars().all()), total or 0

    async def create(self, data: dict) -> Apartment:
        apartment = Apartment(**data)
        self.db.add(apartment)

        try:
            await self.db.commit()
            await self.db.refresh(apartment)
            return apartment
        except SQLAlchemyError:
            await self.db.rollback()
            raise

    async def update(self, apartment: Apartment, values: dict) -> Apartment:
        for key, value in values.items():
            setattr(apartment, key, value)

        try:
            await self.db.commit()
            await self.db.refresh(apartment)
            return apartment
        except SQLAlchemyError:
            await self.db.rollback()
            raise

    async def delete(self, apartment: Apartment) -> None:
        try:
            await self.db.delete(apartment)
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            raise

    async def stats(self) -> dict:
        total = await self.db.scalar(select(func.count(Apartment.id)))
        available = await self.db.scalar(
            select(func.count(Apartment.id)).where(
                Apartment.availability_status == AvailabilityStatus.AVAILABLE
            )
        )
        rented = await self.db.scalar(
            select(func.count(Apartment.id)).where(
                Apartment.availability_status == AvailabilityStatus.RENTED
            )
        )
        active = await self.db.scalar(
            select(func.count(Apartment.id)).where(
                Apartment.status == ApartmentStatus.ACTIVE
            )
        )
        average = await self.db.scalar(
            select(func.avg(Apartment.rent_amount)).where(
                Apartment.status == ApartmentStatus.ACTIVE
            )
        )
        return {
            "total": total or 0,
            "available": available or 0,
            "rented": rented or 0,
            "active": active or 0,
            "average_rent": round(float(average or 0), 2),
        }
