import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from fastapi_utils.cbv import cbv
from sqlalchemy.ext.asyncio import AsyncSession

from core.check_permission import has_role
from core.form_parser import parse_form_model
from core.get_db import get_db_async
from core.safe_handler import safe_handler
from models.enums import UserRole
from models.models import User
from schemas.schema import ApartmentCreate, ApartmentUpdate, RemoveImageInput
from services.apartment_service import ApartmentService

router = APIRouter(tags=["Apartments"])

admin_or_staff = has_role(UserRole.ADMIN, UserRole.STAFF)
owner_admin_or_staff = has_role(UserRole.OWNER, UserRole.ADMIN, UserRole.STAFF)


@cbv(router=router)
class ApartmentRoutes:
    @router.get("/admin/stats")
    @safe_handler
    async def stats(
        self,
        current_user: User = Depends(admin_or_staff),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await ApartmentService(db).stats()

    @router.patch("/admin/{apartment_id}")
    @safe_handler
    async def admin_update(
        self,
        apartment_id: uuid.UUID,
        data: str = Form("{}"),
        images: Optional[List[UploadFile]] = File(None),
        current_user: User = Depends(admin_or_staff),
        db: AsyncSession = Depends(get_db_async),
    ):
        payload = parse_form_model(data, ApartmentUpdate)
        return await ApartmentService(db).update_apartment(
            apartment_id, current_user, payload, images
        )

    @router.delete("/admin/{apartment_id}")
    @safe_handler
    async def admin_delete(
        self,
        apartment_id: uuid.UUID,
        current_user: User = Depends(has_role(UserRole.ADMIN)),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await ApartmentService(db).delete_apartment(apartment_id, current_user)

    @router.get("/owner/my-apartments")
    @safe_handler
    async def my_apartments(
        self,
        page: int = Query(1, ge=1),
        limit: int = Query(10, ge=1, le=100),
        current_user: User = Depends(has_role(UserRole.OWNER)),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await ApartmentService(db).my_apartments(
            current_user, page=page, limit=limit
        )

    @router.post("/", status_code=201)
    @safe_handler
    async def create(
        self,
        data: str = Form(...),
        images: Optional[List[UploadFile]] = File(None),
        current_user: User = Depends(has_role(UserRole.OWNER)),
        db: AsyncSession = Depends(get_db_async),
    ):
        payload = parse_form_model(data, ApartmentCreate)
        return await ApartmentService(db).create_apartment(
            current_user, payload, images
        )

    @router.get("/")
    @safe_handler
    async def list_apartments(
        self,
        page: int = Query(1, ge=1),
        limit: int = Query(10, ge=1, le=100),
        status: str | None = None,
        availability: str | None = None,
        city: str | None = None,
        state: str | None = None,
        min_rent: float | None = Query(None, ge=0),
        max_rent: float | None = Query(None, ge=0),
        bedrooms: int | None = Query(None, ge=0),
        bathrooms: int | None = Query(None, ge=0),
        search: str | None = None,
        sort_by: str = "created_at",
        sort_order: str = "desc",
        db: AsyncSession = Depends(get_db_async),
    ):
        return await ApartmentService(db).list_apartments(
            page=page,
            limit=limit,
            status=status,
            availability=availability,
            city=city,
            state=state,
            min_rent=min_rent,
            max_rent=max_rent,
            bedrooms=bedrooms,
            bathrooms=bathrooms,
            search=search,
            sort_by=sort_by,
            sort_order=sort_order,
        )

    @router.get("/{apartment_id}")
    @safe_handler
    async def get_apartment(
        self,
        apartment_id: uuid.UUID,
        db: AsyncSession = Depends(get_db_async),
    ):
        return await ApartmentService(db).get_apartment(apartment_id)

    @router.patch("/{apartment_id}")
    @safe_handler
    async def update(
        self,
        apartment_id: uuid.UUID,
        data: str = Form("{}"),
        images: Optional[List[UploadFile]] = File(None),
        current_user: User = Depends(owner_admin_or_staff),
        db: AsyncSession = Depends(get_db_async),
    ):
        payload = parse_form_model(data, ApartmentUpdate)
        return await ApartmentService(db).update_apartment(
            apartment_id, current_user, payload, images
        )

    @router.delete("/{apartment_id}")
    @safe_handler
    async def delete(
        self,
        apartment_id: uuid.UUID,
        current_user: User = Depends(has_role(UserRole.OWNER, UserRole.ADMIN)),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await ApartmentService(db).delete_apartment(apartment_id, current_user)

    @router.patch("/{apartment_id}/remove-image")
    @safe_handler
    async def remove_image(
        self,
        apartment_id: uuid.UUID,
        payload: RemoveImageInput,
        current_user: User = Depends(owner_admin_or_staff),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await ApartmentService(db).remove_image(
            apartment_id, current_user, payload.image_url
        )
