import uuid

from fastapi import APIRouter, Depends, Query
from fastapi_utils.cbv import cbv
from sqlalchemy.ext.asyncio import AsyncSession

from core.check_permission import has_role
from core.get_db import get_db_async
from core.safe_handler import safe_handler
from models.enums import UserRole
from models.models import User
from schemas.schema import OwnerCreate, OwnerSelfUpdate, OwnerUpdate
from services.owner_service import OwnerService

router = APIRouter(tags=["Owners Management"])

admin_or_staff = has_role(UserRole.ADMIN, UserRole.STAFF)


@cbv(router=router)
class OwnerRoutes:
    @router.get("/profile")
    @safe_handler
    async def get_profile(
        self,
        current_user: User = Depends(has_role(UserRole.OWNER)),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await OwnerService(db).get_my_profile(current_user)

    @router.put("/profile")
    @safe_handler
    async def update_profile(
        self,
        payload: OwnerSelfUpdate,
        current_user: User = Depends(has_role(UserRole.OWNER)),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await OwnerService(db).update_my_profile(current_user, payload)

    @router.get("/stats")
    @safe_handler
    async def stats(
        self,
        current_user: User = Depends(admin_or_staff),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await OwnerService(db).stats()

    @router.post("/", status_code=201)
    @safe_handler
    async def create(
        self,
        payload: OwnerCreate,
        current_user: User = Depends(admin_or_staff),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await OwnerService(db).create_owner(payload)

    @router.get("/")
    @safe_handler
    async def list_owners(
        self,
        page: int = Query(1, ge=1),
        limit: int = Query(10, ge=1, le=100),
        status: str | None = None,
        search: str | None = None,
        current_user: User = Depends(admin_or_staff),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await OwnerService(db).list_owners(
            page=page, limit=limit, status=status, search=search
        )

    @router.get("/{owner_id}")
    @safe_handler
    async def get_owner(
        self,
        owner_id: uuid.UUID,
        current_user: User = Depends(admin_or_staff),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await OwnerService(db).get_owner(owner_id)

    @router.put("/{owner_id}")
    @safe_handler
    async def update_owner(
        self,
        owner_id: uuid.UUID,
        payload: OwnerUpdate,
        current_user: User = Depends(admin_or_staff),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await OwnerService(db).update_owner(owner_id, payload)

    @router.delete("/{owner_id}")
    @safe_handler
    async def delete_owner(
        self,
        owner_id: uuid.UUID,
        current_user: User = Depends(has_role(UserRole.ADMIN)),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await OwnerService(db).delete_owner(owner_id)
