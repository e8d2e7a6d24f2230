import uuid

from fastapi import APIRouter, Depends, Query
from fastapi_utils.cbv import cbv
from sqlalchemy.ext.asyncio import AsyncSession

from core.check_permission import has_role
from core.get_db import get_db_async
from core.safe_handler import safe_handler
from models.enums import UserRole
from models.models import User
from schemas.schema import TenantCreate, TenantSelfUpdate, TenantUpdate
from services.tenant_service import TenantService

router = APIRouter(tags=["Tenants Management"])

admin_or_staff = has_role(UserRole.ADMIN, UserRole.STAFF)


@cbv(router=router)
class TenantRoutes:
    @router.get("/profile")
    @safe_handler
    async def get_profile(
        self,
        current_user: User = Depends(has_role(UserRole.TENANT)),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await TenantService(db).get_my_profile(current_user)

    @router.put("/profile")
    @safe_handler
    async def update_profile(
        self,
        payload: TenantSelfUpdate,
        current_user: User = Depends(has_role(UserRole.TENANT)),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await TenantService(db).update_my_profile(current_user, payload)

    @router.post("/", status_code=201)
    @safe_handler
    async def create(
        self,
        payload: TenantCreate,
        current_user: User = Depends(admin_or_staff),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await TenantService(db).create_tenant(payload)

    @router.get("/")
    @safe_handler
    async def list_tenants(
        self,
        page: int = Query(1, ge=1),
        limit: int = Query(10, ge=1, le=100),
        status: str | None = None,
        search: str | None = None,
        current_user: User = Depends(admin_or_staff),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await TenantService(db).list_tenants(
            page=page, limit=limit, status=status, search=search
        )

    @router.get("/{tenant_id}")
    @safe_handler
    async def get_tenant(
        self,
        tenant_id: uuid.UUID,
        current_user: User = Depends(admin_or_staff),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await TenantService(db).get_tenant(tenant_id)

    @router.put("/{tenant_id}")
    @safe_handler
    async def update_tenant(
        self,
        tenant_id: uuid.UUID,
        payload: TenantUpdate,
        current_user: User = Depends(admin_or_staff),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await TenantService(db).update_tenant(tenant_id, payload)

    @router.delete("/{tenant_id}")
    @safe_handler
    async def delete_tenant(
        self,
        tenant_id: uuid.UUID,
        current_user: User = Depends(has_role(UserRole.ADMIN)),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await TenantService(db).delete_tenant(tenant_id)
