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
from schemas.schema import ApplicationCreate, ApplicationReview, ApplicationUpdate
from services.application_service import ApplicationService

router = APIRouter(tags=["Rental Applications"])

admin_or_staff = has_role(UserRole.ADMIN, UserRole.STAFF)
tenant_only = has_role(UserRole.TENANT)


@cbv(router=router)
class ApplicationRoutes:
    @router.get("/my-applications")
    @safe_handler
    async def my_applications(
        self,
        page: int = Query(1, ge=1),
        limit: int = Query(10, ge=1, le=100),
        status: str | None = None,
        current_user: User = Depends(tenant_only),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await ApplicationService(db).my_applications(
            current_user, page=page, limit=limit, status=status
        )

    @router.get("/owner/my-apartments-applications")
    @safe_handler
    async def owner_applications(
        self,
        page: int = Query(1, ge=1),
        limit: int = Query(10, ge=1, le=100),
        status: str | None = None,
        current_user: User = Depends(has_role(UserRole.OWNER)),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await ApplicationService(db).owner_applications(
            current_user, page=page, limit=limit, status=status
        )

    @router.get("/admin/stats")
    @safe_handler
    async def stats(
        self,
        current_user: User = Depends(admin_or_staff),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await ApplicationService(db).stats()

    @router.patch("/admin/{application_id}/review")
    @safe_handler
    async def admin_review(
        self,
        application_id: uuid.UUID,
        payload: ApplicationReview,
        current_user: User = Depends(admin_or_staff),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await ApplicationService(db).review_application(
            application_id, current_user, payload, as_admin=True
        )

    @router.delete("/admin/{application_id}")
    @safe_handler
    async def admin_delete(
        self,
        application_id: uuid.UUID,
        current_user: User = Depends(has_role(UserRole.ADMIN)),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await ApplicationService(db).admin_delete_application(application_id)

    @router.post("/", status_code=201)
    @safe_handler
    async def create(
        self,
        data: str = Form(...),
        id_proof: Optional[UploadFile] = File(None),
        income_proof: Optional[UploadFile] = File(None),
        bank_statement: Optional[UploadFile] = File(None),
        references: Optional[List[UploadFile]] = File(None),
        current_user: User = Depends(tenant_only),
        db: AsyncSession = Depends(get_db_async),
    ):
        payload = parse_form_model(data, ApplicationCreate)
        return await ApplicationService(db).create_application(
            current_user,
            payload,
            documents={
                "id_proof": id_proof,
                "income_proof": income_proof,
                "bank_statement": bank_statement,
            },
            references=references,
        )

    @router.get("/")
    @safe_handler
    async def list_applications(
        self,
        page: int = Query(1, ge=1),
        limit: int = Query(10, ge=1, le=100),
        status: str | None = None,
        apartment_id: uuid.UUID | None = None,
        tenant_id: uuid.UUID | None = None,
        sort_order: str = "desc",
        current_user: User = Depends(admin_or_staff),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await ApplicationService(db).list_applications(
            page=page,
            limit=limit,
            status=status,
            apartment_id=apartment_id,
            tenant_id=tenant_id,
            sort_order=sort_order,
        )

    @router.get("/{application_id}")
    @safe_handler
    async def get_application(
        self,
        application_id: uuid.UUID,
        current_user: User = Depends(
            has_role(UserRole.TENANT, UserRole.OWNER, UserRole.ADMIN, UserRole.STAFF)
        ),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await ApplicationService(db).get_application(
            application_id, current_user
        )

    @router.put("/{application_id}")
    @safe_handler
    async def update(
        self,
        application_id: uuid.UUID,
        data: str = Form("{}"),
        id_proof: Optional[UploadFile] = File(None),
        income_proof: Optional[UploadFile] = File(None),
        bank_statement: Optional[UploadFile] = File(None),
        references: Optional[List[UploadFile]] = File(None),
        current_user: User = Depends(tenant_only),
        db: AsyncSession = Depends(get_db_async),
    ):
        payload = parse_form_model(data, ApplicationUpdate)
        return await ApplicationService(db).update_application(
            application_id,
            current_user,
            payload,
            documents={
                "id_proof": id_proof,
                "income_proof": income_proof,
                "bank_statement": bank_statement,
            },
            references=references,
        )

    @router.delete("/{application_id}")
    @safe_handler
    async def delete(
        self,
        application_id: uuid.UUID,
        current_user: User = Depends(has_role(UserRole.TENANT, UserRole.ADMIN)),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await ApplicationService(db).delete_application(
            application_id, current_user
        )

    @router.patch("/{application_id}/review")
    @safe_handler
    async def review(
        self,
        application_id: uuid.UUID,
        payload: ApplicationReview,
        current_user: User = Depends(has_role(UserRole.OWNER)),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await ApplicationService(db).review_application(
            application_id, current_user, payload
        )

    @router.patch("/{application_id}/withdraw")
    @safe_handler
    async def withdraw(
        self,
        application_id: uuid.UUID,
        current_user: User = Depends(tenant_only),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await ApplicationService(db).withdraw_application(
            application_id, current_user
        )
