import logging
import uuid

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError

from core.file_save import remove_saved_files
from core.mapper import ORMMapper
from core.normalizer import flatten_payload
from core.paginate import PaginatePage
from core.responses import send_response
from core.validate_enum import validate_enum
from models.enums import AuthType, TenantStatus, UserRole, UserStatus
from models.models import Tenant, User
from repos.application_repo import ApplicationRepo
from repos.auth_repo import AuthRepo
from repos.tenant_repo import TenantRepo
from schemas.schema import TenantOut

logger = logging.getLogger(__name__)

EMAIL_EXISTS = "User with this email already exists"


class TenantService:
    def __init__(self, db):
        self.repo: TenantRepo = TenantRepo(db)
        self.auth_repo: AuthRepo = AuthRepo(db)
        self.application_repo: ApplicationRepo = ApplicationRepo(db)
        self.paginate: PaginatePage = PaginatePage()
        self.mapper = ORMMapper()

    async def get_tenant_or_404(self, tenant_id: uuid.UUID) -> Tenant:
        tenant = await self.repo.get_by_id(tenant_id)
        if not tenant:
            raise HTTPException(status_code=404, detail="Tenant not found")
        return tenant

    async def get_profile_or_404(self, current_user: User) -> Tenant:
        tenant = await self.repo.get_by_user_id(current_user.id)
        if not tenant:
            raise HTTPException(status_code=404, detail="Tenant profile not found")
        return tenant

    async def create_tenant(self, payload):
        if await self.auth_repo.email_taken(payload.email) or await self.repo.email_taken(
            payload.email
        ):
            raise HTTPException(status_code=409, detail=EMAIL_EXISTS)

        user = User(
            email=payload.email,
            roles=[UserRole.TENANT.value],
            status=UserStatus.APPROVED,
            auth_type=AuthType.STANDARD,
        )
        user.set_password(payload.password)

        fields = flatten_payload(payload.model_dump(exclude={"password"}))
        tenant = Tenant(**fields)

        try:
            tenant = await self.repo.create_with_user(user, tenant)
        except IntegrityError:
            raise HTTPException(status_code=409, detail=EMAIL_EXISTS)

        logger.info(f"Created tenant {tenant.id} for user {tenant.user_id}")
        return send_response(
            201, "Tenant created successfully", self.mapper.one(tenant, TenantOut)
        )

    async def list_tenants(
        self,
        *,
        page: int,
        limit: int,
        status: str | None = None,
        search: str | None = None,
    ):
        page, limit = self.paginate.normalize(page, limit)
        tenants, total = await self.repo.list_all(
            offset=self.paginate.offset(page, limit),
            limit=limit,
            status=validate_enum(status, TenantStatus, field="status"),
            search=search,
        )
        return send_response(
            200,
            "Tenants retrieved successfully",
            {
                "tenants": self.mapper.many(tenants, TenantOut),
                "pagination": self.paginate.meta(page, limit, total),
            },
        )

    async def get_tenant(self, tenant_id: uuid.UUID):
        tenant = await self.get_tenant_or_404(tenant_id)
        return send_response(
            200, "Tenant retrieved successfully", self.mapper.one(tenant, TenantOut)
        )

    async def _apply_update(self, tenant: Tenant, payload) -> Tenant:
        data = payload.model_dump(exclude_unset=True)
        new_email = data.get("email")

        if new_email and new_email != tenant.email:
            if await self.repo.email_taken(
                new_email, exclude_tenant_id=tenant.id
            ) or await self.auth_repo.email_taken(
                new_email, exclude_user_id=tenant.user_id
            ):
                raise HTTPException(status_code=409, detail=EMAIL_EXISTS)
            tenant.user.email = new_email

        for key, value in flatten_payload(data).items():
            if value is None and key not in ("date_of_birth",):
                continue
            setattr(tenant, key, value)

        try:
            return await self.repo.save(tenant)
        except IntegrityError:
            raise HTTPException(status_code=409, detail=EMAIL_EXISTS)

    async def update_tenant(self, tenant_id: uuid.UUID, payload):
        tenant = await self.get_tenant_or_404(tenant_id)
        tenant = await self._apply_update(tenant, payload)
        return send_response(
            200, "Tenant updated successfully", self.mapper.one(tenant, TenantOut)
        )

    async def delete_tenant(self, tenant_id: uuid.UUID):
        tenant = await self.get_tenant_or_404(tenant_id)
        documents = await self.application_repo.documents_for_tenant(tenant.id)
        await self.repo.delete_with_user(tenant)
        await remove_saved_files(documents)
        logger.info(f"Deleted tenant {tenant_id} and linked user")
        return send_response(200, "Tenant deleted successfully")

    async def get_my_profile(self, current_user: User):
        tenant = await self.get_profile_or_404(current_user)
        return send_response(
            200, "Tenant profile retrieved", self.mapper.one(tenant, TenantOut)
        )

    async def update_my_profile(self, current_user: User, payload):
        tenant = await self.get_profile_or_404(current_user)
        tenant = await self._apply_update(tenant, payload)
        return send_response(
            200, "Tenant profile updated", self.mapper.one(tenant, TenantOut)
        )
