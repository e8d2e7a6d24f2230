import logging
import uuid

from fastapi import HTTPException, UploadFile
from sqlalchemy.exc import IntegrityError

from core.check_permission import CheckRolePermission
from core.file_save import remove_saved_file, remove_saved_files, save_uploaded_file
from core.mapper import ORMMapper
from core.paginate import PaginatePage
from core.responses import send_response
from core.validate_enum import validate_enum
from models.enums import (
    ApartmentStatus,
    ApplicationStatus,
    AvailabilityStatus,
)
from models.models import Application, User
from models.utils import utcnow
from repos.apartment_repo import ApartmentRepo
from repos.application_repo import ApplicationRepo
from repos.owner_repo import OwnerRepo
from repos.tenant_repo import TenantRepo
from schemas.schema import ApplicationOut, ApplicationStatsOut

logger = logging.getLogger(__name__)

DUPLICATE_APPLICATION = "You already have an active application for this apartment"
DOCUMENT_FIELDS = ("id_proof", "income_proof", "bank_statement")

REVIEW_TRANSITIONS = {
    ApplicationStatus.PENDING: {
        ApplicationStatus.UNDER_REVIEW,
        ApplicationStatus.APPROVED,
        ApplicationStatus.REJECTED,
    },
    ApplicationStatus.UNDER_REVIEW: {
        ApplicationStatus.APPROVED,
        ApplicationStatus.REJECTED,
    },
}


class ApplicationService:
    def __init__(self, db):
        self.repo: ApplicationRepo = ApplicationRepo(db)
        self.apartment_repo: ApartmentRepo = ApartmentRepo(db)
        self.tenant_repo: TenantRepo = TenantRepo(db)
        self.owner_repo: OwnerRepo = OwnerRepo(db)
        self.paginate: PaginatePage = PaginatePage()
        self.permission: CheckRolePermission = CheckRolePermission()
        self.mapper = ORMMapper()

    async def get_application_or_404(self, application_id: uuid.UUID) -> Application:
        application = await self.repo.get_by_id(application_id)
        if not application:
            raise HTTPException(status_code=404, detail="Application not found")
        return application

    async def get_tenant_profile(self, current_user: User):
        tenant = await self.tenant_repo.get_by_user_id(current_user.id)
        if not tenant:
            raise HTTPException(status_code=404, detail="Tenant profile not found")
        return tenant

    async def get_owner_profile(self, current_user: User):
        owner = await self.owner_repo.get_by_user_id(current_user.id)
        if not owner:
            raise HTTPException(status_code=404, detail="Owner profile not found")
        return owner

    def is_creator(self, application: Application, current_user: User) -> bool:
        return application.tenant is not None and application.tenant.user_id == current_user.id

    def is_apartment_owner(self, application: Application, current_user: User) -> bool:
        apartment = application.apartment
        return (
            apartment is not None
            and apartment.owner is not None
            and apartment.owner.user_id == current_user.id
        )

    async def _save_documents(
        self,
        documents: dict[str, UploadFile | None],
        references: list[UploadFile] | None,
    ) -> dict:
        saved = {}
        try:
            for field in DOCUMENT_FIELDS:
                file = documents.get(field)
                if file is not None and file.filename:
                    saved[field] = await save_uploaded_file(file)

            reference_files = [f for f in references or [] if f is not None and f.filename]
            if reference_files:
                saved["references"] = [
                    await save_uploaded_file(f) for f in reference_files
                ]
        except HTTPException:
            await self._discard_documents(saved)
            raise
        return saved

    async def _discard_documents(self, saved: dict):
        for field in DOCUMENT_FIELDS:
            await remove_saved_file(saved.get(field))
        await remove_saved_files(saved.get("references", []))

    def _paginated(self, message: str, applications, page: int, limit: int, total: int):
        return send_response(
            200,
            message,
            {
                "applications": self.mapper.many(applications, ApplicationOut),
                "pagination": self.paginate.meta(page, limit, total),
            },
        )

    async def create_application(
        self,
        current_user: User,
        payload,
        documents: dict[str, UploadFile | None] | None = None,
        references: list[UploadFile] | None = None,
    ):
        tenant = await self.get_tenant_profile(current_user)

        apartment = await self.apartment_repo.get_by_id(payload.apartment_id)
        if not apartment:
            raise HTTPException(status_code=404, detail="Apartment not found")

        if apartment.availability_status != AvailabilityStatus.AVAILABLE:
            raise HTTPException(
                status_code=400, detail="Apartment is not available for applications"
            )
        if apartment.status != ApartmentStatus.ACTIVE:
            raise HTTPException(status_code=400, detail="Apartment is not active")

        tenant_id, apartment_id = tenant.id, apartment.id
        if await self.repo.find_active(tenant_id, apartment_id):
            raise HTTPException(status_code=409, detail=DUPLICATE_APPLICATION)

        saved = await self._save_documents(documents or {}, references)

        data = payload.model_dump(exclude={"apartment_id"})
        data.update(saved)
        data.update(
            tenant_id=tenant_id,
            apartment_id=apartment_id,
            status=ApplicationStatus.PENDING,
        )

        try:
            application = await self.repo.create(data)
        except IntegrityError:
            await self._discard_documents(saved)
            logger.warning(
                f"Duplicate application rejected for tenant {tenant_id} "
                f"and apartment {apartment_id}"
            )
            raise HTTPException(status_code=409, detail=DUPLICATE_APPLICATION)

        application = await self.get_application_or_404(application.id)
        logger.info(f"Tenant {tenant_id} applied for apartment {apartment_id}")
        return send_response(
            201,
            "Application submitted successfully",
            self.mapper.one(application, ApplicationOut),
        )

    async def my_applications(
        self, current_user: User, *, page: int, limit: int, status: str | None = None
    ):
        tenant = await self.get_tenant_profile(current_user)
        page, limit = self.paginate.normalize(page, limit)
        applications, total = await self.repo.list_all(
            offset=self.paginate.offset(page, limit),
            limit=limit,
            tenant_id=tenant.id,
            status=validate_enum(status, ApplicationStatus, field="status"),
        )
        return self._paginated(
            "Applications retrieved successfully", applications, page, limit, total
        )

    async def owner_applications(
        self, current_user: User, *, page: int, limit: int, status: str | None = None
    ):
        owner = await self.get_owner_profile(current_user)
        page, limit = self.paginate.normalize(page, limit)
        applications, total = await self.repo.list_all(
            offset=self.paginate.offset(page, limit),
            limit=limit,
            owner_id=owner.id,
            status=validate_enum(status, ApplicationStatus, field="status"),
        )
        return self._paginated(
            "Applications retrieved successfully", applications, page, limit, total
        )

    async def list_applications(
        self,
        *,
        page: int,
        limit: int,
        status: str | None = None,
        apartment_id: uuid.UUID | None = None,
        tenant_id: uuid.UUID | None = None,
        sort_order: str = "desc",
    ):
        if sort_order not in ("asc", "desc"):
            raise HTTPException(
                status_code=400, detail="Invalid sort_order. Allowed values: asc, desc"
            )

        page, limit = self.paginate.normalize(page, limit)
        applications, total = await self.repo.list_all(
            offset=self.paginate.offset(page, limit),
            limit=limit,
            status=validate_enum(status, ApplicationStatus, field="status"),
            apartment_id=apartment_id,
            tenant_id=tenant_id,
            sort_order=sort_order,
        )
        return self._paginated(
            "Applications retrieved successfully", applications, page, limit, total
        )

    async def get_application(self, application_id: uuid.UUID, current_user: User):
        application = await self.get_application_or_404(application_id)

        if not (
            self.is_creator(application, current_user)
            or self.is_apartment_owner(application, current_user)
            or self.permission.is_admin_or_staff(current_user)
        ):
            raise HTTPException(
                status_code=403, detail="You are not allowed to view this application"
            )

        return send_response(
            200,
            "Application retrieved successfully",
            self.mapper.one(application, ApplicationOut),
        )

    def check_tenant_can_edit(self, application: Application, current_user: User):
        if not self.is_creator(application, current_user):
            raise HTTPException(
                status_code=403, detail="You can only modify your own applications"
            )
        if application.status != ApplicationStatus.PENDING:
            raise HTTPException(
                status_code=400, detail="Only pending applications can be modified"
            )

    async def update_application(
        self,
        application_id: uuid.UUID,
        current_user: User,
        payload,
        documents: dict[str, UploadFile | None] | None = None,
        references: list[UploadFile] | None = None,
    ):
        application = await self.get_application_or_404(application_id)
        self.check_tenant_can_edit(application, current_user)

        values = {
            key: value
            for key, value in payload.model_dump(exclude_unset=True).items()
            if value is not None
        }
        saved = await self._save_documents(documents or {}, references)
        replaced = {
            field: getattr(application, field) for field in saved if field in DOCUMENT_FIELDS
        }
        replaced_refs = list(application.references or []) if "references" in saved else []
        values.update(saved)

        application = await self.repo.update(application, values)

        await self._discard_documents({**replaced, "references": replaced_refs})
        return send_response(
            200,
            "Application updated successfully",
            self.mapper.one(application, ApplicationOut),
        )

    async def withdraw_application(self, application_id: uuid.UUID, current_user: User):
        application = await self.get_application_or_404(application_id)
        self.check_tenant_can_edit(application, current_user)

        application = await self.repo.update(
            application, {"status": ApplicationStatus.WITHDRAWN}
        )
        return send_response(
            200,
            "Application withdrawn successfully",
            self.mapper.one(application, ApplicationOut),
        )

    async def _delete(self, application: Application):
        stored = {field: getattr(application, field) for field in DOCUMENT_FIELDS}
        stored["references"] = list(application.references or [])
        await self.repo.delete(application)
        await self._discard_documents(stored)

    async def delete_application(self, application_id: uuid.UUID, current_user: User):
        application = await self.get_application_or_404(application_id)

        if not self.permission.is_admin(current_user):
            self.check_tenant_can_edit(application, current_user)

        await self._delete(application)
        logger.info(f"Application {application_id} deleted by user {current_user.id}")
        return send_response(200, "Application deleted successfully")

    async def admin_delete_application(self, application_id: uuid.UUID):
        application = await self.get_application_or_404(application_id)
        await self._delete(application)
        return send_response(200, "Application deleted successfully")

    async def review_application(
        self,
        application_id: uuid.UUID,
        current_user: User,
        payload,
        *,
        as_admin: bool = False,
    ):
        application = await self.get_application_or_404(application_id)

        if not as_admin and not self.is_apartment_owner(application, current_user):
            raise HTTPException(
                status_code=403,
                detail="You can only review applications for your own apartments",
            )

        allowed = REVIEW_TRANSITIONS.get(application.status, set())
        if payload.status not in allowed:
            raise HTTPException(
                status_code=400,
                detail=(
                    f"Cannot move application from {application.status.value} "
                    f"to {payload.status.value}"
                ),
            )

        approved = payload.status == ApplicationStatus.APPROVED
        if (
            approved
            and application.apartment.availability_status
            != AvailabilityStatus.AVAILABLE
        ):
            raise HTTPException(
                status_code=400,
                detail="Apartment is no longer available; application cannot be approved",
            )

        values = {
            "status": payload.status,
            "reviewed_by_id": current_user.id,
            "reviewed_at": utcnow(),
        }
        if payload.review_notes is not None:
            values["review_notes"] = payload.review_notes

        application = await self.repo.review(
            application, values, rent_apartment=approved
        )
        if approved:
            logger.info(
                f"Application {application.id} approved, "
                f"apartment {application.apartment_id} marked rented"
            )

        return send_response(
            200,
            "Application reviewed successfully",
            self.mapper.one(application, ApplicationOut),
        )

    async def stats(self):
        stats = await self.repo.stats()
        return send_response(
            200,
            "Application statistics retrieved",
            ApplicationStatsOut(**stats).model_dump(),
        )
