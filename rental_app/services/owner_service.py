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
from models.enums import AuthType, OwnerStatus, UserRole, UserStatus
from models.models import Owner, User
from repos.application_repo import ApplicationRepo
from repos.auth_repo import AuthRepo
from repos.owner_repo import OwnerRepo
from schemas.schema import OwnerOut, OwnerStatsOut

logger = logging.getLogger(__name__)

EMAIL_EXISTS = "User with this email already exists"


class OwnerService:
    def __init__(self, db):
        self.repo: OwnerRepo = OwnerRepo(db)
        self.auth_repo: AuthRepo = AuthRepo(db)
        self.application_repo: ApplicationRepo = ApplicationRepo(db)
        self.paginate: PaginatePage = PaginatePage()
        self.mapper = ORMMapper()

    async def get_owner_or_404(self, owner_id: uuid.UUID) -> Owner:
        owner = await self.repo.get_by_id(owner_id)
        if not owner:
            raise HTTPException(status_code=404, detail="Owner not found")
        return owner

    async def get_profile_or_404(self, current_user: User) -> Owner:
        owner = await self.repo.get_by_user_id(current_user.id)
        if not owner:
            raise HTTPException(status_code=404, detail="Owner profile not found")
        return owner

    async def create_owner(self, payload):
        if await self.auth_repo.email_taken(payload.email) or await self.repo.email_taken(
            payload.email
        ):
            raise HTTPException(status_code=409, detail=EMAIL_EXISTS)

        user = User(
            email=payload.email,
            roles=[UserRole.OWNER.value],
            status=UserStatus.APPROVED,
            auth_type=AuthType.STANDARD,
        )
        user.set_password(payload.password)

        fields = flatten_payload(payload.model_dump(exclude={"password"}))
        owner = Owner(**fields)

        try:
            owner = await self.repo.create_with_user(user, owner)
        except IntegrityError:
            raise HTTPException(status_code=409, detail=EMAIL_EXISTS)

        logger.info(f"Created owner {owner.id} for user {owner.user_id}")
        return send_response(
            201, "Owner created successfully", self.mapper.one(owner, OwnerOut)
        )

    async def list_owners(
        self,
        *,
        page: int,
        limit: int,
        status: str | None = None,
        search: str | None = None,
    ):
        page, limit = self.paginate.normalize(page, limit)
        owners, total = await self.repo.list_all(
            offset=self.paginate.offset(page, limit),
            limit=limit,
            status=validate_enum(status, OwnerStatus, field="status"),
            search=search,
        )
        return send_response(
            200,
            "Owners retrieved successfully",
            {
                "owners": self.mapper.many(owners, OwnerOut),
                "pagination": self.paginate.meta(page, limit, total),
            },
        )

    async def get_owner(self, owner_id: uuid.UUID):
        owner = await self.get_owner_or_404(owner_id)
        return send_response(
            200, "Owner retrieved successfully", self.mapper.one(owner, OwnerOut)
        )

    async def _apply_update(self, owner: Owner, payload) -> Owner:
        data = payload.model_dump(exclude_unset=True)
        new_email = data.get("email")

        if new_email and new_email != owner.email:
            if await self.repo.email_taken(
                new_email, exclude_owner_id=owner.id
            ) or await self.auth_repo.email_taken(
                new_email, exclude_user_id=owner.user_id
            ):
                raise HTTPException(status_code=409, detail=EMAIL_EXISTS)
            owner.user.email = new_email

        for key, value in flatten_payload(data).items():
            if value is None and key not in ("profile_image",):
                continue
            setattr(owner, key, value)

        try:
            return await self.repo.save(owner)
        except IntegrityError:
            raise HTTPException(status_code=409, detail=EMAIL_EXISTS)

    async def update_owner(self, owner_id: uuid.UUID, payload):
        owner = await self.get_owner_or_404(owner_id)
        owner = await self._apply_update(owner, payload)
        return send_response(
            200, "Owner updated successfully", self.mapper.one(owner, OwnerOut)
        )

    async def delete_owner(self, owner_id: uuid.UUID):
        owner = await self.get_owner_or_404(owner_id)
        documents = await self.application_repo.documents_for_owner(owner.id)
        await self.repo.delete_with_user(owner)
        await remove_saved_files(documents)
        logger.info(f"Deleted owner {owner_id} and linked user")
        return send_response(200, "Owner deleted successfully")

    async def get_my_profile(self, current_user: User):
        owner = await self.get_profile_or_404(current_user)
        return send_response(
            200, "Owner profile retrieved", self.mapper.one(owner, OwnerOut)
        )

    async def update_my_profile(self, current_user: User, payload):
        owner = await self.get_profile_or_404(current_user)
        owner = await self._apply_update(owner, payload)
        return send_response(
            200, "Owner profile updated", self.mapper.one(owner, OwnerOut)
        )

    async def stats(self):
        stats = await self.repo.stats()
        return send_response(
            200,
            "Owner statistics retrieved",
            OwnerStatsOut(**stats).model_dump(),
        )
