import logging
import uuid

from fastapi import HTTPException, UploadFile

from core.check_permission import CheckRolePermission
from core.cloudinary_setup import cloudinary_client
from core.file_save import remove_saved_files
from core.mapper import ORMMapper
from core.normalizer import flatten_payload
from core.paginate import PaginatePage
from core.responses import send_response
from core.validate_enum import validate_enum
from models.enums import ApartmentStatus, AvailabilityStatus
from models.models import Apartment, User
from repos.apartment_repo import SORTABLE_FIELDS, ApartmentRepo
from repos.application_repo import ApplicationRepo
from repos.owner_repo import OwnerRepo
from schemas.schema import ApartmentOut, ApartmentStatsOut

logger = logging.getLogger(__name__)

MAX_IMAGES = 20
IMAGE_FOLDER = "apartments"


class ApartmentService:
    def __init__(self, db):
        self.repo: ApartmentRepo = ApartmentRepo(db)
        self.owner_repo: OwnerRepo = OwnerRepo(db)
        self.application_repo: ApplicationRepo = ApplicationRepo(db)
        self.paginate: PaginatePage = PaginatePage()
        self.permission: CheckRolePermission = CheckRolePermission()
        self.mapper = ORMMapper()

    async def get_apartment_or_404(self, apartment_id: uuid.UUID) -> Apartment:
        apartment = await self.repo.get_by_id(apartment_id)
        if not apartment:
            raise HTTPException(status_code=404, detail="Apartment not found")
        return apartment

    def is_listing_owner(self, apartment: Apartment, current_user: User) -> bool:
        return apartment.owner is not None and apartment.owner.user_id == current_user.id

    def check_can_modify(self, apartment: Apartment, current_user: User):
        if self.is_listing_owner(apartment, current_user):
            return
        if self.permission.is_admin_or_staff(current_user):
            return
        raise HTTPException(
            status_code=403, detail="You are not allowed to modify this apartment"
        )

    def check_can_delete(self, apartment: Apartment, current_user: User):
        if self.is_listing_owner(apartment, current_user):
            return
        if self.permission.is_admin(current_user):
            return
        raise HTTPException(
            status_code=403, detail="You are not allowed to delete this apartment"
        )

    def _real_files(self, images: list[UploadFile] | None) -> list[UploadFile]:
        return [f for f in images or [] if f is not None and f.filename]

    async def create_apartment(
        self,
        current_user: User,
        payload,
        images: list[UploadFile] | None = None,
    ):
        owner = await self.owner_repo.get_by_user_id(current_user.id)
        if not owner:
            raise HTTPException(status_code=404, detail="Owner profile not found")

        files = self._real_files(images)
        if len(files) > MAX_IMAGES:
            raise HTTPException(
                status_code=400, detail=f"A listing can have at most {MAX_IMAGES} images"
            )

        image_urls = await cloudinary_client.upload_images(files, IMAGE_FOLDER)

        fields = flatten_payload(payload.model_dump())
        fields["images"] = image_urls
        fields["owner_id"] = owner.id

        apartment = await self.repo.create(fields)
        apartment = await self.get_apartment_or_404(apartment.id)
        logger.info(f"Owner {owner.id} created apartment {apartment.id}")
        return send_response(
            201,
            "Apartment created successfully",
            self.mapper.one(apartment, ApartmentOut),
        )

    async def list_apartments(
        self,
        *,
        page: int,
        limit: int,
        status: str | None = None,
        availability: str | None = None,
        city: str | None = None,
        state: str | None = None,
        min_rent: float | None = None,
        max_rent: float | None = None,
        bedrooms: int | None = None,
        bathrooms: int | None = None,
        search: str | None = None,
        sort_by: str = "created_at",
        sort_order: str = "desc",
    ):
        if sort_by not in SORTABLE_FIELDS:
            allowed = ", ".join(SORTABLE_FIELDS)
            raise HTTPException(
                status_code=400, detail=f"Invalid sort_by. Allowed values: {allowed}"
            )
        if sort_order not in ("asc", "desc"):
            raise HTTPException(
                status_code=400, detail="Invalid sort_order. Allowed values: asc, desc"
            )
        if min_rent is not None and max_rent is not None and min_rent > max_rent:
            raise HTTPException(
                status_code=400, detail="min_rent cannot be greater than max_rent"
            )

        page, limit = self.paginate.normalize(page, limit)
        apartments, total = await self.repo.list_all(
            offset=self.paginate.offset(page, limit),
            limit=limit,
            sort_by=sort_by,
            sort_order=sort_order,
            status=validate_enum(status, ApartmentStatus, field="status"),
            availability=validate_enum(
                availability, AvailabilityStatus, field="availability"
            ),
            city=city,
            state=state,
            min_rent=min_rent,
            max_rent=max_rent,
            bedrooms=bedrooms,
            bathrooms=bathrooms,
            search=search,
        )
        return send_response(
            200,
            "Apartments retrieved successfully",
            {
                "apartments": self.mapper.many(apartments, ApartmentOut),
                "pagination": self.paginate.meta(page, limit, total),
            },
        )

    async def my_apartments(self, current_user: User, *, page: int, limit: int):
        owner = await self.owner_repo.get_by_user_id(current_user.id)
        if not owner:
            raise HTTPException(status_code=404, detail="Owner profile not found")

        page, limit = self.paginate.normalize(page, limit)
        apartments, total = await self.repo.list_all(
            offset=self.paginate.offset(page, limit),
            limit=limit,
            owner_id=owner.id,
        )
        return send_response(
            200,
            "Apartments retrieved successfully",
            {
                "apartments": self.mapper.many(apartments, ApartmentOut),
                "pagination": self.paginate.meta(page, limit, total),
            },
        )

    async def get_apartment(self, apartment_id: uuid.UUID):
        apartment = await self.get_apartment_or_404(apartment_id)
        return send_response(
            200,
            "Apartment retrieved successfully",
            self.mapper.one(apartment, ApartmentOut),
        )

    async def update_apartment(
        self,
        apartment_id: uuid.UUID,
        current_user: User,
        payload,
        images: list[UploadFile] | None = None,
    ):
        apartment = await self.get_apartment_or_404(apartment_id)
        self.check_can_modify(apartment, current_user)

        files = self._real_files(images)
        if len(apartment.images or []) + len(files) > MAX_IMAGES:
            raise HTTPException(
                status_code=400, detail=f"A listing can have at most {MAX_IMAGES} images"
            )

        values = {
            key: value
            for key, value in flatten_payload(
                payload.model_dump(exclude_unset=True)
            ).items()
            if value is not None
        }

        if files:
            new_urls = await cloudinary_client.upload_images(files, IMAGE_FOLDER)
            values["images"] = [*(apartment.images or []), *new_urls]

        apartment = await self.repo.update(apartment, values)
        return send_response(
            200,
            "Apartment updated successfully",
            self.mapper.one(apartment, ApartmentOut),
        )

    async def delete_apartment(self, apartment_id: uuid.UUID, current_user: User):
        apartment = await self.get_apartment_or_404(apartment_id)
        self.check_can_delete(apartment, current_user)

        documents = await self.application_repo.documents_for_apartment(apartment.id)
        await self.repo.delete(apartment)
        await remove_saved_files(documents)
        logger.info(f"Apartment {apartment_id} deleted by user {current_user.id}")
        return send_response(200, "Apartment deleted successfully")

    async def remove_image(
        self, apartment_id: uuid.UUID, current_user: User, image_url: str
    ):
        apartment = await self.get_apartment_or_404(apartment_id)
        self.check_can_modify(apartment, current_user)

        if image_url not in (apartment.images or []):
            raise HTTPException(status_code=404, detail="Image not found on apartment")

        await cloudinary_client.safe_delete_by_url(image_url)

        remaining = [url for url in apartment.images if url != image_url]
        apartment = await self.repo.update(apartment, {"images": remaining})
        return send_response(
            200,
            "Image removed successfully",
            self.mapper.one(apartment, ApartmentOut),
        )

    async def stats(self):
        stats = await self.repo.stats()
        return send_response(
            200,
            "Apartment statistics retrieved",
            ApartmentStatsOut(**stats).model_dump(),
        )
