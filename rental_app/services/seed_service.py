import logging

from core.settings import settings
from models.enums import AuthType, UserRole, UserStatus
from models.models import User
from repos.auth_repo import AuthRepo

logger = logging.getLogger("startup")


class SeedService:
    def __init__(self, db):
        self.repo: AuthRepo = AuthRepo(db)

    async def seed_default_users(self) -> User | None:
        if await self.repo.count() > 0:
            return None

        if not (settings.SEED_ADMIN_EMAIL and settings.SEED_ADMIN_PASSWORD):
            logger.warning("No users found and no seed admin credentials configured.")
            return None

        admin = User(
            email=settings.SEED_ADMIN_EMAIL,
            roles=[UserRole.SUPERADMIN.value],
            status=UserStatus.APPROVED,
            auth_type=AuthType.STANDARD,
        )
        admin.set_password(settings.SEED_ADMIN_PASSWORD)
        admin = await self.repo.create(admin)
        logger.info(f"Seeded default superadmin {admin.email}")
        return admin
