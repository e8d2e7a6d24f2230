from typing import Callable

from fastapi import Depends, HTTPException

from models.enums import UserRole
from models.models import User

from .get_current_user import get_current_user

PERMISSION_DENIED = "You don't have permission to perform this task"


class CheckRolePermission:
    def is_superadmin(self, current_user: User) -> bool:
        return current_user.has_any_role(UserRole.SUPERADMIN)

    def is_admin(self, current_user: User) -> bool:
        return current_user.has_any_role(UserRole.ADMIN, UserRole.SUPERADMIN)

    def is_admin_or_staff(self, current_user: User) -> bool:
        return current_user.has_any_role(
            UserRole.ADMIN, UserRole.STAFF, UserRole.SUPERADMIN
        )

    def check_roles(self, current_user: User, roles: tuple[UserRole, ...]):
        if self.is_superadmin(current_user):
            return
        if not current_user.has_any_role(*roles):
            raise HTTPException(status_code=403, detail=PERMISSION_DENIED)


permission = CheckRolePermission()


def has_role(*roles: UserRole) -> Callable:
    async def role_gate(current_user: User = Depends(get_current_user)) -> User:
        permission.check_roles(current_user, roles)
        return current_user

    return role_gate
