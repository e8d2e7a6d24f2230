import uuid

from fastapi import APIRouter, Depends, Request
from fastapi_utils.cbv import cbv
from sqlalchemy.ext.asyncio import AsyncSession

from core.check_permission import has_role
from core.get_current_user import get_current_user
from core.get_db import get_db_async
from core.safe_handler import safe_handler
from models.enums import UserRole
from models.models import User
from schemas.schema import (
    AdminResetPasswordInput,
    ChangePasswordInput,
    ResetPasswordInput,
    UserLoginInput,
    UserRegister,
    UserStatusUpdate,
)
from services.auth_service import AuthService

router = APIRouter(tags=["User Authentication"])


@cbv(router)
class UserRoutes:
    @router.post("/register", status_code=201)
    @safe_handler
    async def register(
        self,
        data: UserRegister,
        db: AsyncSession = Depends(get_db_async),
    ):
        return await AuthService(db).register(data)

    @router.post("/login")
    @safe_handler
    async def login(
        self,
        data: UserLoginInput,
        db: AsyncSession = Depends(get_db_async),
    ):
        return await AuthService(db).login(data)

    @router.post("/refresh-token")
    @safe_handler
    async def refresh(
        self,
        request: Request,
        db: AsyncSession = Depends(get_db_async),
    ):
        return await AuthService(db).refresh(request)

    @router.post("/logout")
    @safe_handler
    async def logout(self, db: AsyncSession = Depends(get_db_async)):
        return await AuthService(db).logout()

    @router.get("/me")
    @safe_handler
    async def me(
        self,
        current_user: User = Depends(get_current_user),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await AuthService(db).me(current_user)

    @router.post("/change-password")
    @safe_handler
    async def change_password(
        self,
        payload: ChangePasswordInput,
        current_user: User = Depends(get_current_user),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await AuthService(db).change_password(current_user, payload)

    @router.post("/reset-password")
    @safe_handler
    async def reset_password(
        self,
        payload: ResetPasswordInput,
        current_user: User = Depends(get_current_user),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await AuthService(db).reset_password(current_user, payload)

    @router.post("/admin/reset-password")
    @safe_handler
    async def admin_reset_password(
        self,
        payload: AdminResetPasswordInput,
        current_user: User = Depends(has_role(UserRole.ADMIN)),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await AuthService(db).admin_reset_password(payload)

    @router.patch("/admin/users/{user_id}/status")
    @safe_handler
    async def update_user_status(
        self,
        user_id: uuid.UUID,
        payload: UserStatusUpdate,
        current_user: User = Depends(has_role(UserRole.ADMIN)),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await AuthService(db).update_status(user_id, payload)
