import logging

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse

from core.mapper import ORMMapper
from core.responses import envelope, send_response
from core.settings import settings
from core.validators import (
    REFRESH,
    create_access_token,
    create_refresh_token,
    decode_token,
)
from models.enums import AuthType, UserRole, UserStatus
from models.models import User
from models.utils import utcnow
from repos.auth_repo import AuthRepo
from schemas.schema import UserOut

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Email or password is incorrect"


class AuthService:
    def __init__(self, db):
        self.repo: AuthRepo = AuthRepo(db)
        self.mapper = ORMMapper()

    def _set_refresh_cookie(self, response: JSONResponse, refresh_token: str):
        response.set_cookie(
            key=settings.REFRESH_COOKIE_NAME,
            value=refresh_token,
            httponly=True,
            secure=settings.SECURE_COOKIES,
            samesite="lax",
            max_age=settings.REFRESH_EXPIRE_DAYS * 86400,
        )

    async def register(self, data):
        existing = await self.repo.get_by_email(data.email)
        if existing:
            if existing.status == UserStatus.DECLINED:
                raise HTTPException(
                    status_code=409,
                    detail="Your request was previously declined with this email",
                )
            raise HTTPException(status_code=409, detail="Email address taken")

        user = User(
            email=data.email,
            roles=[UserRole.CLIENT.value],
            status=UserStatus.PENDING,
            auth_type=AuthType.STANDARD,
        )
        user.set_password(data.password)
        user = await self.repo.create(user)
        logger.info(f"Registered user {user.id}")

        return send_response(
            201, "Registration successful", self.mapper.one(user, UserOut)
        )

    async def login(self, data):
        user = await self.repo.get_by_email(data.email)
        if not user or user.status == UserStatus.DECLINED:
            raise HTTPException(status_code=401, detail=INVALID_CREDENTIALS)

        if user.status == UserStatus.BLOCKED:
            raise HTTPException(
                status_code=403, detail="Your user status is suspended"
            )

        if user.auth_type != AuthType.STANDARD:
            raise HTTPException(
                status_code=403,
                detail=f"This account signs in with {user.auth_type.value}",
            )

        if not user.check_password(data.password):
            raise HTTPException(status_code=401, detail=INVALID_CREDENTIALS)

        user.last_logged_in = utcnow()
        user = await self.repo.save(user)

        access_token = create_access_token(user)
        refresh_token = create_refresh_token(user)

        response = send_response(
            200,
            "Login successful",
            {
                "access_token": access_token,
                "token_type": "bearer",
                "user": self.mapper.one(user, UserOut),
            },
        )
        self._set_refresh_cookie(response, refresh_token)
        return response

    async def refresh(self, request: Request):
        refresh_token = request.cookies.get(settings.REFRESH_COOKIE_NAME)
        if not refresh_token:
            raise HTTPException(status_code=401, detail="No refresh token")

        user_id = decode_token(refresh_token, token_type=REFRESH)
        user = await self.repo.by_id(user_id)
        if not user:
            raise HTTPException(status_code=401, detail="User not found")

        return send_response(
            200,
            "Access token refreshed",
            {"access_token": create_access_token(user), "token_type": "bearer"},
        )

    async def logout(self):
        response = JSONResponse(envelope(True, "Logged out successfully"))
        response.delete_cookie(
            key=settings.REFRESH_COOKIE_NAME,
            path="/",
            secure=settings.SECURE_COOKIES,
            httponly=True,
            samesite="lax",
        )
        return response

    async def me(self, current_user: User):
        return send_response(
            200, "User retrieved", self.mapper.one(current_user, UserOut)
        )

    async def change_password(self, current_user: User, payload):
        if not current_user.check_password(payload.old_password):
            raise HTTPException(
                status_code=403, detail="Current password is incorrect"
            )

        current_user.set_password(payload.new_password)
        current_user.password_changed_at = utcnow()
        await self.repo.save(current_user)
        return send_response(200, "Password changed successfully")

    async def reset_password(self, current_user: User, payload):
        current_user.set_password(payload.new_password)
        current_user.password_changed_at = utcnow()
        await self.repo.save(current_user)
        return send_response(200, "Password reset successfully")

    async def admin_reset_password(self, payload):
        user = await self.repo.by_id(payload.user_id)
        if not user:
            raise HTTPException(status_code=404, detail="User not found")

        if user.status in (UserStatus.BLOCKED, UserStatus.PENDING):
            raise HTTPException(
                status_code=403,
                detail=f"Cannot reset password for a {user.status.value} user",
            )

        user.set_password(payload.new_password)
        user.password_changed_at = utcnow()
        await self.repo.save(user)
        return send_response(200, "Password reset successfully")

    async def update_status(self, user_id, payload):
        user = await self.repo.by_id(user_id)
        if not user:
            raise HTTPException(status_code=404, detail="User not found")

        user.status = payload.status
        user = await self.repo.save(user)
        return send_response(
            200, "User status updated", self.mapper.one(user, UserOut)
        )
