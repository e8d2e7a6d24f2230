import logging
import re
import time
from pathlib import Path

import cloudinary
import cloudinary.api
import cloudinary.uploader
from fastapi import HTTPException, UploadFile

from core.settings import settings

from .threads import run_in_thread

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_TYPES = {"image/jpeg", "image/png", "image/webp", "image/gif"}
IMAGE_TRANSFORMATION = [
    {"width": 800, "height": 600, "crop": "limit", "quality": "auto"}
]


class CloudinaryClient:
    def __init__(self):
        cloudinary.config(
            cloud_name=settings.CLOUDINARY_CLOUD_NAME,
            api_key=settings.CLOUDINARY_API_KEY,
            api_secret=settings.CLOUDINARY_API_SECRET,
            secure=True,
        )

    @property
    def configured(self) -> bool:
        return bool(
            settings.CLOUDINARY_CLOUD_NAME
            and settings.CLOUDINARY_API_KEY
            and settings.CLOUDINARY_API_SECRET
        )

    async def connect(self) -> bool:
        try:
            info = await run_in_thread(cloudinary.api.ping)
            return info.get("status") == "ok"
        except Exception as e:
            raise HTTPException(500, f"Cloudinary connection failed: {e}")

    def build_public_id(self, filename: str | None) -> str:
        stem = Path(filename or "image").stem
        stem = re.sub(r"[^A-Za-z0-9_-]", "_", stem) or "image"
        return f"{int(time.time() * 1000)}_{stem}"

    async def upload_image(self, file: UploadFile, folder: str) -> str:
        if file.content_type not in ALLOWED_IMAGE_TYPES:
            raise HTTPException(
                status_code=400,
                detail=f"File '{file.filename}' is not a supported image type",
            )

        content = await file.read()
        if len(content) > settings.MAX_UPLOAD_BYTES:
            raise HTTPException(
                status_code=400,
                detail=f"File '{file.filename}' exceeds maximum allowed size.",
            )

        try:
            result = await run_in_thread(
                cloudinary.uploader.upload,
                content,
                folder=f"{settings.CLOUDINARY_FOLDER}/{folder}/images",
                public_id=self.build_public_id(file.filename),
                resource_type="image",
                transformation=IMAGE_TRANSFORMATION,
            )
        except Exception as e:
            raise HTTPException(500, f"Image upload failed: {e}")

        return result["secure_url"]

    async def upload_images(self, files: list[UploadFile], folder: str) -> list[str]:
        urls = []
        for file in files:
            urls.append(await self.upload_image(file, folder))
        return urls

    @staticmethod
    def public_id_from_url(url: str) -> str | None:
        _, marker, tail = url.partition("/upload/")
        if not marker or not tail:
            return None

        parts = [p for p in tail.split("/") if p]
        if parts and re.fullmatch(r"v\d+", parts[0]):
            parts = parts[1:]
        if not parts:
            return None

        parts[-1] = parts[-1].rsplit(".", 1)[0]
        return "/".join(parts)

    async def delete_image(self, public_id: str, resource_type: str = "image") -> dict:
        try:
            return await run_in_thread(
                cloudinary.uploader.destroy,
                public_id,
                resource_type=resource_type,
                invalidate=True,
            )
        except Exception as e:
            raise HTTPException(500, f"Failed to delete image: {e}")

    async def safe_delete_by_url(self, url: str):
        public_id = self.public_id_from_url(url)
        if not public_id:
            return
        try:
            await self.delete_image(public_id)
        except HTTPException as e:
            logger.warning(f"Cloudinary delete failed for {public_id}: {e.detail}")


cloudinary_client = CloudinaryClient()
