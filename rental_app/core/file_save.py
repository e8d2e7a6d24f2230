import os
import re
import time
import uuid

import aiofiles
from fastapi import HTTPException, UploadFile

from core.settings import settings

ALLOWED_DOCUMENT_EXTENSIONS = (".pdf", ".doc", ".docx", ".jpg", ".jpeg", ".png")
CHUNK_SIZE = 1024 * 64


def _safe_name(filename: str) -> str:
    base = os.path.basename(filename)
    return re.sub(r"[^A-Za-z0-9._-]", "_", base)


async def save_uploaded_file(file: UploadFile, subdir: str = "documents") -> str:
    if not file.filename or not file.filename.lower().endswith(
        ALLOWED_DOCUMENT_EXTENSIONS
    ):
        raise HTTPException(
            status_code=400,
            detail="Only PDF, DOC, DOCX, JPG or PNG files are allowed",
        )

    target_dir = os.path.join(settings.UPLOAD_DIR, subdir)
    os.makedirs(target_dir, exist_ok=True)

    name = f"{int(time.time() * 1000)}_{uuid.uuid4().hex[:8]}_{_safe_name(file.filename)}"
    file_path = os.path.join(target_dir, name)

    written = 0
    too_large = False
    async with aiofiles.open(file_path, "wb") as out_file:
        while True:
            content = await file.read(CHUNK_SIZE)
            if not content:
                break
            written += len(content)
            if written > settings.MAX_UPLOAD_BYTES:
                too_large = True
                break
            await out_file.write(content)

    if too_large:
        os.remove(file_path)
        raise HTTPException(
            status_code=400,
            detail=f"File '{file.filename}' exceeds maximum allowed size.",
        )

    return file_path.replace(os.sep, "/")


async def remove_saved_file(file_path: str | None):
    if file_path and os.path.isfile(file_path):
        os.remove(file_path)


async def remove_saved_files(file_paths: list[str]):
    for file_path in file_paths:
        await remove_saved_file(file_path)
