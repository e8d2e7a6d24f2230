import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from services.seed_service import SeedService

from .cloudinary_setup import cloudinary_client
from .get_db import AsyncSessionLocal, Base, async_engine
from .settings import settings

logger = logging.getLogger("startup")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Waiting for application startup...")

    if settings.AUTO_CREATE_TABLES:
        try:
            async with async_engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
            logger.info("Database tables ensured.")
        except Exception:
            logger.exception("Failed to create database tables")

    if cloudinary_client.configured:
        try:
            await cloudinary_client.connect()
            logger.info("Cloudinary connected.")
        except Exception:
            logger.exception("Cannot connect to Cloudinary")
    else:
        logger.warning("Cloudinary credentials missing, image uploads will fail.")

    try:
        async with AsyncSessionLocal() as db:
            await SeedService(db).seed_default_users()
    except Exception:
        logger.exception("Failed to seed default users")

    logger.info("Application startup complete.")

    yield

    await async_engine.dispose()
    logger.info("Database engine disposed.")
