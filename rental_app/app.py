import logging

import uvicorn
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from core.catch_error_middleware import ErrorHandlerMiddleware
from core.exception_handler import HTTPErrorHandler, ValidationErrorHandler
from core.lifespan import lifespan
from core.responses import send_response
from core.settings import settings
from routes.apartment_routes import router as apartment_router
from routes.application_routes import router as application_router
from routes.auth_routes import router as user_router
from routes.owner_routes import router as owner_router
from routes.tenant_routes import router as tenant_router

logging.basicConfig(level=logging.INFO)

app = FastAPI(
    lifespan=lifespan,
    title=settings.PROJECT_NAME,
    version="1.0.0",
)

API = settings.API_PREFIX

app.include_router(user_router, prefix=f"{API}/auth")
app.include_router(owner_router, prefix=f"{API}/owners")
app.include_router(tenant_router, prefix=f"{API}/tenants")
app.include_router(apartment_router, prefix=f"{API}/apartments")
app.include_router(application_router, prefix=f"{API}/applications")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health", tags=["System"])
async def health_check():
    return send_response(200, "ok", {"status": "ok"})


@app.get("/", tags=["System"])
async def index():
    return send_response(200, f"Welcome to the {settings.PROJECT_NAME}")


app.add_exception_handler(RequestValidationError, ValidationErrorHandler())
app.add_exception_handler(StarletteHTTPException, HTTPErrorHandler())

app.add_middleware(ErrorHandlerMiddleware)


if __name__ == "__main__":
    uvicorn.run("app:app", host="0.0.0.0", port=settings.PORT, reload=True)
