from fastapi import FastAPI

from shared.errors import register_exception_handlers

from .models import User  # noqa: F401  registers model with SQLAlchemy Base
from .router import router, public_router

auth_app = FastAPI(
    title="Auth Service",
    version="1.0.0",
    description="JWT authentication, profiles and nicknames.",
)

register_exception_handlers(auth_app)

auth_app.include_router(router)
auth_app.include_router(public_router)
