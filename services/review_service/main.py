from fastapi import FastAPI

from shared.errors import register_exception_handlers

from .models import Review  # noqa: F401
from .router import router, public_router

review_app = FastAPI(title="Review Service", version="1.0.0")

register_exception_handlers(review_app)

review_app.include_router(public_router)
review_app.include_router(router)
