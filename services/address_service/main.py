from fastapi import FastAPI

from shared.errors import register_exception_handlers

from .models import ShippingAddress  # noqa: F401
from .router import router, public_router

address_app = FastAPI(title="Address Service", version="1.0.0")

register_exception_handlers(address_app)

address_app.include_router(public_router)
address_app.include_router(router)
