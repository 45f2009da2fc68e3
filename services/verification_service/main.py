from fastapi import FastAPI

from shared.errors import register_exception_handlers

from .models import SellerVerification  # noqa: F401
from .router import router, public_router

verification_app = FastAPI(title="Seller Verification Service", version="1.0.0")

register_exception_handlers(verification_app)

verification_app.include_router(public_router)
verification_app.include_router(router)
