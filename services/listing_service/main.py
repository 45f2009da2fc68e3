from fastapi import FastAPI

from shared.errors import register_exception_handlers

from .models import Listing, ListingImage  # noqa: F401
from .router import router, public_router

listing_app = FastAPI(
    title="Listing Service",
    version="1.0.0"
)

register_exception_handlers(listing_app)

listing_app.include_router(public_router)
listing_app.include_router(router)
