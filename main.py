from fastapi import FastAPI

from shared.config.database import create_tables
from shared.observability import setup_observability

# IMPORTANT: import models so they register with Base
from services.auth_service import models as auth_models  # noqa: F401
from services.verification_service import models as verification_models  # noqa: F401
from services.listing_service import models as listing_models  # noqa: F401
from services.address_service import models as address_models  # noqa: F401
from services.order_service import models as order_models  # noqa: F401
from services.chat_service import models as chat_models  # noqa: F401
from services.review_service import models as review_models  # noqa: F401

from services.auth_service.main import auth_app
from services.verification_service.main import verification_app
from services.listing_service.main import listing_app
from services.address_service.main import address_app
from services.order_service.main import order_app
from services.chat_service.main import chat_app
from services.review_service.main import review_app

app = FastAPI(title="Farm Market")

# --- OBSERVABILITY BOOTSTRAP ---
setup_observability(app)

@app.on_event("startup")
async def startup_event():
    await create_tables()

@app.get("/health")
async def health_check():
    return {"service": "farm_market", "status": "running"}

app.mount("/auth", auth_app)
app.mount("/verifications", verification_app)
app.mount("/listings", listing_app)
app.mount("/addresses", address_app)
app.mount("/orders", order_app)
app.mount("/chat", chat_app)
app.mount("/reviews", review_app)
