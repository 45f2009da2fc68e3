import os
from dotenv import load_dotenv

load_dotenv()


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


# --- Security ---
JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60"))

# --- Observability ---
SERVICE_NAME = os.getenv("SERVICE_NAME", "farm_market")
TRACING_ENABLED = _flag("TRACING_ENABLED", "false")
OTLP_ENDPOINT = os.getenv("OTLP_ENDPOINT", "http://localhost:4317")

# --- Rate limiting ---
RATE_LIMIT_ENABLED = _flag("RATE_LIMIT_ENABLED", "true")
CHECKOUT_RATE_LIMIT = os.getenv("CHECKOUT_RATE_LIMIT", "10/minute")

# --- Outbound HTTP ---
GEOCODER_URL = os.getenv("GEOCODER_URL", "https://nominatim.openstreetmap.org/search")
GEOCODER_API_KEY = os.getenv("GEOCODER_API_KEY", "")
HTTP_TIMEOUT_SECONDS = float(os.getenv("HTTP_TIMEOUT_SECONDS", "10"))

# --- Marketplace rules ---
MAX_ADDRESSES_PER_USER = int(os.getenv("MAX_ADDRESSES_PER_USER", "4"))
DEFAULT_QUANTITY_CAP = int(os.getenv("DEFAULT_QUANTITY_CAP", "10"))
MAX_MESSAGE_LENGTH = int(os.getenv("MAX_MESSAGE_LENGTH", "500"))
NEARBY_RADIUS_KM = float(os.getenv("NEARBY_RADIUS_KM", "25"))

_support_user = os.getenv("SUPPORT_USER_ID", "")
SUPPORT_USER_ID = int(_support_user) if _support_user else None
