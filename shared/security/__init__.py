from .dependencies import get_current_user
from .jwt_handler import create_access_token, user_id_from_token
from .rate_limiter import limiter

__all__ = ["create_access_token", "user_id_from_token", "get_current_user", "limiter"]
