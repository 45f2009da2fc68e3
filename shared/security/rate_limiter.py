from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from shared.config import settings

from .jwt_handler import user_id_from_token


def user_id_or_ip(request: Request) -> str:
    """Rate-limit key: the signed-in user, else the client address.

    Checkout is limited per buyer so that several buyers behind one NAT
    do not share a budget.
    """
    scheme, _, token = request.headers.get("Authorization", "").partition(" ")
    user_id = user_id_from_token(token) if scheme.lower() == "bearer" else None
    if user_id is not None:
        return f"user:{user_id}"
    return f"ip:{get_remote_address(request)}"


limiter = Limiter(key_func=user_id_or_ip, enabled=settings.RATE_LIMIT_ENABLED)
