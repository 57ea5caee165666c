"""Rate limiter shared by the routers."""

from slowapi import Limiter
from slowapi.util import get_remote_address
from starlette.requests import Request

from app.dependencies import USER_ID_HEADER


def rate_limit_key(request: Request) -> str:
    """Limit per chat user when the host identifies one, per client address otherwise."""
    user_id = request.headers.get(USER_ID_HEADER, "").strip()
    if user_id:
        return f"user:{user_id}"
    return get_remote_address(request)


limiter = Limiter(key_func=rate_limit_key)
