from __future__ import annotations

from fastapi import FastAPI
from starlette.requests import Request
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address


def _rate_limit_key(request: Request) -> str:
    # Prefer the signed-in user forwarded by the dashboard.
    user_id = request.headers.get("x-user-id")
    if user_id:
        return f"user:{user_id}"

    # Fall back to forwarded IP when behind a proxy.
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        ip = forwarded_for.split(",")[0].strip()
        if ip:
            return f"ip:{ip}"

    return f"ip:{get_remote_address(request)}"


limiter = Limiter(key_func=_rate_limit_key)


def init_rate_limiter(app: FastAPI) -> None:
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
