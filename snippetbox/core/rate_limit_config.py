# snippetbox/core/rate_limit_config.py
"""
Rate limiting for the credential endpoints (login and signup).

Limits are per client address. Behind a proxy the first X-Forwarded-For hop
(or X-Real-IP) is the client.
"""

from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address


def get_real_ip(request: Request) -> str:
    first_hop = request.headers.get("X-Forwarded-For", "").split(",")[0].strip()
    if first_hop:
        return first_hop
    return request.headers.get("X-Real-IP") or get_remote_address(request)


RATE_LIMITS = {
    "user_login": "10/minute",
    "user_signup": "5/minute",
}


def rate_limit_exempt(request: Request) -> bool:
    """Per-app switch: apps built with RATE_LIMIT_ENABLED=False are never limited"""
    return not request.app.state.settings.RATE_LIMIT_ENABLED


RATE_LIMIT_MESSAGE = "Too many attempts. Please wait a minute and try again."

# Shared by the route decorators; counters are per process, the on/off switch is per app
limiter = Limiter(key_func=get_real_ip)
