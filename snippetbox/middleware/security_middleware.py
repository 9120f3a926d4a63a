"""
Middleware for snippetbox, outermost first:

SecurityHeaders -> Recoverer -> RequestLogger -> SessionLoader -> CSRFGuard
-> Authenticate -> route (require_authentication on protected routes)

FastAPI wraps the most recently added middleware around the others, so the
application factory registers them in reverse.
"""

import logging
from http import HTTPStatus
from typing import Callable

import anyio
from fastapi import Request, Response
from starlette.concurrency import run_in_threadpool
from starlette.responses import HTMLResponse

from snippetbox.core.exceptions import AuthenticationRequired
from snippetbox.core.rate_limit_config import get_real_ip
from snippetbox.core.security import CSRF_FORM_FIELD, SAFE_METHODS, SessionManager, verify_csrf_token
from snippetbox.core.templating import error_response

logger = logging.getLogger(__name__)

AUTHENTICATED_USER_KEY = "authenticatedUserID"

SECURITY_HEADERS = {
    "Content-Security-Policy": "default-src 'self'; style-src 'self' fonts.googleapis.com; font-src fonts.gstatic.com",
    "Referrer-Policy": "origin-when-cross-origin",
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "deny",
    "X-XSS-Protection": "0",
}

FORM_CONTENT_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


def bare_error_page(status_code: int) -> HTMLResponse:
    """Error page that needs no templates, for when the app itself failed"""
    phrase = HTTPStatus(status_code).phrase
    body = (
        "<!doctype html><html lang='en'><head><meta charset='utf-8'>"
        f"<title>{phrase}</title></head><body><h1>{phrase}</h1></body></html>"
    )
    response = HTMLResponse(body, status_code=status_code)
    response.headers["Connection"] = "close"
    return response


def bypasses_session(path: str) -> bool:
    """The /ping health check and static assets skip session, CSRF and auth"""
    return path == "/ping" or path.startswith("/static/")


def is_authenticated(request: Request) -> bool:
    return getattr(request.state, "is_authenticated", False)


class SecurityHeaders:
    """Adds security headers to every response, errors included"""

    def __init__(self, server_name: str = "snippetbox"):
        self.server_name = server_name

    async def __call__(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        for name, value in SECURITY_HEADERS.items():
            response.headers[name] = value
        response.headers["Server"] = self.server_name

        if getattr(request.state, "requires_authentication", False):
            response.headers["Cache-Control"] = "no-store"

        return response


class Recoverer:
    """
    Turns anything a handler raises into a bare 500 page and closes the
    connection. Handlers running longer than the write timeout get a 503.
    """

    def __init__(self, write_timeout: float = 10.0):
        self.write_timeout = write_timeout

    async def __call__(self, request: Request, call_next: Callable) -> Response:
        try:
            with anyio.fail_after(self.write_timeout):
                return await call_next(request)
        except TimeoutError:
            logger.error(f"Request exceeded {self.write_timeout}s: {request.method} {request.url.path}")
            return bare_error_page(503)
        except Exception:
            logger.exception(f"Unhandled error: {request.method} {request.url.path}")
            return bare_error_page(500)


class RequestLogger:
    """Log every incoming request"""

    async def __call__(self, request: Request, call_next: Callable) -> Response:
        ip = get_real_ip(request)
        proto = f"HTTP/{request.scope.get('http_version', '1.1')}"
        uri = request.url.path
        if request.url.query:
            uri = f"{uri}?{request.url.query}"
        logger.info(f"received request ip={ip} proto={proto} method={request.method} uri={uri}")
        return await call_next(request)


class SessionLoader:
    """Loads the session before the handler and commits it afterwards"""

    def __init__(self, manager: SessionManager):
        self.manager = manager

    async def __call__(self, request: Request, call_next: Callable) -> Response:
        if bypasses_session(request.url.path):
            return await call_next(request)

        session = await self.manager.load(request.cookies.get(self.manager.cookie_name))
        request.state.session = session

        response = await call_next(request)

        await self.manager.commit(session, response)
        response.headers.append("Vary", "Cookie")
        return response


class CSRFGuard:
    """Rejects unsafe requests whose csrf_token does not match the session"""

    async def __call__(self, request: Request, call_next: Callable) -> Response:
        if request.method in SAFE_METHODS or bypasses_session(request.url.path):
            return await call_next(request)

        submitted = await self._submitted_token(request)
        if not verify_csrf_token(request.state.session, submitted):
            logger.warning(f"CSRF check failed: {request.method} {request.url.path} from {get_real_ip(request)}")
            return error_response(request, 400)

        return await call_next(request)

    async def _submitted_token(self, request: Request) -> str:
        content_type = request.headers.get("content-type", "").lower()
        if not content_type.startswith(FORM_CONTENT_TYPES):
            return ""

        # Cache the raw body first so the handler can decode the form again
        await request.body()
        form = await request.form()
        value = form.get(CSRF_FORM_FIELD, "")
        return value if isinstance(value, str) else ""


class Authenticate:
    """Marks the request authenticated when the session user still exists"""

    async def __call__(self, request: Request, call_next: Callable) -> Response:
        request.state.is_authenticated = False
        if bypasses_session(request.url.path):
            return await call_next(request)

        session = request.state.session
        if session.exists(AUTHENTICATED_USER_KEY):
            user_id = session.get_int(AUTHENTICATED_USER_KEY)
            users = request.app.state.users
            if user_id is not None and await run_in_threadpool(users.exists, user_id):
                request.state.is_authenticated = True
            else:
                logger.info("Dropping session user that no longer exists")
                session.remove(AUTHENTICATED_USER_KEY)

        return await call_next(request)


def require_authentication(request: Request) -> None:
    """Route dependency for pages that need a signed-in user"""
    request.state.requires_authentication = True
    if not is_authenticated(request):
        raise AuthenticationRequired(request.url.path)
