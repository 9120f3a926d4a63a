# snippetbox/main.py
"""
Snippetbox application factory and server entry point.

create_app() wires storage, sessions, templates, middleware and routes into a
FastAPI app. Tests pass in their own storage and session store; run() starts
uvicorn with the configured listener and timeouts.
"""

import argparse
import logging
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import Optional, Sequence

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import RedirectResponse
from fastapi.staticfiles import StaticFiles
from slowapi.errors import RateLimitExceeded
from starlette.concurrency import run_in_threadpool
from starlette.exceptions import HTTPException as StarletteHTTPException

from snippetbox.core.config import Settings, get_session_secret, settings, validate_required_settings
from snippetbox.core.exceptions import AuthenticationRequired
from snippetbox.core.logging_config import setup_logging
from snippetbox.core.rate_limit_config import RATE_LIMIT_MESSAGE, get_real_ip, limiter
from snippetbox.core.security import SessionManager, create_password_context
from snippetbox.core.templating import create_templates, error_response, precompile_templates, render
from snippetbox.middleware.security_middleware import (
    Authenticate,
    CSRFGuard,
    Recoverer,
    RequestLogger,
    SecurityHeaders,
    SessionLoader
)
from snippetbox.models.database import Database
from snippetbox.models.session_state import MemoryStore, SessionBackend
from snippetbox.models.snippets import SnippetModel
from snippetbox.models.users import UserModel
from snippetbox.routes import router
from snippetbox.services.redis_service import RedisConfig, RedisStore

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown. A template or storage failure here stops the server."""
    config: Settings = app.state.settings
    logger.info(f"🚀 {config.APP_NAME} starting...")

    validate_required_settings(config)
    precompile_templates(app.state.templates)

    if app.state.db is not None:
        await run_in_threadpool(app.state.db.create_all)

    store = app.state.session_manager.store
    await store.initialize()
    health = await store.health_check()
    logger.info(f"✅ Session store {type(store).__name__}: {health['status']}")

    if app.state.db is not None:
        db_health = await run_in_threadpool(app.state.db.health_check)
        logger.info(f"✅ Database: {db_health['status']}")

    yield

    logger.info(f"🛑 {config.APP_NAME} shutting down...")
    await store.shutdown()
    if app.state.db is not None:
        app.state.db.dispose()


def create_session_store(config: Settings) -> SessionBackend:
    if config.REDIS_URL:
        return RedisStore(RedisConfig(url=config.REDIS_URL))
    logger.warning("No REDIS_URL set. Sessions are kept in memory.")
    return MemoryStore()


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return error_response(request, exc.status_code, headers=exc.headers)


async def request_validation_handler(request: Request, exc: RequestValidationError):
    # Field names only; the offending input may be an upload
    fields = ", ".join(".".join(map(str, error.get("loc", ()))) for error in exc.errors())
    logger.warning(f"Malformed submission: {request.method} {request.url.path} fields={fields}")
    return error_response(request, 422)


async def authentication_required_handler(request: Request, exc: AuthenticationRequired):
    logger.info(f"Redirecting anonymous request for {exc.path} to the login page")
    return RedirectResponse("/user/login", status_code=303, headers={"Cache-Control": "no-store"})


async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    logger.warning(f"Rate limit exceeded: {request.method} {request.url.path} from {get_real_ip(request)}")
    return render(
        request,
        "error.html",
        {"status_code": 429, "status_text": "Too Many Requests", "message": RATE_LIMIT_MESSAGE},
        status_code=429,
        headers={"Retry-After": "60"}
    )


def create_app(
    config: Optional[Settings] = None,
    snippets: Optional[SnippetModel] = None,
    users: Optional[UserModel] = None,
    session_store: Optional[SessionBackend] = None
) -> FastAPI:
    config = config or settings
    pwd_context = create_password_context(config.BCRYPT_ROUNDS)

    db = None
    if snippets is None or users is None:
        db = Database(config.DATABASE_DSN, echo=config.DEBUG)
        snippets = snippets or SnippetModel(db)
        users = users or UserModel(db, pwd_context)

    session_manager = SessionManager(
        session_store or create_session_store(config),
        get_session_secret(config),
        lifetime=timedelta(hours=config.SESSION_LIFETIME_HOURS),
        cookie_name=config.SESSION_COOKIE_NAME,
        cookie_secure=config.SESSION_COOKIE_SECURE
    )

    app = FastAPI(
        title=config.APP_NAME,
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None
    )

    app.state.settings = config
    app.state.db = db
    app.state.snippets = snippets
    app.state.users = users
    app.state.pwd_context = pwd_context
    app.state.session_manager = session_manager
    app.state.templates = create_templates(config.TEMPLATE_DIR)

    app.state.limiter = limiter

    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(AuthenticationRequired, authentication_required_handler)
    app.add_exception_handler(RateLimitExceeded, rate_limit_handler)

    # Innermost first: the last one added sees the request first
    app.middleware("http")(Authenticate())
    app.middleware("http")(CSRFGuard())
    app.middleware("http")(SessionLoader(session_manager))
    app.middleware("http")(RequestLogger())
    app.middleware("http")(Recoverer(config.WRITE_TIMEOUT))
    app.middleware("http")(SecurityHeaders(config.APP_NAME))

    app.mount("/static", StaticFiles(directory=config.STATIC_DIR, check_dir=False), name="static")
    app.include_router(router)

    return app


setup_logging("DEBUG" if settings.DEBUG else None)
app = create_app()


def run(argv: Optional[Sequence[str]] = None) -> None:
    """Command line entry point"""
    parser = argparse.ArgumentParser(prog="snippetbox", description="Serve the snippetbox web application")
    parser.add_argument("--host", default=settings.HOST, help="interface to listen on")
    parser.add_argument("--port", type=int, default=settings.PORT, help="port to listen on")
    parser.add_argument("--dsn", default=settings.DATABASE_DSN, help="SQLAlchemy database URL")
    parser.add_argument("--static-dir", default=settings.STATIC_DIR, help="directory of static assets")
    args = parser.parse_args(argv)

    config = settings.model_copy(update={
        "HOST": args.host,
        "PORT": args.port,
        "DATABASE_DSN": args.dsn,
        "STATIC_DIR": args.static_dir,
    })

    # The import-time app already serves the unmodified settings
    served = app if config == settings else create_app(config)

    scheme = "https" if config.TLS_CERT_FILE else "http"
    logger.info(f"🌐 Listening on {scheme}://{config.HOST}:{config.PORT}")

    uvicorn.run(
        served,
        host=config.HOST,
        port=config.PORT,
        server_header=False,
        timeout_keep_alive=config.IDLE_TIMEOUT,
        timeout_graceful_shutdown=config.SHUTDOWN_TIMEOUT,
        ssl_certfile=config.TLS_CERT_FILE,
        ssl_keyfile=config.TLS_KEY_FILE,
        log_config=None
    )


if __name__ == "__main__":
    run()
