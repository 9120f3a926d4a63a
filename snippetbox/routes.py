# snippetbox/routes.py
"""
Page handlers. Each one reads its form, validates it, calls storage and then
either renders a page or redirects (303) after a successful POST.
"""

import logging
import re
from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import PlainTextResponse, RedirectResponse
from starlette.responses import Response

from snippetbox.core.exceptions import DuplicateEmailError, InvalidCredentialsError, NoRecordError
from snippetbox.core.rate_limit_config import RATE_LIMITS, limiter, rate_limit_exempt
from snippetbox.core.security import ensure_csrf_token, get_password_hash
from snippetbox.core.templating import error_response, render
from snippetbox.middleware.security_middleware import (
    AUTHENTICATED_USER_KEY,
    is_authenticated,
    require_authentication
)
from snippetbox.models.forms import SnippetCreateForm, UserLoginForm, UserSignupForm, parse_expires
from snippetbox.services.validation_service import BAD_CREDENTIALS, DUPLICATE_EMAIL

logger = logging.getLogger(__name__)

router = APIRouter()

FLASH_KEY = "flash"
SNIPPET_ID_RX = re.compile(r"[1-9][0-9]*")
MAX_SNIPPET_ID = 2**63 - 1
LATEST_SNIPPETS = 10


def template_data(request: Request, **extra: Any) -> Dict[str, Any]:
    """Values every page gets, plus the page's own"""
    session = request.state.session
    data = {
        "current_year": datetime.now().year,
        "flash": session.pop_str(FLASH_KEY),
        "is_authenticated": is_authenticated(request),
        "csrf_token": ensure_csrf_token(session),
    }
    data.update(extra)
    return data


def page(request: Request, name: str, status_code: int = 200, **extra: Any) -> Response:
    return render(request, f"pages/{name}", template_data(request, **extra), status_code=status_code)


def see_other(url: str) -> RedirectResponse:
    return RedirectResponse(url, status_code=303)


def parse_snippet_id(raw: str) -> Optional[int]:
    if not SNIPPET_ID_RX.fullmatch(raw):
        return None
    value = int(raw)
    return value if value <= MAX_SNIPPET_ID else None


@router.get("/ping", response_class=PlainTextResponse)
def ping():
    return "OK"


@router.get("/")
def home(request: Request):
    snippets = request.app.state.snippets.latest(LATEST_SNIPPETS)
    return page(request, "home.html", snippets=snippets)


@router.get("/snippet/view/{snippet_id}")
def snippet_view(request: Request, snippet_id: str):
    parsed = parse_snippet_id(snippet_id)
    if parsed is None:
        return error_response(request, 404)

    try:
        snippet = request.app.state.snippets.get(parsed)
    except NoRecordError:
        return error_response(request, 404)

    return page(request, "view.html", snippet=snippet)


@router.get("/snippet/create", dependencies=[Depends(require_authentication)])
def snippet_create(request: Request):
    return page(request, "create.html", form=SnippetCreateForm())


@router.post("/snippet/create", dependencies=[Depends(require_authentication)])
def snippet_create_post(
    request: Request,
    title: str = Form(""),
    content: str = Form(""),
    expires: str = Form("")
):
    form = SnippetCreateForm(title=title, content=content, expires=parse_expires(expires))
    if not form.validate():
        return page(request, "create.html", status_code=422, form=form)

    snippet_id = request.app.state.snippets.insert(form.title, form.content, form.expires)
    logger.info(f"Snippet {snippet_id} created")

    request.state.session.put(FLASH_KEY, "Snippet successfully created!")
    return see_other(f"/snippet/view/{snippet_id}")


@router.get("/user/signup")
def user_signup(request: Request):
    return page(request, "signup.html", form=UserSignupForm())


@router.post("/user/signup")
@limiter.limit(RATE_LIMITS["user_signup"], exempt_when=rate_limit_exempt)
def user_signup_post(
    request: Request,
    name: str = Form(""),
    email: str = Form(""),
    password: str = Form("")
):
    form = UserSignupForm(name=name, email=email, password=password)
    if not form.validate():
        return page(request, "signup.html", status_code=422, form=form)

    hashed_password = get_password_hash(form.password, request.app.state.pwd_context)
    try:
        request.app.state.users.insert(form.name, form.email, hashed_password)
    except DuplicateEmailError:
        form.validator.add_field_error("email", DUPLICATE_EMAIL)
        return page(request, "signup.html", status_code=422, form=form)

    request.state.session.put(FLASH_KEY, "Your signup was successful. Please log in.")
    return see_other("/user/login")


@router.get("/user/login")
def user_login(request: Request):
    return page(request, "login.html", form=UserLoginForm())


@router.post("/user/login")
@limiter.limit(RATE_LIMITS["user_login"], exempt_when=rate_limit_exempt)
def user_login_post(
    request: Request,
    email: str = Form(""),
    password: str = Form("")
):
    form = UserLoginForm(email=email, password=password)
    if not form.validate():
        return page(request, "login.html", status_code=422, form=form)

    try:
        user_id = request.app.state.users.authenticate(form.email, form.password)
    except InvalidCredentialsError:
        form.validator.add_non_field_error(BAD_CREDENTIALS)
        return page(request, "login.html", status_code=422, form=form)

    session = request.state.session
    session.renew_token()
    session.put(AUTHENTICATED_USER_KEY, user_id)
    logger.info(f"User {user_id} logged in")
    return see_other("/snippet/create")


@router.post("/user/logout", dependencies=[Depends(require_authentication)])
def user_logout_post(request: Request):
    session = request.state.session
    session.renew_token()
    session.remove(AUTHENTICATED_USER_KEY)
    session.put(FLASH_KEY, "You've been logged out successfully!")
    return see_other("/")
