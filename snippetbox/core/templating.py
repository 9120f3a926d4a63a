# snippetbox/core/templating.py
"""Jinja2 template set and the helpers that turn templates into responses"""

import logging
from datetime import datetime, timezone
from http import HTTPStatus
from typing import Any, Dict, Mapping, Optional

from fastapi import Request
from fastapi.templating import Jinja2Templates
from starlette.responses import HTMLResponse

logger = logging.getLogger(__name__)

ERROR_TEMPLATE = "error.html"


def human_date(value: Optional[datetime]) -> str:
    """Format a timestamp like 17 Mar 2024 at 10:15 (UTC)"""
    if value is None:
        return ""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.strftime("%d %b %Y at %H:%M")


def create_templates(directory: str) -> Jinja2Templates:
    templates = Jinja2Templates(directory=directory)
    templates.env.filters["human_date"] = human_date
    return templates


def precompile_templates(templates: Jinja2Templates) -> int:
    """Parse every template up front. Any syntax error propagates."""
    names = templates.env.list_templates(extensions=["html"])
    for name in names:
        templates.env.get_template(name)
    logger.info(f"Compiled {len(names)} templates")
    return len(names)


def render(
    request: Request,
    name: str,
    context: Dict[str, Any],
    status_code: int = 200,
    headers: Optional[Mapping[str, str]] = None
) -> HTMLResponse:
    templates: Jinja2Templates = request.app.state.templates
    return templates.TemplateResponse(request, name, context, status_code=status_code, headers=headers)


def error_response(
    request: Request,
    status_code: int,
    headers: Optional[Mapping[str, str]] = None
) -> HTMLResponse:
    """Generic error page. Carries only the status, never error details."""
    status = HTTPStatus(status_code)
    return render(
        request,
        ERROR_TEMPLATE,
        {"status_code": status.value, "status_text": status.phrase},
        status_code=status.value,
        headers=headers
    )
