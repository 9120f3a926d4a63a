# snippetbox/services/validation_service.py
"""
Form validation for snippetbox.

A Validator is a plain record of the errors found in one submission. The
check primitives are free functions so handlers can compose them:

    form.validator.check_field(not_blank(form.title), "title", BLANK)

All checks run before the handler branches on valid(), so a submission
reports every failing field at once.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Pattern, Union

# WHATWG HTML5 "valid e-mail address" pattern
EMAIL_RX = re.compile(
    r"^[a-zA-Z0-9.!#$%&'*+/=?^_`{|}~-]+@[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?"
    r"(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)*$"
)

BLANK = "This field cannot be blank"
INVALID_EMAIL = "This field must be a valid email address"
DUPLICATE_EMAIL = "Email address is already in use"
BAD_CREDENTIALS = "Email or password is incorrect"


def too_long(n: int) -> str:
    return f"This field cannot be more than {n} characters long"


def too_short(n: int) -> str:
    return f"This field must be at least {n} characters long"


def not_permitted(*allowed: Any) -> str:
    values = [str(v) for v in allowed]
    if len(values) > 1:
        return f"This field must equal {', '.join(values[:-1])} or {values[-1]}"
    return f"This field must equal {''.join(values)}"


@dataclass
class Validator:
    """Errors collected while validating one form submission"""
    field_errors: Dict[str, str] = field(default_factory=dict)
    non_field_errors: List[str] = field(default_factory=list)

    def valid(self) -> bool:
        return not self.field_errors and not self.non_field_errors

    def add_field_error(self, key: str, message: str) -> None:
        # First error wins
        if key not in self.field_errors:
            self.field_errors[key] = message

    def add_non_field_error(self, message: str) -> None:
        self.non_field_errors.append(message)

    def check_field(self, ok: bool, key: str, message: str) -> None:
        if not ok:
            self.add_field_error(key, message)


def not_blank(value: str) -> bool:
    return value.strip() != ""


def max_chars(value: str, n: int) -> bool:
    return len(value) <= n


def min_chars(value: str, n: int) -> bool:
    return len(value) >= n


def permitted_value(value: Any, *permitted: Any) -> bool:
    return value in permitted


def matches(value: str, rx: Union[str, Pattern]) -> bool:
    if isinstance(rx, str):
        rx = re.compile(rx)
    return rx.fullmatch(value) is not None
