# snippetbox/models/forms.py
"""Submitted form state, re-rendered verbatim when validation fails"""

from dataclasses import dataclass, field
from typing import Optional

from snippetbox.services.validation_service import (
    BLANK,
    EMAIL_RX,
    INVALID_EMAIL,
    Validator,
    matches,
    max_chars,
    min_chars,
    not_blank,
    not_permitted,
    permitted_value,
    too_long,
    too_short,
)

EXPIRY_CHOICES = (1, 7, 365)
TITLE_MAX_CHARS = 100
PASSWORD_MIN_CHARS = 8


def parse_expires(raw: str) -> Optional[int]:
    """Decode the expires radio value; anything but a plain integer is None"""
    raw = raw.strip()
    if not raw.isdigit() or not raw.isascii():
        return None
    return int(raw)


@dataclass
class SnippetCreateForm:
    title: str = ""
    content: str = ""
    expires: Optional[int] = 365
    validator: Validator = field(default_factory=Validator)

    def validate(self) -> bool:
        v = self.validator
        v.check_field(not_blank(self.title), "title", BLANK)
        v.check_field(max_chars(self.title, TITLE_MAX_CHARS), "title", too_long(TITLE_MAX_CHARS))
        v.check_field(not_blank(self.content), "content", BLANK)
        v.check_field(permitted_value(self.expires, *EXPIRY_CHOICES), "expires", not_permitted(*EXPIRY_CHOICES))
        return v.valid()


@dataclass
class UserSignupForm:
    name: str = ""
    email: str = ""
    password: str = ""
    validator: Validator = field(default_factory=Validator)

    def validate(self) -> bool:
        v = self.validator
        v.check_field(not_blank(self.name), "name", BLANK)
        v.check_field(not_blank(self.email), "email", BLANK)
        v.check_field(matches(self.email, EMAIL_RX), "email", INVALID_EMAIL)
        v.check_field(not_blank(self.password), "password", BLANK)
        v.check_field(min_chars(self.password, PASSWORD_MIN_CHARS), "password", too_short(PASSWORD_MIN_CHARS))
        return v.valid()


@dataclass
class UserLoginForm:
    email: str = ""
    password: str = ""
    validator: Validator = field(default_factory=Validator)

    def validate(self) -> bool:
        v = self.validator
        v.check_field(not_blank(self.email), "email", BLANK)
        v.check_field(matches(self.email, EMAIL_RX), "email", INVALID_EMAIL)
        v.check_field(not_blank(self.password), "password", BLANK)
        return v.valid()
