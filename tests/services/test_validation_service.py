# tests/services/test_validation_service.py
"""
Tests for the Validator, its check primitives and the form validation rules.
"""

import pytest

from snippetbox.models.forms import SnippetCreateForm, UserLoginForm, UserSignupForm, parse_expires
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


class TestValidator:
    """Test error collection"""

    def test_new_validator_is_valid(self):
        assert Validator().valid()

    def test_first_field_error_wins(self):
        v = Validator()
        v.add_field_error("title", "first")
        v.add_field_error("title", "second")

        assert v.field_errors == {"title": "first"}
        assert not v.valid()

    def test_non_field_errors_make_it_invalid(self):
        v = Validator()
        v.add_non_field_error("Email or password is incorrect")

        assert not v.valid()
        assert v.non_field_errors == ["Email or password is incorrect"]

    def test_check_field(self):
        v = Validator()
        v.check_field(True, "a", "never")
        v.check_field(False, "b", "broken")

        assert v.field_errors == {"b": "broken"}


class TestChecks:
    """Test the check primitives"""

    @pytest.mark.parametrize("value, expected", [
        ("hello", True),
        ("", False),
        ("   ", False),
        ("\t\n", False),
    ])
    def test_not_blank(self, value, expected):
        assert not_blank(value) is expected

    def test_char_limits_count_characters_not_bytes(self):
        assert max_chars("é" * 100, 100)
        assert not max_chars("é" * 101, 100)
        assert min_chars("日本語日本語日本", 8)
        assert not min_chars("pa$$", 8)

    def test_permitted_value(self):
        assert permitted_value(7, 1, 7, 365)
        assert not permitted_value(4, 1, 7, 365)
        assert not permitted_value(None, 1, 7, 365)

    @pytest.mark.parametrize("email, expected", [
        ("bob@example.com", True),
        ("alice.smith+tag@mail.example.co.uk", True),
        ("bob@localhost", True),
        ("bob@example.", False),
        ("bob.example.com", False),
        ("bob@-example.com", False),
        ("", False),
        ("bob@example.com\n", False),
    ])
    def test_email_pattern(self, email, expected):
        assert matches(email, EMAIL_RX) is expected

    def test_matches_accepts_string_pattern(self):
        assert matches("abc123", r"[a-z]+[0-9]+")
        assert not matches("abc123x", r"[a-z]+[0-9]+")

    def test_messages(self):
        assert too_long(100) == "This field cannot be more than 100 characters long"
        assert too_short(8) == "This field must be at least 8 characters long"
        assert not_permitted(1, 7, 365) == "This field must equal 1, 7 or 365"
        assert not_permitted(5) == "This field must equal 5"


class TestParseExpires:
    @pytest.mark.parametrize("raw, expected", [
        ("365", 365),
        (" 7 ", 7),
        ("", None),
        ("abc", None),
        ("-1", None),
        ("1.5", None),
        ("٣", None),
    ])
    def test_parse_expires(self, raw, expected):
        assert parse_expires(raw) == expected


class TestSnippetCreateForm:
    def test_valid(self):
        form = SnippetCreateForm(title="Hello World", content="Happy Birthday people", expires=365)
        assert form.validate()

    def test_defaults_to_one_year(self):
        assert SnippetCreateForm().expires == 365

    def test_all_errors_reported_at_once(self):
        form = SnippetCreateForm(title="", content="", expires=4)

        assert not form.validate()
        assert form.validator.field_errors == {
            "title": BLANK,
            "content": BLANK,
            "expires": "This field must equal 1, 7 or 365",
        }

    def test_title_limit(self):
        assert SnippetCreateForm(title="x" * 100, content="c", expires=1).validate()

        form = SnippetCreateForm(title="x" * 101, content="c", expires=1)
        assert not form.validate()
        assert form.validator.field_errors["title"] == too_long(100)


class TestUserSignupForm:
    def test_valid(self):
        assert UserSignupForm(name="Bob", email="bob@example.com", password="validPa$$word").validate()

    def test_blank_email_reports_blank_not_invalid(self):
        form = UserSignupForm(name="Bob", email="", password="validPa$$word")

        assert not form.validate()
        assert form.validator.field_errors["email"] == BLANK

    def test_invalid_email(self):
        form = UserSignupForm(name="Bob", email="bob@example.", password="validPa$$word")

        form.validate()
        assert form.validator.field_errors["email"] == INVALID_EMAIL

    def test_short_password(self):
        form = UserSignupForm(name="Bob", email="bob@example.com", password="pa$$")

        form.validate()
        assert form.validator.field_errors["password"] == too_short(8)


class TestUserLoginForm:
    def test_valid(self):
        assert UserLoginForm(email="alice@example.com", password="pa55word").validate()

    def test_no_length_rule_on_login(self):
        assert UserLoginForm(email="alice@example.com", password="x").validate()

    def test_blank_fields(self):
        form = UserLoginForm()

        assert not form.validate()
        assert form.validator.field_errors == {"email": BLANK, "password": BLANK}
