# snippetbox/core/exceptions.py
"""
Exceptions used across snippetbox.

Storage errors are raised by the models and translated by the handlers into
404 responses or form errors. Everything else that escapes a handler ends up
in the recoverer middleware as a 500. None of these messages reach clients.
"""

from typing import Any, Dict, Optional


class SnippetboxError(Exception):
    """Base exception; `details` carries extra context for the logs"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details: Dict[str, Any] = dict(details or {})

    def __str__(self) -> str:
        if not self.details:
            return self.message
        context = ", ".join(f"{k}={v}" for k, v in self.details.items())
        return f"{self.message} ({context})"


# Storage

class NoRecordError(SnippetboxError):
    """No live snippet with the requested id"""

    def __init__(self, message: str = "no matching record found", record_id: Optional[int] = None):
        super().__init__(message, {"id": record_id} if record_id is not None else None)
        self.record_id = record_id


class DuplicateEmailError(SnippetboxError):
    """Signup with an email address that already has an account"""

    def __init__(self, message: str = "duplicate email", email: Optional[str] = None):
        super().__init__(message)
        self.email = email


class InvalidCredentialsError(SnippetboxError):
    """Unknown email or wrong password. Deliberately does not say which."""

    def __init__(self, message: str = "invalid credentials"):
        super().__init__(message)


# Backing services and configuration

class ServiceError(SnippetboxError):
    """A backing service (session backend, database) failed"""

    def __init__(
        self,
        message: str,
        service_name: Optional[str] = None,
        operation: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        context = {"service": service_name, "operation": operation}
        context.update(details or {})
        super().__init__(message, {k: v for k, v in context.items() if v is not None})
        self.service_name = service_name
        self.operation = operation


class RedisServiceError(ServiceError):
    """A Redis command of the session backend failed"""

    def __init__(self, message: str, key: Optional[str] = None, operation: Optional[str] = None):
        # Keys embed the session token; keep only a prefix
        super().__init__(message, service_name="Redis", operation=operation,
                         details={"key": key[:16]} if key else None)
        self.key = key


class ConfigurationError(SnippetboxError):
    """Settings that make a component unusable"""

    def __init__(self, message: str, component: Optional[str] = None):
        super().__init__(message, {"component": component} if component else None)
        self.component = component


class SessionError(SnippetboxError):
    """Session state that cannot be decoded"""


# Request flow

class AuthenticationRequired(SnippetboxError):
    """Raised by routes that need a signed-in user"""

    def __init__(self, path: str = ""):
        super().__init__("authentication required", {"path": path} if path else None)
        self.path = path
