from __future__ import annotations

from typing import Any, Dict, Optional


class BaseLeadFormException(Exception):
    """Base exception for all lead form errors."""

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)


class ConfigurationError(BaseLeadFormException):
    """Invalid or missing configuration."""
    def __init__(self, message: str = "Invalid configuration", **kwargs):
        super().__init__(message, **kwargs)


class UnknownFieldError(BaseLeadFormException):
    """Intent referenced a field the form does not have."""
    def __init__(self, field_name: str, **kwargs):
        super().__init__(
            f"Unknown form field: {field_name!r}",
            code="unknown_field",
            details={"field": field_name},
            **kwargs,
        )
        self.field_name = field_name
