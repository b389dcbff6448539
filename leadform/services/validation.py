"""Field validators and the whole-form validation pass."""
from __future__ import annotations

import re
from typing import Any, Callable, Dict, Optional

from leadform.schemas.choices import CITIES, SERVICE_TYPES, TIME_SLOTS, sub_service_options
from leadform.schemas.lead import FIELD_ORDER, FormSnapshot

ErrorMap = Dict[str, str]

_EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
# Optional +1, area code 2-9 first digit, common separators.
_US_PHONE_PATTERN = re.compile(
    r"^[+]?[1]?[\s.-]?[(]?[2-9][0-8][0-9][)]?[\s.-]?[0-9]{3}[\s.-]?[0-9]{4}$"
)
_NON_DIGITS = re.compile(r"\D+")

MIN_NAME_LENGTH = 2
MIN_PHONE_DIGITS = 10


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def _name_validator(label: str) -> Callable[[Any], Optional[str]]:
    def validate(value: Any) -> Optional[str]:
        trimmed = _text(value).strip()
        if not trimmed:
            return f"{label} is required"
        if len(trimmed) < MIN_NAME_LENGTH:
            return f"{label} must be at least {MIN_NAME_LENGTH} characters"
        return None

    return validate


def validate_phone(value: Any) -> Optional[str]:
    trimmed = _text(value).strip()
    if not trimmed:
        return "Phone number is required"
    if len(_NON_DIGITS.sub("", trimmed)) < MIN_PHONE_DIGITS:
        return f"Phone number must be at least {MIN_PHONE_DIGITS} digits"
    if not _US_PHONE_PATTERN.fullmatch(trimmed):
        return "Please enter a valid US phone number"
    return None


def validate_email(value: Any) -> Optional[str]:
    trimmed = _text(value).strip()
    if not trimmed:
        return "Email address is required"
    if not _EMAIL_PATTERN.fullmatch(trimmed):
        return "Please enter a valid email address"
    return None


def _selection_validator(message: str) -> Callable[[Any], Optional[str]]:
    def validate(value: Any) -> Optional[str]:
        if not _text(value):
            return message
        return None

    return validate


def validate_consent(value: Any) -> Optional[str]:
    if not value:
        return "You must agree to be contacted to proceed"
    return None


FIELD_VALIDATORS: Dict[str, Callable[[Any], Optional[str]]] = {
    "firstName": _name_validator("First name"),
    "lastName": _name_validator("Last name"),
    "phone": validate_phone,
    "email": validate_email,
    "city": _selection_validator("Please select a city"),
    "serviceType": _selection_validator("Please select a service type"),
    "subService": _selection_validator("Please select a specific service"),
    "preferredTime": _selection_validator("Please select a preferred time"),
    "consent": validate_consent,
}


def validate_field(field_name: str, value: Any) -> Optional[str]:
    """
    Validate one field's raw value.
    Returns an error message, or None when the value is valid.
    Fields without a rule (notes, whatsappOptIn) are always valid.
    """
    validator = FIELD_VALIDATORS.get(field_name)
    if validator is None:
        return None
    return validator(value)


def _choice_errors(snapshot: FormSnapshot, errors: ErrorMap) -> ErrorMap:
    found: ErrorMap = {}
    if "city" not in errors and snapshot.city not in CITIES:
        found["city"] = "Please select a valid city"
    if "serviceType" not in errors and snapshot.service_type not in SERVICE_TYPES:
        found["serviceType"] = "Please select a valid service type"
    if "subService" not in errors and snapshot.sub_service not in sub_service_options(snapshot.service_type):
        found["subService"] = "Please select a valid specific service"
    if "preferredTime" not in errors and snapshot.preferred_time not in TIME_SLOTS:
        found["preferredTime"] = "Please select a valid preferred time"
    return found


def validate_form(snapshot: FormSnapshot, *, strict_choices: bool = False) -> ErrorMap:
    """
    Validate every field of a snapshot independently.
    Only failing fields appear in the result; an empty dict means the form is clean.
    With strict_choices, selections outside the offered choices are rejected too.
    """
    errors: ErrorMap = {}
    for field_name in FIELD_ORDER:
        message = validate_field(field_name, snapshot.get(field_name))
        if message is not None:
            errors[field_name] = message

    if strict_choices:
        errors.update(_choice_errors(snapshot, errors))

    return errors


def first_error_field(errors: ErrorMap) -> Optional[str]:
    """Errored field that comes first in the form layout."""
    for field_name in FIELD_ORDER:
        if field_name in errors:
            return field_name
    return None


def format_phone_number(phone_number: str) -> str:
    """Format a US number for display; unrecognised input is returned as-is."""
    digits = _NON_DIGITS.sub("", phone_number or "")

    if len(digits) == 10:
        return f"({digits[:3]}) {digits[3:6]}-{digits[6:]}"

    if len(digits) == 11 and digits.startswith("1"):
        return f"+1 ({digits[1:4]}) {digits[4:7]}-{digits[7:]}"

    return phone_number
