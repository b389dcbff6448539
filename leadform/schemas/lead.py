from __future__ import annotations

from typing import Any, Dict, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Canonical field order; decides which errored field gets focus first.
FIELD_ORDER: Tuple[str, ...] = (
    "firstName",
    "lastName",
    "phone",
    "whatsappOptIn",
    "email",
    "city",
    "serviceType",
    "subService",
    "preferredTime",
    "notes",
    "consent",
)

BOOLEAN_FIELDS = frozenset({"whatsappOptIn", "consent"})

UTM_KEYS: Tuple[str, ...] = (
    "utm_source",
    "utm_medium",
    "utm_campaign",
    "utm_content",
    "utm_term",
)


class FormSnapshot(BaseModel):
    """Every lead field at one point in time, keyed by canonical wire name."""

    model_config = ConfigDict(populate_by_name=True)

    first_name: str = Field(default="", alias="firstName")
    last_name: str = Field(default="", alias="lastName")
    phone: str = Field(default="", alias="phone")
    whatsapp_opt_in: bool = Field(default=False, alias="whatsappOptIn")
    email: str = Field(default="", alias="email")
    city: str = Field(default="", alias="city")
    service_type: str = Field(default="", alias="serviceType")
    sub_service: str = Field(default="", alias="subService")
    preferred_time: str = Field(default="", alias="preferredTime")
    notes: str = Field(default="", alias="notes")
    consent: bool = Field(default=False, alias="consent")

    @field_validator(
        "first_name",
        "last_name",
        "phone",
        "email",
        "city",
        "service_type",
        "sub_service",
        "preferred_time",
        "notes",
        mode="before",
    )
    @classmethod
    def _none_as_empty(cls, v):
        return "" if v is None else v

    @field_validator("whatsapp_opt_in", "consent", mode="before")
    @classmethod
    def _none_as_false(cls, v):
        return False if v is None else v

    def get(self, field_name: str) -> Any:
        return getattr(self, FIELD_ATTRS[field_name])

    def to_form_data(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


FIELD_ATTRS: Dict[str, str] = {
    info.alias: attr for attr, info in FormSnapshot.model_fields.items()
}


class AttributionParams(BaseModel):
    """Campaign-tracking values read once from the landing URL."""

    model_config = ConfigDict(frozen=True)

    utm_source: str = ""
    utm_medium: str = ""
    utm_campaign: str = ""
    utm_content: str = ""
    utm_term: str = ""
