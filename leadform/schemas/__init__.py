# leadform/schemas/__init__.py
"""
Pydantic models and choice catalogs for the lead form.
"""

from leadform.schemas.choices import City, ServiceType, TimeSlot, sub_service_options
from leadform.schemas.lead import FIELD_ORDER, AttributionParams, FormSnapshot

__all__ = [
    "AttributionParams",
    "City",
    "FIELD_ORDER",
    "FormSnapshot",
    "ServiceType",
    "TimeSlot",
    "sub_service_options",
]
