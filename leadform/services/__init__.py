# leadform/services/__init__.py
"""
Form logic organized by concern.
"""

# Import key service functions and classes for convenient access
from leadform.services.attribution import AttributionCapture
from leadform.services.delivery import DeliveryResult, LeadSink, WebhookLeadSink
from leadform.services.form_controller import (
    SUBMIT_ERROR_MESSAGE,
    FormController,
    SubmissionStatus,
    mount_form,
)
from leadform.services.validation import validate_field, validate_form

__all__ = [
    # Attribution
    "AttributionCapture",
    # Delivery
    "DeliveryResult",
    "LeadSink",
    "WebhookLeadSink",
    # Controller
    "FormController",
    "SUBMIT_ERROR_MESSAGE",
    "SubmissionStatus",
    "mount_form",
    # Validation
    "validate_field",
    "validate_form",
]
