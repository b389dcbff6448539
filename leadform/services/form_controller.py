"""Form state and the validate -> send -> transition submission flow."""
from __future__ import annotations

import uuid
from enum import Enum
from typing import Any, Callable, Dict, List, MutableMapping, Optional, Tuple

from pydantic import TypeAdapter

from leadform.core.config import settings
from leadform.core.exceptions import UnknownFieldError
from leadform.core.logging import bind_submission_id, get_structlog_logger
from leadform.schemas.choices import sub_service_options
from leadform.schemas.lead import BOOLEAN_FIELDS, FIELD_ATTRS, AttributionParams, FormSnapshot
from leadform.services.analytics import EventTracker, track_page_view, utc_timestamp
from leadform.services.attribution import AttributionCapture
from leadform.services.delivery import DeliveryResult, LeadSink, WebhookLeadSink, format_lead_payload
from leadform.services.validation import ErrorMap, first_error_field, validate_field, validate_form

logger = get_structlog_logger(__name__)

SUBMIT_ERROR_MESSAGE = "Something went wrong. Please try again or contact us directly."


class SubmissionStatus(str, Enum):
    IDLE = "idle"
    SUBMITTING = "submitting"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


_BOOL = TypeAdapter(bool)


def _coerce(field_name: str, value: Any) -> Any:
    # Same parsing as FormSnapshot.model_validate: "false"/"no"/"0" are False, junk raises.
    if field_name in BOOLEAN_FIELDS:
        return False if value is None else _BOOL.validate_python(value)
    return "" if value is None else str(value)


class FormController:
    """
    Owns the lead form's values, field errors and submission status.

    The presentation layer reads snapshot/errors/status/submit_error and
    forwards user activity through update_field, blur_field and submit.
    """

    def __init__(
        self,
        attribution: AttributionParams,
        sink: LeadSink,
        *,
        source: Optional[str] = None,
        clock: Callable[[], str] = utc_timestamp,
        tracker: Optional[EventTracker] = None,
        on_focus: Optional[Callable[[str], None]] = None,
        strict_choices: Optional[bool] = None,
    ) -> None:
        self.attribution = attribution
        self.sink = sink
        self.source = source or settings.lead_source
        self.clock = clock
        self.tracker = tracker
        self.on_focus = on_focus
        self.strict_choices = settings.strict_choices if strict_choices is None else strict_choices

        self.snapshot = FormSnapshot()
        self.errors: ErrorMap = {}
        self.status = SubmissionStatus.IDLE
        self.submit_error = ""
        self.focused_field: Optional[str] = None

    @property
    def is_submitting(self) -> bool:
        return self.status is SubmissionStatus.SUBMITTING

    @property
    def is_submitted(self) -> bool:
        return self.status is SubmissionStatus.SUCCEEDED

    @property
    def first_error_field(self) -> Optional[str]:
        return first_error_field(self.errors)

    @property
    def sub_service_options(self) -> Tuple[str, ...]:
        return sub_service_options(self.snapshot.service_type)

    def update_field(self, field_name: str, value: Any) -> None:
        attr = FIELD_ATTRS.get(field_name)
        if attr is None:
            raise UnknownFieldError(field_name)

        value = _coerce(field_name, value)
        setattr(self.snapshot, attr, value)

        # Sub-service options depend on the service type.
        if field_name == "serviceType":
            self.snapshot.sub_service = ""
            self.errors.pop("subService", None)

        if field_name in self.errors:
            self._revalidate(field_name)

    def blur_field(self, field_name: str) -> None:
        if field_name not in FIELD_ATTRS:
            raise UnknownFieldError(field_name)
        self._revalidate(field_name)

    def _revalidate(self, field_name: str) -> None:
        message = validate_field(field_name, self.snapshot.get(field_name))
        if message is None:
            self.errors.pop(field_name, None)
        else:
            self.errors[field_name] = message

    def _track(self, event_name: str, **data: Any) -> None:
        if self.tracker is not None:
            self.tracker.track(event_name, **data)

    def build_payload(self) -> Dict[str, Any]:
        return format_lead_payload(
            snapshot=self.snapshot,
            attribution=self.attribution,
            source=self.source,
            timestamp=self.clock(),
        )

    async def submit(self) -> SubmissionStatus:
        """
        Validate and send the lead.

        Ignored while a request is in flight or after a successful submission.
        Returns the status after the attempt.
        """
        if self.status is SubmissionStatus.SUBMITTING:
            logger.info("lead.submit.ignored", reason="in_flight")
            return self.status
        if self.status is SubmissionStatus.SUCCEEDED:
            logger.info("lead.submit.ignored", reason="already_submitted")
            return self.status

        self.submit_error = ""
        self.status = SubmissionStatus.IDLE

        errors = validate_form(self.snapshot, strict_choices=self.strict_choices)
        self._track("lead_submit_attempt", service_type=self.snapshot.service_type)

        if errors:
            self.errors = errors
            self.focused_field = first_error_field(errors)
            logger.info("lead.validation.failed", fields=sorted(errors), focus=self.focused_field)
            self._track("lead_validation_failed", fields=sorted(errors))
            if self.on_focus is not None and self.focused_field is not None:
                self.on_focus(self.focused_field)
            return self.status

        payload = self.build_payload()
        self.errors = {}
        self.focused_field = None
        self.status = SubmissionStatus.SUBMITTING

        bind_submission_id(uuid.uuid4().hex)
        logger.info(
            "lead.submit.started",
            source=self.source,
            service_type=self.snapshot.service_type,
            utm_source=self.attribution.utm_source,
        )
        try:
            try:
                result = await self.sink.send(payload)
            except Exception as e:
                logger.error("lead.submit.exception", error_type=type(e).__name__, error=str(e), exc_info=True)
                result = DeliveryResult(success=False, error_message=str(e))

            if result.success:
                self.status = SubmissionStatus.SUCCEEDED
                logger.info("lead.submit.succeeded", http_status=result.http_status)
                self._track("lead_submit_success", service_type=self.snapshot.service_type)
            else:
                self.status = SubmissionStatus.FAILED
                self.submit_error = SUBMIT_ERROR_MESSAGE
                logger.warning(
                    "lead.submit.failed",
                    http_status=result.http_status,
                    error=result.error_message,
                )
                self._track("lead_submit_error", http_status=result.http_status)
        finally:
            bind_submission_id(None)

        return self.status


def mount_form(
    location: Optional[str] = "",
    *,
    sink: Optional[LeadSink] = None,
    storage: Optional[MutableMapping[str, str]] = None,
    data_layer: Optional[List[Dict[str, Any]]] = None,
    **controller_kwargs: Any,
) -> FormController:
    """
    Initial render: capture attribution once, record the page view and
    hand back a fresh controller.
    """
    attribution = AttributionCapture(location, storage=storage).capture()
    tracker = EventTracker(data_layer)
    track_page_view(tracker, attribution)
    return FormController(
        attribution,
        sink or WebhookLeadSink(),
        tracker=tracker,
        **controller_kwargs,
    )
