import asyncio
from typing import Any, Dict, List, Optional

import pytest

from leadform.schemas.lead import FIELD_ORDER, AttributionParams, FormSnapshot
from leadform.services.delivery import DeliveryResult, LeadSink
from leadform.services.form_controller import FormController

VALID_FORM = {
    "firstName": "Jo",
    "lastName": "Smith",
    "phone": "(555) 234-5678",
    "email": "jo@example.com",
    "city": "Tampa",
    "serviceType": "Chiropractic",
    "subService": "Adjustment",
    "preferredTime": "10:00 AM",
    "consent": True,
}

FIXED_TIMESTAMP = "2024-05-01T12:00:00Z"


class RecordingSink(LeadSink):
    """Lead sink double that records payloads and returns a canned result."""

    def __init__(
        self,
        result: Optional[DeliveryResult] = None,
        error: Optional[Exception] = None,
        gate: Optional[asyncio.Event] = None,
    ) -> None:
        self.result = result or DeliveryResult(success=True, http_status=200)
        self.error = error
        self.gate = gate
        self.payloads: List[Dict[str, Any]] = []

    async def send(self, payload: Dict[str, Any]) -> DeliveryResult:
        self.payloads.append(payload)
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return self.result


def fill(controller: FormController, data: Dict[str, Any]) -> None:
    for field_name in FIELD_ORDER:
        if field_name in data:
            controller.update_field(field_name, data[field_name])


@pytest.fixture
def valid_snapshot() -> FormSnapshot:
    return FormSnapshot.model_validate(VALID_FORM)


@pytest.fixture
def attribution() -> AttributionParams:
    return AttributionParams(utm_source="google", utm_medium="cpc")


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def controller(attribution: AttributionParams, sink: RecordingSink) -> FormController:
    return FormController(attribution, sink, clock=lambda: FIXED_TIMESTAMP, strict_choices=False)
