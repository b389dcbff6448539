import asyncio

import pytest
from aiohttp import test_utils, web
from pydantic import ValidationError

from leadform.core.exceptions import UnknownFieldError
from leadform.schemas.lead import AttributionParams
from leadform.services.analytics import EventTracker
from leadform.services.delivery import DeliveryResult, WebhookLeadSink
from leadform.services.form_controller import (
    SUBMIT_ERROR_MESSAGE,
    FormController,
    SubmissionStatus,
    mount_form,
)

from tests.conftest import FIXED_TIMESTAMP, VALID_FORM, RecordingSink, fill


def test_initial_state(controller):
    assert controller.status is SubmissionStatus.IDLE
    assert controller.errors == {}
    assert controller.submit_error == ""
    assert controller.snapshot.first_name == ""
    assert controller.snapshot.consent is False


def test_update_field_sets_value_without_validating(controller):
    controller.update_field("firstName", "J")
    assert controller.snapshot.first_name == "J"
    assert controller.errors == {}


def test_update_field_coerces_missing_values(controller):
    controller.update_field("notes", None)
    controller.update_field("whatsappOptIn", None)
    assert controller.snapshot.notes == ""
    assert controller.snapshot.whatsapp_opt_in is False


def test_update_field_parses_boolean_strings(controller):
    controller.update_field("consent", "false")
    controller.update_field("whatsappOptIn", "no")
    assert controller.snapshot.consent is False
    assert controller.snapshot.whatsapp_opt_in is False

    controller.update_field("consent", "true")
    controller.update_field("whatsappOptIn", "yes")
    assert controller.snapshot.consent is True
    assert controller.snapshot.whatsapp_opt_in is True


def test_update_field_rejects_unreadable_boolean(controller):
    controller.update_field("consent", True)
    with pytest.raises(ValidationError):
        controller.update_field("consent", "maybe")
    assert controller.snapshot.consent is True


def test_update_field_unknown_name(controller):
    with pytest.raises(UnknownFieldError) as exc_info:
        controller.update_field("middleName", "Q")
    assert exc_info.value.code == "unknown_field"

    with pytest.raises(UnknownFieldError):
        controller.blur_field("middleName")


def test_blur_always_validates(controller):
    controller.blur_field("email")
    assert controller.errors == {"email": "Email address is required"}

    controller.update_field("email", "jo@example.com")
    controller.blur_field("email")
    assert "email" not in controller.errors


def test_update_revalidates_only_errored_field(controller):
    controller.blur_field("phone")
    assert controller.errors["phone"] == "Phone number is required"

    controller.update_field("phone", "555")
    assert controller.errors["phone"] == "Phone number must be at least 10 digits"

    controller.update_field("phone", "555-234-5678")
    assert "phone" not in controller.errors

    # No existing error, so typing does not surface one yet.
    controller.update_field("lastName", "S")
    assert "lastName" not in controller.errors


def test_service_type_change_resets_sub_service_and_its_error(controller):
    controller.update_field("serviceType", "Chiropractic")
    controller.blur_field("subService")
    assert "subService" in controller.errors

    controller.update_field("subService", "Adjustment")
    controller.update_field("serviceType", "Med Spa")

    assert controller.snapshot.sub_service == ""
    assert "subService" not in controller.errors
    assert controller.sub_service_options == ("Botox", "Fillers", "Laser Treatment", "Facials")


@pytest.mark.asyncio
async def test_submit_clean_form_succeeds(controller, sink):
    tracker_events = []
    controller.tracker = EventTracker(tracker_events, clock=lambda: FIXED_TIMESTAMP)
    fill(controller, VALID_FORM)

    status = await controller.submit()

    assert status is SubmissionStatus.SUCCEEDED
    assert controller.is_submitted
    assert controller.errors == {}
    assert len(sink.payloads) == 1
    payload = sink.payloads[0]
    assert payload["firstName"] == "Jo"
    assert payload["utm_source"] == "google"
    assert payload["utm_campaign"] == ""
    assert payload["source"] == "landing_page"
    assert payload["timestamp"] == FIXED_TIMESTAMP
    assert [e["event"] for e in tracker_events] == ["lead_submit_attempt", "lead_submit_success"]


@pytest.mark.asyncio
async def test_submit_without_consent_stays_idle(controller, sink):
    focused = []
    controller.on_focus = focused.append
    fill(controller, {**VALID_FORM, "consent": False})

    status = await controller.submit()

    assert status is SubmissionStatus.IDLE
    assert controller.errors == {"consent": "You must agree to be contacted to proceed"}
    assert focused == ["consent"]
    assert sink.payloads == []


@pytest.mark.asyncio
async def test_submit_with_consent_string_false_is_blocked(controller, sink):
    fill(controller, {**VALID_FORM, "consent": "false"})

    status = await controller.submit()

    assert status is SubmissionStatus.IDLE
    assert controller.errors == {"consent": "You must agree to be contacted to proceed"}
    assert sink.payloads == []


@pytest.mark.asyncio
async def test_payload_built_only_when_sending(attribution, sink):
    stamps = []

    def clock():
        stamps.append(FIXED_TIMESTAMP)
        return FIXED_TIMESTAMP

    controller = FormController(attribution, sink, clock=clock)
    fill(controller, {**VALID_FORM, "email": "nope"})

    assert await controller.submit() is SubmissionStatus.IDLE
    assert stamps == []

    controller.update_field("email", "jo@example.com")
    assert await controller.submit() is SubmissionStatus.SUCCEEDED
    assert len(stamps) == 1
    assert sink.payloads[0]["timestamp"] == FIXED_TIMESTAMP


@pytest.mark.asyncio
async def test_submit_focuses_first_field_in_layout_order(controller):
    focused = []
    controller.on_focus = focused.append
    fill(controller, {**VALID_FORM, "email": "nope", "lastName": "", "consent": False})

    await controller.submit()

    assert set(controller.errors) == {"lastName", "email", "consent"}
    assert controller.focused_field == "lastName"
    assert focused == ["lastName"]


@pytest.mark.asyncio
async def test_submit_failure_keeps_data_and_reports_banner(attribution):
    sink = RecordingSink(result=DeliveryResult(success=False, http_status=500, error_message="HTTP 500"))
    controller = FormController(attribution, sink, clock=lambda: FIXED_TIMESTAMP)
    fill(controller, VALID_FORM)
    before = controller.snapshot.model_copy()

    status = await controller.submit()

    assert status is SubmissionStatus.FAILED
    assert controller.submit_error == SUBMIT_ERROR_MESSAGE
    assert controller.errors == {}
    assert controller.snapshot == before


@pytest.mark.asyncio
async def test_submit_exception_during_send_is_failure(attribution):
    sink = RecordingSink(error=RuntimeError("dns lookup failed"))
    controller = FormController(attribution, sink)
    fill(controller, VALID_FORM)

    status = await controller.submit()

    assert status is SubmissionStatus.FAILED
    assert controller.submit_error == SUBMIT_ERROR_MESSAGE


@pytest.mark.asyncio
async def test_resubmit_after_failure(attribution):
    sink = RecordingSink(result=DeliveryResult(success=False, http_status=503))
    controller = FormController(attribution, sink)
    fill(controller, VALID_FORM)

    assert await controller.submit() is SubmissionStatus.FAILED

    # Invalid edit: the retry clears the banner and stops at validation.
    controller.update_field("email", "broken")
    assert await controller.submit() is SubmissionStatus.IDLE
    assert controller.submit_error == ""
    assert "email" in controller.errors

    controller.update_field("email", "jo@example.com")
    assert "email" not in controller.errors
    sink.result = DeliveryResult(success=True, http_status=200)
    assert await controller.submit() is SubmissionStatus.SUCCEEDED
    assert len(sink.payloads) == 2


@pytest.mark.asyncio
async def test_double_submit_sends_one_request(controller, sink):
    sink.gate = asyncio.Event()
    fill(controller, VALID_FORM)

    first = asyncio.create_task(controller.submit())
    await asyncio.sleep(0)
    assert controller.is_submitting

    assert await controller.submit() is SubmissionStatus.SUBMITTING

    sink.gate.set()
    assert await first is SubmissionStatus.SUCCEEDED
    assert len(sink.payloads) == 1


@pytest.mark.asyncio
async def test_concurrent_submits_send_one_request(controller, sink):
    sink.gate = asyncio.Event()
    fill(controller, VALID_FORM)

    tasks = [asyncio.create_task(controller.submit()) for _ in range(5)]
    await asyncio.sleep(0)
    sink.gate.set()
    results = await asyncio.gather(*tasks)

    assert results.count(SubmissionStatus.SUCCEEDED) == 1
    assert len(sink.payloads) == 1


@pytest.mark.asyncio
async def test_succeeded_is_terminal(controller, sink):
    fill(controller, VALID_FORM)
    await controller.submit()

    assert await controller.submit() is SubmissionStatus.SUCCEEDED
    assert len(sink.payloads) == 1


@pytest.mark.asyncio
async def test_strict_choices_block_out_of_catalog_values(attribution, sink):
    controller = FormController(attribution, sink, strict_choices=True)
    fill(controller, {**VALID_FORM, "city": "Atlantis"})

    assert await controller.submit() is SubmissionStatus.IDLE
    assert controller.errors == {"city": "Please select a valid city"}
    assert sink.payloads == []


def test_mount_form_captures_attribution_and_tracks_page_view(sink):
    data_layer = []
    storage = {}
    controller = mount_form(
        "https://example.com/?utm_source=google&utm_medium=cpc&utm_campaign=spring",
        sink=sink,
        storage=storage,
        data_layer=data_layer,
    )

    assert controller.attribution == AttributionParams(
        utm_source="google", utm_medium="cpc", utm_campaign="spring"
    )
    assert controller.sink is sink
    assert storage
    assert data_layer[0]["event"] == "page_view"
    assert data_layer[0]["page"] == "landing"
    assert data_layer[0]["utm_campaign"] == "spring"


@pytest.mark.asyncio
async def test_end_to_end_against_intake_webhook():
    received = []

    async def handler(request: web.Request) -> web.Response:
        received.append(await request.json())
        return web.json_response({"accepted": True})

    app = web.Application()
    app.router.add_post("/intake", handler)

    async with test_utils.TestServer(app) as server:
        controller = mount_form(
            "?utm_source=google&utm_medium=cpc",
            sink=WebhookLeadSink(str(server.make_url("/intake"))),
        )
        fill(controller, VALID_FORM)
        status = await controller.submit()

    assert status is SubmissionStatus.SUCCEEDED
    assert received[0]["email"] == "jo@example.com"
    assert received[0]["utm_medium"] == "cpc"
    assert received[0]["source"] == "landing_page"
    assert received[0]["timestamp"].endswith("Z")


@pytest.mark.asyncio
async def test_end_to_end_server_error_marks_failed():
    async def handler(request: web.Request) -> web.Response:
        return web.Response(status=500)

    app = web.Application()
    app.router.add_post("/intake", handler)

    async with test_utils.TestServer(app) as server:
        controller = mount_form("", sink=WebhookLeadSink(str(server.make_url("/intake"))))
        fill(controller, VALID_FORM)
        status = await controller.submit()

    assert status is SubmissionStatus.FAILED
    assert controller.submit_error
    assert controller.snapshot.email == "jo@example.com"
