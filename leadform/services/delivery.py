from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional

import aiohttp

from leadform.core.config import settings
from leadform.core.exceptions import ConfigurationError
from leadform.core.logging import get_structlog_logger
from leadform.schemas.lead import AttributionParams, FormSnapshot

logger = get_structlog_logger(__name__)


@dataclass(frozen=True)
class DeliveryResult:
    success: bool
    http_status: Optional[int] = None
    error_message: Optional[str] = None


def format_lead_payload(
    *,
    snapshot: FormSnapshot,
    attribution: AttributionParams,
    source: str,
    timestamp: str,
) -> Dict[str, Any]:
    """
    Flatten a lead into the intake body: form fields by canonical name,
    the five UTM values, the source tag and an ISO-8601 timestamp.
    """
    payload: Dict[str, Any] = snapshot.to_form_data()
    payload.update(attribution.model_dump())
    payload["source"] = source
    payload["timestamp"] = timestamp
    return payload


class LeadSink(ABC):
    """Destination for submitted leads."""

    @abstractmethod
    async def send(self, payload: Dict[str, Any]) -> DeliveryResult:
        raise NotImplementedError


class WebhookLeadSink(LeadSink):
    """Single best-effort JSON POST to the intake webhook. No retries."""

    def __init__(
        self,
        url: Optional[str] = None,
        *,
        timeout: Optional[int] = None,
        user_agent: Optional[str] = None,
    ) -> None:
        self.url = (url or settings.lead_webhook_url).strip()
        if not self.url.startswith(("http://", "https://")):
            raise ConfigurationError(
                "Lead webhook URL must be an http(s) URL",
                code="invalid_webhook_url",
                details={"url": self.url},
            )
        self.timeout = timeout or settings.webhook_timeout_seconds
        self.user_agent = user_agent or settings.webhook_user_agent

    async def send(self, payload: Dict[str, Any]) -> DeliveryResult:
        headers = {
            "Content-Type": "application/json",
            "User-Agent": self.user_agent,
        }

        try:
            async with aiohttp.ClientSession() as session:
                async with session.post(
                    self.url,
                    json=payload,
                    headers=headers,
                    timeout=aiohttp.ClientTimeout(total=self.timeout),
                ) as response:
                    status = response.status
                    if 200 <= status < 300:
                        logger.info("webhook.delivery.succeeded", url=self.url, http_status=status)
                        return DeliveryResult(success=True, http_status=status)
                    error_text = await response.text()
                    result = DeliveryResult(
                        success=False,
                        http_status=status,
                        error_message=f"HTTP {status}: {error_text[:200]}",
                    )
        except asyncio.TimeoutError:
            result = DeliveryResult(success=False, error_message="Request timeout")
        except aiohttp.ClientError as e:
            result = DeliveryResult(success=False, error_message=f"Client error: {str(e)[:200]}")

        logger.warning(
            "webhook.delivery.failed",
            url=self.url,
            http_status=result.http_status,
            error=result.error_message,
        )
        return result
