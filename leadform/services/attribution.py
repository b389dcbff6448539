from __future__ import annotations

import json
from typing import MutableMapping, Optional
from urllib.parse import parse_qs, urlsplit

from leadform.core.config import settings
from leadform.core.logging import get_structlog_logger
from leadform.schemas.lead import UTM_KEYS, AttributionParams

logger = get_structlog_logger(__name__)


def extract_query(location: Optional[str]) -> str:
    """
    Query portion of a page location.
    Accepts a full URL, a relative or scheme-less URL with a query, or a bare
    query string with or without a leading '?'.
    """
    if not location:
        return ""
    if "://" in location:
        return urlsplit(location).query
    if "?" in location:
        return location.split("?", 1)[1].split("#", 1)[0]
    if location.startswith("/") or "=" not in location:
        # A path with no query string.
        return ""
    return location.split("#", 1)[0]


def parse_attribution(location: Optional[str]) -> AttributionParams:
    query = parse_qs(extract_query(location))
    return AttributionParams(**{key: query.get(key, [""])[0] for key in UTM_KEYS})


class AttributionCapture:
    """Reads UTM parameters from an injected page location, optionally mirroring them to session storage."""

    def __init__(
        self,
        location: Optional[str] = "",
        *,
        storage: Optional[MutableMapping[str, str]] = None,
        storage_key: Optional[str] = None,
    ) -> None:
        self.location = location
        self.storage = storage
        self.storage_key = storage_key or settings.attribution_storage_key

    def capture(self) -> AttributionParams:
        """Never raises; anything unreadable becomes an empty string."""
        try:
            params = parse_attribution(self.location)
        except (TypeError, ValueError) as e:
            logger.warning("attribution.capture_failed", location=self.location, error=str(e))
            params = AttributionParams()

        if self.storage is not None:
            self.store(params)

        logger.debug("attribution.captured", **params.model_dump())
        return params

    def store(self, params: AttributionParams) -> None:
        if self.storage is None:
            return
        try:
            self.storage[self.storage_key] = params.model_dump_json()
        except Exception as e:
            logger.warning("attribution.store_failed", key=self.storage_key, error=str(e))

    def restore(self) -> Optional[AttributionParams]:
        if self.storage is None:
            return None
        try:
            stored = self.storage.get(self.storage_key)
            if not stored:
                return None
            return AttributionParams.model_validate(json.loads(stored))
        except Exception as e:
            logger.warning("attribution.restore_failed", key=self.storage_key, error=str(e))
            return None
