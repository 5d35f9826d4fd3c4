# file_search_qa/observability/posthog_client.py

"""
PostHog Observability Client

Architecture contract:
- Does NOT replace logging
- Uses request_id as distinct_id
- Never blocks or breaks API execution
"""

import logging
from typing import Any, Dict, Optional

from posthog import Posthog


logger = logging.getLogger(__name__)


class PostHogClient:
    """
    Safe PostHog wrapper.

    Disabled (every call a no-op) when no API key is configured.
    Tracking failures are logged and dropped.
    """

    def __init__(self, api_key: Optional[str] = None, host: str = "https://app.posthog.com"):

        self._enabled = False
        self._client: Optional[Posthog] = None

        if not api_key:
            logger.warning("PostHog disabled: POSTHOG_API_KEY not set")
            return

        try:

            self._client = Posthog(
                project_api_key=api_key,
                host=host,
                timeout=5,
                flush_interval=1,
            )

            self._enabled = True

            logger.info("PostHog client initialized", extra={"host": host})

        except Exception as e:

            logger.error(
                "PostHog initialization failed",
                extra={"error": str(e)}
            )

    @property
    def enabled(self) -> bool:
        return self._enabled

    # ==========================================================
    # INTERNAL SAFE TRACK
    # ==========================================================

    def _track(
        self,
        distinct_id: str,
        event: str,
        properties: Optional[Dict[str, Any]] = None,
    ):

        if not self._enabled or not self._client:
            return

        try:

            self._client.capture(
                distinct_id=distinct_id,
                event=event,
                properties=properties or {},
            )

        except Exception as e:

            logger.warning(
                "PostHog tracking failed",
                extra={"event": event, "error": str(e)},
            )

    # ==========================================================
    # EVENTS
    # ==========================================================

    def track_file_upload(
        self,
        distinct_id: str,
        file_name: str,
        mime_type: Optional[str],
        size_bytes: Optional[int],
        latency: float,
    ):

        self._track(
            distinct_id,
            "file_uploaded",
            {
                "file_name": file_name,
                "mime_type": mime_type,
                "size_bytes": size_bytes,
                "latency_seconds": latency,
            },
        )

    def track_store_import(
        self,
        distinct_id: str,
        store_name: str,
        operation_name: str,
        latency: float,
    ):

        self._track(
            distinct_id,
            "file_imported",
            {
                "store_name": store_name,
                "operation_name": operation_name,
                "latency_seconds": latency,
            },
        )

    def track_query(
        self,
        distinct_id: str,
        query: str,
        store_count: int,
        citations: int,
        latency: float,
    ):

        self._track(
            distinct_id,
            "query_answered",
            {
                "query_length": len(query),
                "store_count": store_count,
                "citations": citations,
                "latency_seconds": latency,
            },
        )

    def track_slides_export(
        self,
        distinct_id: str,
        presentation_id: str,
        slide_count: int,
    ):

        self._track(
            distinct_id,
            "slides_exported",
            {"presentation_id": presentation_id, "slide_count": slide_count},
        )

    def track_error(
        self,
        distinct_id: str,
        error_type: str,
        error_message: str,
        endpoint: str,
        error_code: Optional[str] = None,
    ):

        self._track(
            distinct_id,
            "system_error",
            {
                "error_type": error_type,
                "error_message": error_message,
                "error_code": error_code,
                "endpoint": endpoint,
            },
        )
