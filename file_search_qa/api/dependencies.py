# file_search_qa/api/dependencies.py

"""
Collaborators are built once at startup and stored on app.state.
Route handlers receive them through these dependencies, so tests can
swap any of them via app.dependency_overrides.
"""

from fastapi import Request

from file_search_qa.config import Settings
from file_search_qa.jobs.poller import AsyncJobPoller
from file_search_qa.llm.gemini_client import FileSearchClient
from file_search_qa.observability.metrics import MetricsTracker
from file_search_qa.observability.posthog_client import PostHogClient
from file_search_qa.slides.exporter import SlidesExporter


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_file_search_client(request: Request) -> FileSearchClient:
    return request.app.state.file_search_client


def get_slides_exporter(request: Request) -> SlidesExporter:
    return request.app.state.slides_exporter


def get_metrics(request: Request) -> MetricsTracker:
    return request.app.state.metrics


def get_posthog(request: Request) -> PostHogClient:
    return request.app.state.posthog


def get_file_poller(request: Request) -> AsyncJobPoller:
    """Poller for file processing after upload."""

    settings = get_settings(request)

    return AsyncJobPoller(
        max_attempts=settings.file_poll_max_attempts,
        interval=settings.file_poll_interval,
        kind="file_processing",
        metrics=get_metrics(request),
    )


def get_import_poller(request: Request) -> AsyncJobPoller:
    """Poller for store import operations."""

    settings = get_settings(request)

    return AsyncJobPoller(
        max_attempts=settings.import_poll_max_attempts,
        interval=settings.import_poll_interval,
        kind="store_import",
        metrics=get_metrics(request),
    )


def get_request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "unknown")
