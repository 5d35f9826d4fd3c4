# tests/conftest.py
from typing import List

import pytest
from fastapi.testclient import TestClient

from file_search_qa.config import Settings
from file_search_qa.errors import RemoteFailure
from file_search_qa.jobs.operation import Operation
from file_search_qa.main import create_app
from file_search_qa.models import (
    Citation,
    FileDescriptor,
    GenerationResult,
    ImportResult,
    StoreDescriptor,
)
from file_search_qa.observability.metrics import MetricsTracker


SLIDE_JSON = """{
  "title": "Quarterly Review",
  "subtitle": "From the uploaded reports",
  "slides": [
    {"title": "Revenue", "bullet_points": ["Up 10%", "Driven by EMEA"], "notes": "See report.pdf", "citations": ["report.pdf"]},
    {"title": "Costs", "bulletPoints": ["Flat"], "notes": ""},
    {"title": "Outlook", "bullet_points": ["Cautious"], "notes": ""}
  ]
}"""


def active_file(name="files/abc123", display_name="report.pdf"):
    return FileDescriptor(
        name=name,
        uri=f"https://generativelanguage.googleapis.com/v1beta/{name}",
        display_name=display_name,
        mime_type="application/pdf",
        size_bytes=1024,
        state="ACTIVE",
    )


class FakeFileSearchClient:
    """
    Scripted stand-in for FileSearchClient.

    refresh_file / refresh_import pop from the scripted lists;
    every call is recorded in `calls`.
    """

    configured = True

    def __init__(self):
        self.calls: List[tuple] = []
        self.upload_result = Operation.pending("files/abc123")
        self.file_refreshes: List[Operation] = [Operation.done("files/abc123", active_file())]
        self.import_result = Operation.pending("fileSearchStores/s1/operations/op1")
        self.import_refreshes: List[Operation] = [
            Operation.done(
                "fileSearchStores/s1/operations/op1",
                ImportResult(
                    operation_name="fileSearchStores/s1/operations/op1",
                    store_name="fileSearchStores/s1",
                    document_name="fileSearchStores/s1/documents/d1",
                ),
            )
        ]
        self.files = [active_file()]
        self.stores = [StoreDescriptor(name="fileSearchStores/s1", display_name="Reports")]
        self.delete_store_error = None
        self.generations: List[GenerationResult] = [
            GenerationResult(
                text="## Answer\n- **Revenue** grew",
                citations=[Citation(segment="report.pdf", confidence_score=0.9)],
            )
        ]

    async def upload_file(self, content, display_name, mime_type=None):
        self.calls.append(("upload_file", display_name, mime_type, len(content)))
        return self.upload_result

    async def refresh_file(self, operation):
        self.calls.append(("refresh_file", operation.name))
        return self.file_refreshes.pop(0)

    async def list_files(self):
        self.calls.append(("list_files",))
        return self.files

    async def delete_file(self, name):
        self.calls.append(("delete_file", name))

    async def create_store(self, display_name):
        self.calls.append(("create_store", display_name))
        return StoreDescriptor(name="fileSearchStores/new", display_name=display_name)

    async def list_stores(self):
        self.calls.append(("list_stores",))
        return self.stores

    async def delete_store(self, name, force=False):
        self.calls.append(("delete_store", name, force))
        if self.delete_store_error is not None and not force:
            raise self.delete_store_error

    async def import_file(self, store_name, file_uri):
        self.calls.append(("import_file", store_name, file_uri))
        return self.import_result

    async def refresh_import(self, operation):
        self.calls.append(("refresh_import", operation.name))
        return self.import_refreshes.pop(0)

    async def generate(self, prompt, store_names, json_output=False, temperature=None, max_output_tokens=None):
        self.calls.append(("generate", prompt, list(store_names), json_output))
        if json_output:
            return GenerationResult(text=SLIDE_JSON)
        return self.generations.pop(0)


class FakeSlidesExporter:

    configured = True

    def __init__(self):
        self.exported = []

    def export(self, deck):
        self.exported.append(deck)
        return "pres123"


class RecordingPostHog:

    def __init__(self):
        self.events = []

    def __getattr__(self, name):
        if not name.startswith("track_"):
            raise AttributeError(name)

        def _record(**kwargs):
            self.events.append((name, kwargs))

        return _record


@pytest.fixture
def settings(tmp_path):
    return Settings(
        _env_file=None,
        gemini_api_key="test-key",
        file_poll_max_attempts=3,
        file_poll_interval=0,
        import_poll_max_attempts=3,
        import_poll_interval=0,
        max_upload_mb=1,
        default_file_search_store="fileSearchStores/default",
        log_dir=str(tmp_path / "logs"),
    )


@pytest.fixture
def fake_client():
    return FakeFileSearchClient()


@pytest.fixture
def fake_exporter():
    return FakeSlidesExporter()


@pytest.fixture
def posthog():
    return RecordingPostHog()


@pytest.fixture
def metrics():
    return MetricsTracker()


@pytest.fixture
def app(settings, fake_client, fake_exporter, posthog, metrics):
    return create_app(
        settings=settings,
        file_search_client=fake_client,
        slides_exporter=fake_exporter,
        posthog=posthog,
        metrics=metrics,
        configure_logging=False,
    )


@pytest.fixture
def client(app):
    """
    FastAPI test client backed by fakes.
    """
    return TestClient(app)


@pytest.fixture
def store_not_empty_error():
    return RemoteFailure(
        "Cannot delete non-empty FileSearchStore",
        code=RemoteFailure.STORE_NOT_EMPTY,
    )
