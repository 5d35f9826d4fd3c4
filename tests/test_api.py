# tests/test_api.py
from file_search_qa.errors import ConfigurationError, RemoteFailure
from file_search_qa.jobs.operation import Operation
from file_search_qa import main


class TestRootAndHealth:

    def test_root_endpoint(self, client):
        response = client.get("/")

        assert response.status_code == 200
        data = response.json()
        assert "message" in data
        assert "version" in data
        assert "docs" in data

    def test_health_reports_configuration(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["gemini_configured"] is True
        assert data["slides_configured"] is True

    def test_request_id_header(self, client):
        response = client.get("/health")
        assert response.headers["X-Request-ID"]

    def test_factory_module_builds_no_app_on_import(self):
        assert not hasattr(main, "app")


class TestUploadEndpoint:

    def test_upload_polls_until_active(self, client, fake_client, posthog):
        response = client.post(
            "/upload",
            files={"file": ("report.pdf", b"%PDF-1.4 content", "application/pdf")},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["file"]["name"] == "files/abc123"
        assert data["file"]["state"] == "ACTIVE"
        assert data["file"]["mime_type"] == "application/pdf"

        assert fake_client.calls[0] == ("upload_file", "report.pdf", "application/pdf", 16)
        assert ("refresh_file", "files/abc123") in fake_client.calls
        assert posthog.events[0][0] == "track_file_upload"

    def test_upload_already_active_skips_polling(self, client, fake_client):
        fake_client.upload_result = Operation.done("files/abc123", fake_client.files[0])

        response = client.post(
            "/upload",
            files={"file": ("report.pdf", b"data", "application/pdf")},
        )

        assert response.status_code == 200
        assert not any(call[0] == "refresh_file" for call in fake_client.calls)

    def test_upload_without_file(self, client, fake_client):
        response = client.post("/upload")

        assert response.status_code == 400
        assert response.json()["error_code"] == "VALIDATION_ERROR"
        assert fake_client.calls == []

    def test_upload_empty_file(self, client, fake_client):
        response = client.post(
            "/upload",
            files={"file": ("empty.pdf", b"", "application/pdf")},
        )

        assert response.status_code == 400
        assert "No file provided" in response.json()["detail"]
        assert fake_client.calls == []

    def test_upload_file_too_large(self, client, fake_client):
        response = client.post(
            "/upload",
            files={"file": ("huge.pdf", b"x" * (2 * 1024 * 1024), "application/pdf")},
        )

        assert response.status_code == 413
        assert "too large" in response.json()["detail"].lower()
        assert fake_client.calls == []

    def test_upload_processing_failure(self, client, fake_client):
        fake_client.file_refreshes = [Operation.failed("files/abc123", "Unsupported format")]

        response = client.post(
            "/upload",
            files={"file": ("movie.xyz", b"data", "application/x-unknown")},
        )

        assert response.status_code == 502
        assert response.json()["detail"] == "Unsupported format"

    def test_upload_processing_timeout(self, client, fake_client):
        fake_client.file_refreshes = [Operation.pending("files/abc123")] * 3

        response = client.post(
            "/upload",
            files={"file": ("slow.pdf", b"data", "application/pdf")},
        )

        assert response.status_code == 504
        data = response.json()
        assert data["error_code"] == "POLL_TIMEOUT"
        assert data["error_detail"]["attempts"] == 3


class TestFilesEndpoint:

    def test_list_files(self, client):
        response = client.get("/files")

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["files"][0]["display_name"] == "report.pdf"

    def test_delete_file(self, client, fake_client):
        response = client.delete("/files", params={"name": "files/abc123"})

        assert response.status_code == 200
        assert response.json()["success"] is True
        assert ("delete_file", "files/abc123") in fake_client.calls

    def test_delete_file_requires_name(self, client, fake_client):
        response = client.delete("/files")

        assert response.status_code == 400
        assert "File name is required" in response.json()["detail"]
        assert fake_client.calls == []


class TestStoresEndpoint:

    def test_create_store_with_name(self, client, fake_client):
        response = client.post("/file-search-stores", json={"display_name": "Contracts"})

        assert response.status_code == 200
        assert response.json()["store"]["display_name"] == "Contracts"
        assert ("create_store", "Contracts") in fake_client.calls

    def test_create_store_default_name(self, client, fake_client):
        response = client.post("/file-search-stores", json={})

        assert response.status_code == 200
        assert ("create_store", "My Knowledge Base") in fake_client.calls

    def test_list_stores(self, client):
        response = client.get("/file-search-stores")

        assert response.status_code == 200
        assert response.json()["stores"][0]["name"] == "fileSearchStores/s1"

    def test_delete_store(self, client, fake_client):
        response = client.delete(
            "/file-search-stores", params={"name": "fileSearchStores/s1"}
        )

        assert response.status_code == 200
        assert ("delete_store", "fileSearchStores/s1", False) in fake_client.calls

    def test_delete_non_empty_store_then_force(self, client, fake_client, store_not_empty_error):
        fake_client.delete_store_error = store_not_empty_error

        response = client.delete(
            "/file-search-stores", params={"name": "fileSearchStores/s1"}
        )

        assert response.status_code == 409
        assert response.json()["error_code"] == "STORE_NOT_EMPTY"

        response = client.delete(
            "/file-search-stores",
            params={"name": "fileSearchStores/s1", "force": "true"},
        )

        assert response.status_code == 200
        assert ("delete_store", "fileSearchStores/s1", True) in fake_client.calls

    def test_delete_store_other_failure(self, client, fake_client):
        fake_client.delete_store_error = RemoteFailure("Permission denied", code="PERMISSION_DENIED")

        response = client.delete(
            "/file-search-stores", params={"name": "fileSearchStores/s1"}
        )

        assert response.status_code == 502
        assert response.json()["error_code"] == "PERMISSION_DENIED"

    def test_delete_store_requires_name(self, client):
        response = client.delete("/file-search-stores")

        assert response.status_code == 400


class TestImportEndpoint:

    def test_import_polls_until_done(self, client, fake_client):
        response = client.post(
            "/file-search-stores/fileSearchStores/s1/import",
            json={"file_uri": "files/abc123"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["operation_name"] == "fileSearchStores/s1/operations/op1"
        assert data["imported_file"]["document_name"] == "fileSearchStores/s1/documents/d1"
        assert ("import_file", "fileSearchStores/s1", "files/abc123") in fake_client.calls

    def test_import_with_encoded_store_name(self, client, fake_client):
        response = client.post(
            "/file-search-stores/fileSearchStores%2Fs1/import",
            json={"file_uri": "files/abc123"},
        )

        assert response.status_code == 200
        assert ("import_file", "fileSearchStores/s1", "files/abc123") in fake_client.calls

    def test_import_remote_failure(self, client, fake_client):
        fake_client.import_refreshes = [
            Operation.failed("fileSearchStores/s1/operations/op1", "File not found", code="5")
        ]

        response = client.post(
            "/file-search-stores/fileSearchStores/s1/import",
            json={"file_uri": "files/abc123"},
        )

        assert response.status_code == 502
        assert response.json()["detail"] == "File not found"

    def test_import_timeout(self, client, fake_client):
        fake_client.import_refreshes = [
            Operation.pending("fileSearchStores/s1/operations/op1")
        ] * 3

        response = client.post(
            "/file-search-stores/fileSearchStores/s1/import",
            json={"file_uri": "files/abc123"},
        )

        assert response.status_code == 504

    def test_import_missing_file_uri(self, client, fake_client):
        response = client.post(
            "/file-search-stores/fileSearchStores/s1/import",
            json={},
        )

        assert response.status_code == 400
        data = response.json()
        assert data["error_code"] == "VALIDATION_ERROR"
        assert data["detail"] == "file_uri is required"
        assert data["error_detail"]["errors"] == [{"field": "file_uri", "message": "file_uri is required"}]
        assert data["request_id"] == response.headers["X-Request-ID"]
        assert fake_client.calls == []


class TestQueryEndpoint:

    def test_query_returns_answer_and_citations(self, client, fake_client):
        response = client.post(
            "/query",
            json={
                "query": "What happened to revenue?",
                "file_search_store_names": ["fileSearchStores/s1"],
            },
        )

        assert response.status_code == 200
        assert response.headers["Cache-Control"] == "no-store"

        data = response.json()
        assert data["success"] is True
        assert "Revenue" in data["answer"]
        assert data["citations"] == [{"segment": "report.pdf", "confidence_score": 0.9}]
        assert data["slides"] is None

        _, prompt, stores, json_output = fake_client.calls[0]
        assert prompt.startswith("What happened to revenue?")
        assert "markdown" in prompt
        assert stores == ["fileSearchStores/s1"]
        assert json_output is False

    def test_query_accepts_single_store_name(self, client, fake_client):
        response = client.post(
            "/query",
            json={"query": "Summarize", "file_search_store_names": "fileSearchStores/s1"},
        )

        assert response.status_code == 200
        assert fake_client.calls[0][2] == ["fileSearchStores/s1"]

    def test_query_requires_store(self, client, fake_client):
        response = client.post("/query", json={"query": "Summarize"})

        assert response.status_code == 400
        assert "fileSearchStoreName" in response.json()["detail"]
        assert fake_client.calls == []

    def test_query_rejects_blank_query(self, client, fake_client):
        response = client.post(
            "/query",
            json={"query": "   ", "file_search_store_names": ["fileSearchStores/s1"]},
        )

        assert response.status_code == 400
        data = response.json()
        assert data["error_code"] == "VALIDATION_ERROR"
        assert data["detail"] == "Query cannot be empty or only whitespace"
        assert fake_client.calls == []

    def test_query_with_slides(self, client, fake_client, fake_exporter, posthog):
        response = client.post(
            "/query",
            json={
                "query": "Quarterly review",
                "file_search_store_names": ["fileSearchStores/s1"],
                "create_slides": True,
            },
        )

        assert response.status_code == 200
        slides = response.json()["slides"]
        assert slides["presentation_id"] == "pres123"
        assert slides["presentation_url"] == "https://docs.google.com/presentation/d/pres123/edit"
        assert slides["slide_count"] == 3
        assert len(slides["preview"]) == 2
        assert slides["preview"][1]["bullet_points"] == ["Flat"]

        assert len(fake_exporter.exported) == 1
        assert [name for name, _ in posthog.events] == ["track_slides_export", "track_query"]

    def test_query_with_slides_unconfigured(self, client, fake_client, fake_exporter):
        fake_exporter.configured = False

        response = client.post(
            "/query",
            json={
                "query": "Quarterly review",
                "file_search_store_names": ["fileSearchStores/s1"],
                "create_slides": True,
            },
        )

        assert response.status_code == 500
        assert response.json()["error_code"] == "CONFIGURATION_ERROR"
        assert fake_client.calls == []

    def test_query_configuration_error_is_reported(self, client, fake_client, posthog):
        async def failing_generate(*args, **kwargs):
            raise ConfigurationError("GEMINI_API_KEY environment variable missing")

        fake_client.generate = failing_generate

        response = client.post(
            "/query",
            json={"query": "Anything", "file_search_store_names": ["fileSearchStores/s1"]},
        )

        assert response.status_code == 500
        assert "GEMINI_API_KEY" in response.json()["detail"]
        assert posthog.events[-1][0] == "track_error"


class TestSlidesEndpoint:

    def test_slides_uses_default_store(self, client, fake_client):
        response = client.post("/slides", json={"topic": "Revenue trends"})

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["presentation_id"] == "pres123"
        assert data["title"] == "Quarterly Review"

        _, prompt, stores, json_output = fake_client.calls[0]
        assert stores == ["fileSearchStores/default"]
        assert json_output is True
        assert '"Revenue trends"' in prompt

    def test_slides_without_topic(self, client):
        response = client.post("/slides", json={"topic": "  "})

        assert response.status_code == 400
        assert response.json()["error_code"] == "VALIDATION_ERROR"
        assert response.json()["detail"] == "Topic is required"

    def test_slides_without_any_store(self, client, app, fake_client):
        app.state.settings.default_file_search_store = None

        response = client.post("/slides", json={"topic": "Revenue trends"})

        assert response.status_code == 500
        assert "GEMINI_FILE_SEARCH_STORE" in response.json()["detail"]


class TestMetricsEndpoint:

    def test_metrics_track_requests_and_polls(self, client):
        client.post(
            "/upload",
            files={"file": ("report.pdf", b"data", "application/pdf")},
        )
        client.delete("/files")

        data = client.get("/metrics").json()

        assert data["successful_requests"] >= 1
        assert data["failed_requests"] >= 1
        assert data["polls"]["file_processing"]["done"] == 1
