# file_search_qa/llm/gemini_client.py

import io
import logging
import re
import time
from typing import Any, Dict, List, Optional

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from file_search_qa.config import DEFAULT_MIME_TYPE, Settings
from file_search_qa.errors import (
    ConfigurationError,
    NotFound,
    RemoteFailure,
    TransportError,
)
from file_search_qa.jobs.operation import Operation
from file_search_qa.models import (
    Citation,
    FileDescriptor,
    GenerationResult,
    ImportResult,
    StoreDescriptor,
)

logger = logging.getLogger(__name__)


_FILE_NAME_PATTERN = re.compile(r"files/[^/?#]+")

# Substrings the API uses when refusing to delete a store that holds documents
_NON_EMPTY_MARKERS = ("FAILED_PRECONDITION", "non-empty", "not empty", "contains")


def normalize_file_name(file_uri: str) -> str:
    """
    Reduce a full file URI to the `files/<id>` resource name.

    Anything without a `files/` segment is passed through unchanged.
    """

    match = _FILE_NAME_PATTERN.search(file_uri)

    return match.group(0) if match else file_uri


class FileSearchClient:
    """
    Boundary to the Gemini File API and File Search.

    Constructed once at startup and injected into the route handlers.
    Every SDK object is converted here into a local model or an
    Operation, and every SDK/transport exception into a ServiceError.

    Operations:
    • upload_file / refresh_file: file ingestion job
    • import_file / refresh_import: store import job
    • list/delete files, create/list/delete stores
    • generate: grounded generation over a set of stores
    """

    def __init__(self, settings: Settings, client: Optional[genai.Client] = None):

        self.model = settings.generation_model

        if client is not None:
            self._client = client

        elif settings.gemini_api_key:

            http_options = None

            if settings.gemini_base_url:
                http_options = types.HttpOptions(base_url=settings.gemini_base_url)

            self._client = genai.Client(
                api_key=settings.gemini_api_key,
                http_options=http_options,
            )

            logger.info(
                "Gemini client initialized",
                extra={"model": self.model, "base_url": settings.gemini_base_url},
            )

        else:

            self._client = None

            logger.warning("Gemini API key missing")

    @property
    def configured(self) -> bool:
        return self._client is not None

    @property
    def _aio(self):

        if self._client is None:
            raise ConfigurationError("GEMINI_API_KEY environment variable missing")

        return self._client.aio

    # ============================================================
    # FILES
    # ============================================================

    async def upload_file(
        self,
        content: bytes,
        display_name: str,
        mime_type: Optional[str] = None,
    ) -> Operation:

        mime_type = mime_type or DEFAULT_MIME_TYPE

        uploaded = await self._timed_call(
            "files.upload",
            self._aio.files.upload(
                file=io.BytesIO(content),
                config=types.UploadFileConfig(
                    display_name=display_name,
                    mime_type=mime_type,
                ),
            ),
        )

        return file_to_operation(uploaded)

    async def refresh_file(self, operation: Operation) -> Operation:

        current = await self._timed_call(
            "files.get",
            self._aio.files.get(name=operation.name),
        )

        return file_to_operation(current)

    async def list_files(self) -> List[FileDescriptor]:

        async def _collect():
            pager = await self._aio.files.list()
            return [file_to_descriptor(f) async for f in pager]

        return await self._timed_call("files.list", _collect())

    async def delete_file(self, name: str) -> None:

        await self._timed_call("files.delete", self._aio.files.delete(name=name))

    # ============================================================
    # STORES
    # ============================================================

    async def create_store(self, display_name: str) -> StoreDescriptor:

        store = await self._timed_call(
            "file_search_stores.create",
            self._aio.file_search_stores.create(
                config={"display_name": display_name}
            ),
        )

        return store_to_descriptor(store)

    async def list_stores(self) -> List[StoreDescriptor]:

        async def _collect():
            pager = await self._aio.file_search_stores.list()
            return [store_to_descriptor(s) async for s in pager]

        return await self._timed_call("file_search_stores.list", _collect())

    async def delete_store(self, name: str, force: bool = False) -> None:

        try:

            await self._timed_call(
                "file_search_stores.delete",
                self._aio.file_search_stores.delete(
                    name=name,
                    config={"force": force},
                ),
            )

        except RemoteFailure as e:

            if not force and _looks_non_empty(e):
                raise RemoteFailure(
                    e.message,
                    code=RemoteFailure.STORE_NOT_EMPTY,
                    detail={**e.detail, "store": name},
                ) from e

            raise

    # ============================================================
    # IMPORT
    # ============================================================

    async def import_file(self, store_name: str, file_uri: str) -> Operation:

        file_name = normalize_file_name(file_uri)

        logger.info(
            "Importing file into store",
            extra={"store": store_name, "file_name": file_name},
        )

        operation = await self._timed_call(
            "file_search_stores.import_file",
            self._aio.file_search_stores.import_file(
                file_search_store_name=store_name,
                file_name=file_name,
            ),
        )

        logger.info("Import operation started", extra={"operation": operation.name})

        return import_to_operation(operation, store_name)

    async def refresh_import(self, operation: Operation) -> Operation:

        current = await self._timed_call(
            "operations.get",
            self._aio.operations.get(types.ImportFileOperation(name=operation.name)),
        )

        return import_to_operation(current)

    # ============================================================
    # GENERATION
    # ============================================================

    async def generate(
        self,
        prompt: str,
        store_names: List[str],
        json_output: bool = False,
        temperature: Optional[float] = None,
        max_output_tokens: Optional[int] = None,
    ) -> GenerationResult:

        config = types.GenerateContentConfig(
            tools=[
                types.Tool(
                    file_search=types.FileSearch(file_search_store_names=store_names)
                )
            ],
            response_mime_type="application/json" if json_output else None,
            temperature=temperature,
            max_output_tokens=max_output_tokens,
        )

        response = await self._timed_call(
            "models.generate_content",
            self._aio.models.generate_content(
                model=self.model,
                contents=prompt,
                config=config,
            ),
        )

        if not response.text:
            raise RemoteFailure("No response from Gemini", code="EMPTY_RESPONSE")

        return GenerationResult(
            text=response.text,
            citations=extract_citations(response),
        )

    # ============================================================
    # LATENCY OBSERVABILITY + ERROR BOUNDARY
    # ============================================================

    async def _timed_call(self, call: str, awaitable):

        start = time.time()

        try:
            result = await awaitable

        except genai_errors.APIError as e:

            logger.warning(
                "Gemini call failed",
                extra={
                    "call": call,
                    "status_code": e.code,
                    "status": e.status,
                    "error": e.message,
                },
            )

            raise api_error_to_service_error(e) from e

        except httpx.HTTPError as e:

            logger.warning(
                "Gemini transport failure",
                extra={"call": call, "error": str(e)},
            )

            raise TransportError(str(e) or type(e).__name__) from e

        logger.info(
            "Gemini call success",
            extra={
                "call": call,
                "latency_seconds": round(time.time() - start, 3),
            },
        )

        return result


# ================================================================
# SDK -> LOCAL CONVERSIONS
# ================================================================

def _enum_value(value) -> Optional[str]:

    if value is None:
        return None

    return getattr(value, "value", str(value))


def file_to_descriptor(f) -> FileDescriptor:

    return FileDescriptor(
        name=f.name,
        uri=f.uri,
        display_name=f.display_name,
        mime_type=f.mime_type,
        size_bytes=f.size_bytes,
        state=_enum_value(f.state),
    )


def file_to_operation(f) -> Operation:
    """
    ACTIVE -> done, FAILED -> failed, anything else -> pending.

    STATE_UNSPECIFIED is treated as still processing.
    """

    state = _enum_value(f.state)

    if state == "ACTIVE":
        return Operation.done(f.name, file_to_descriptor(f))

    if state == "FAILED":

        message = "File processing failed"
        code = None

        if f.error is not None:
            message = f.error.message or message
            code = str(f.error.code) if f.error.code is not None else None

        return Operation.failed(f.name, message, code=code)

    return Operation.pending(f.name)


def store_to_descriptor(store) -> StoreDescriptor:

    create_time = store.create_time

    return StoreDescriptor(
        name=store.name,
        display_name=store.display_name,
        create_time=create_time.isoformat() if create_time else None,
        active_documents_count=store.active_documents_count,
        size_bytes=store.size_bytes,
    )


def _operation_error(error: Any) -> Dict[str, Any]:

    if isinstance(error, str):
        return {"message": error}

    if isinstance(error, dict):
        return error

    return {"message": str(error)}


def import_to_operation(operation, store_name: Optional[str] = None) -> Operation:
    """
    An error at any poll means failure, even if `done` is not yet set.
    """

    if operation.error:

        error = _operation_error(operation.error)
        code = error.get("code")

        return Operation.failed(
            operation.name,
            error.get("message") or "Operation failed",
            code=str(code) if code is not None else None,
        )

    if not operation.done:
        return Operation.pending(operation.name)

    response = operation.response
    raw = response.model_dump(exclude_none=True, mode="json") if response else {}

    return Operation.done(
        operation.name,
        ImportResult(
            operation_name=operation.name,
            store_name=store_name or (response.parent if response else None),
            document_name=response.document_name if response else None,
            response=raw,
        ),
    )


def extract_citations(response) -> List[Citation]:
    """
    One citation per grounding chunk.

    The confidence of a chunk is the highest support score that
    references it; chunks no support references carry none.
    """

    candidates = response.candidates or []

    if not candidates or candidates[0].grounding_metadata is None:
        return []

    metadata = candidates[0].grounding_metadata

    confidence: Dict[int, float] = {}

    for support in metadata.grounding_supports or []:

        scores = support.confidence_scores or []

        for i, chunk_index in enumerate(support.grounding_chunk_indices or []):

            if i >= len(scores):
                break

            confidence[chunk_index] = max(confidence.get(chunk_index, 0.0), scores[i])

    citations = []

    for index, chunk in enumerate(metadata.grounding_chunks or []):

        segment = ""

        if chunk.retrieved_context is not None:
            segment = chunk.retrieved_context.uri or chunk.retrieved_context.title or ""

        if not segment and chunk.web is not None:
            segment = chunk.web.uri or ""

        citations.append(
            Citation(segment=segment, confidence_score=confidence.get(index))
        )

    return citations


def api_error_to_service_error(e: genai_errors.APIError):

    message = e.message or str(e)
    detail = {"status_code": e.code, "status": e.status}

    if e.code == 404:
        return NotFound(message, detail=detail)

    return RemoteFailure(message, code=e.status or None, detail=detail)


def _looks_non_empty(e: RemoteFailure) -> bool:

    haystack = f"{e.code} {e.message}"

    return any(marker in haystack for marker in _NON_EMPTY_MARKERS)
