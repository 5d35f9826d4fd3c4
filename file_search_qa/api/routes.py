import logging
import time
from typing import Optional
from urllib.parse import unquote

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile
from fastapi.responses import JSONResponse

from file_search_qa.api.dependencies import (
    get_file_poller,
    get_file_search_client,
    get_import_poller,
    get_metrics,
    get_posthog,
    get_request_id,
    get_settings,
    get_slides_exporter,
)
from file_search_qa.config import DEFAULT_MIME_TYPE
from file_search_qa.errors import ConfigurationError, ValidationError
from file_search_qa.models import (
    CreateStoreRequest,
    DeleteResponse,
    HealthResponse,
    ImportFileRequest,
    ImportFileResponse,
    ListFilesResponse,
    ListStoresResponse,
    QueryRequest,
    QueryResponse,
    SlidesRequest,
    SlidesResponse,
    StoreResponse,
    UploadResponse,
)
from file_search_qa.workflow.document_qa import answer_query
from file_search_qa.workflow.ingestion import import_into_store, upload_and_process
from file_search_qa.workflow.slides import export_slide_deck, generate_slide_deck


# ============================================================
# LOGGER
# ============================================================

logger = logging.getLogger(__name__)

router = APIRouter()

NO_STORE = {"Cache-Control": "no-store"}


# ============================================================
# HELPERS
# ============================================================

def validate_file_size(content: bytes, max_bytes: int):

    if len(content) > max_bytes:

        size_mb = len(content) / (1024 * 1024)

        raise HTTPException(
            status_code=413,
            detail=f"File too large: {size_mb:.2f}MB",
        )


def require_slides(exporter):

    if not exporter.configured:
        raise ConfigurationError(
            "GOOGLE_APPLICATION_CREDENTIALS environment variable missing"
        )


# ============================================================
# HEALTH
# ============================================================

@router.get("/health", response_model=HealthResponse)
def health_check(
    client=Depends(get_file_search_client),
    exporter=Depends(get_slides_exporter),
):

    return HealthResponse(
        status="healthy",
        gemini_configured=client.configured,
        slides_configured=exporter.configured,
    )


# ============================================================
# UPLOAD FILE
# ============================================================

@router.post("/upload", response_model=UploadResponse)
async def upload_file(
    file: UploadFile = File(None),
    client=Depends(get_file_search_client),
    poller=Depends(get_file_poller),
    settings=Depends(get_settings),
    posthog=Depends(get_posthog),
    request_id: str = Depends(get_request_id),
):

    if file is None:
        raise ValidationError("No file provided")

    start_time = time.time()

    content = await file.read()

    validate_file_size(content, settings.max_upload_bytes)

    display_name = file.filename or "untitled"

    descriptor = await upload_and_process(
        client,
        poller,
        content,
        display_name=display_name,
        mime_type=file.content_type or DEFAULT_MIME_TYPE,
    )

    latency = time.time() - start_time

    logger.info(
        "File processed",
        extra={"file_name": descriptor.name, "display_name": display_name},
    )

    posthog.track_file_upload(
        distinct_id=request_id,
        file_name=descriptor.name,
        mime_type=descriptor.mime_type,
        size_bytes=descriptor.size_bytes,
        latency=latency,
    )

    return UploadResponse(file=descriptor)


# ============================================================
# FILES
# ============================================================

@router.get("/files", response_model=ListFilesResponse)
async def list_files(client=Depends(get_file_search_client)):

    return ListFilesResponse(files=await client.list_files())


@router.delete("/files", response_model=DeleteResponse)
async def delete_file(
    name: Optional[str] = Query(None),
    client=Depends(get_file_search_client),
):

    if not name or not name.strip():
        raise ValidationError("File name is required")

    await client.delete_file(name.strip())

    return DeleteResponse(message="File deleted successfully")


# ============================================================
# FILE SEARCH STORES
# ============================================================

@router.post("/file-search-stores", response_model=StoreResponse)
async def create_store(
    payload: Optional[CreateStoreRequest] = None,
    client=Depends(get_file_search_client),
    settings=Depends(get_settings),
):

    display_name = None

    if payload is not None and payload.display_name:
        display_name = payload.display_name.strip()

    store = await client.create_store(
        display_name or settings.default_store_display_name
    )

    logger.info("Store created", extra={"store": store.name})

    return StoreResponse(store=store)


@router.get("/file-search-stores", response_model=ListStoresResponse)
async def list_stores(client=Depends(get_file_search_client)):

    return ListStoresResponse(stores=await client.list_stores())


@router.delete("/file-search-stores", response_model=DeleteResponse)
async def delete_store(
    name: Optional[str] = Query(None),
    force: bool = Query(False),
    client=Depends(get_file_search_client),
):
    """
    Without force, a store that still holds documents is refused with
    409 / STORE_NOT_EMPTY so the UI can confirm and retry with force.
    """

    if not name or not name.strip():
        raise ValidationError("Store name is required")

    await client.delete_store(name.strip(), force=force)

    logger.info("Store deleted", extra={"store": name, "force": force})

    return DeleteResponse(message="File Search Store deleted successfully")


@router.post(
    "/file-search-stores/{store_name:path}/import",
    response_model=ImportFileResponse,
)
async def import_file(
    store_name: str,
    payload: ImportFileRequest,
    client=Depends(get_file_search_client),
    poller=Depends(get_import_poller),
    posthog=Depends(get_posthog),
    request_id: str = Depends(get_request_id),
):

    start_time = time.time()

    result = await import_into_store(
        client,
        poller,
        store_name=unquote(store_name),
        file_uri=payload.file_uri,
    )

    posthog.track_store_import(
        distinct_id=request_id,
        store_name=result.store_name or store_name,
        operation_name=result.operation_name,
        latency=time.time() - start_time,
    )

    return ImportFileResponse(
        imported_file=result,
        operation_name=result.operation_name,
    )


# ============================================================
# QUERY
# ============================================================

@router.post("/query", response_model=QueryResponse)
async def query(
    payload: QueryRequest,
    client=Depends(get_file_search_client),
    exporter=Depends(get_slides_exporter),
    posthog=Depends(get_posthog),
    request_id: str = Depends(get_request_id),
):

    start_time = time.time()

    if payload.create_slides:
        require_slides(exporter)

    result = await answer_query(
        payload.query,
        payload.file_search_store_names,
        client,
    )

    response = QueryResponse(answer=result.text, citations=result.citations)

    if payload.create_slides:

        logger.info("Generating slides from query")

        deck = await generate_slide_deck(
            client,
            payload.file_search_store_names,
            query=payload.query,
        )

        response.slides = await export_slide_deck(deck, exporter)

        posthog.track_slides_export(
            distinct_id=request_id,
            presentation_id=response.slides.presentation_id,
            slide_count=response.slides.slide_count,
        )

    posthog.track_query(
        distinct_id=request_id,
        query=payload.query,
        store_count=len(payload.file_search_store_names),
        citations=len(result.citations),
        latency=time.time() - start_time,
    )

    return JSONResponse(
        content=response.model_dump(mode="json"),
        headers=NO_STORE,
    )


# ============================================================
# SLIDES
# ============================================================

@router.post("/slides", response_model=SlidesResponse)
async def create_slides(
    payload: SlidesRequest,
    client=Depends(get_file_search_client),
    exporter=Depends(get_slides_exporter),
    settings=Depends(get_settings),
    posthog=Depends(get_posthog),
    request_id: str = Depends(get_request_id),
):

    store_names = payload.file_search_store_names

    if not store_names:

        if not settings.default_file_search_store:
            raise ConfigurationError(
                "GEMINI_FILE_SEARCH_STORE environment variable missing"
            )

        store_names = [settings.default_file_search_store]

    require_slides(exporter)

    logger.info("Generating slides for topic", extra={"topic": payload.topic})

    deck = await generate_slide_deck(client, store_names, topic=payload.topic)

    export = await export_slide_deck(deck, exporter)

    posthog.track_slides_export(
        distinct_id=request_id,
        presentation_id=export.presentation_id,
        slide_count=export.slide_count,
    )

    return JSONResponse(
        content=SlidesResponse(**export.model_dump()).model_dump(mode="json"),
        headers=NO_STORE,
    )


# ============================================================
# METRICS ENDPOINT
# ============================================================

@router.get("/metrics")
def get_metrics_endpoint(metrics=Depends(get_metrics)):

    return metrics.get_metrics()
