# file_search_qa/workflow/ingestion.py

from file_search_qa.errors import ValidationError
from file_search_qa.jobs.poller import AsyncJobPoller
from file_search_qa.models import FileDescriptor, ImportResult


async def upload_and_process(
    client,
    poller: AsyncJobPoller,
    content: bytes,
    display_name: str,
    mime_type: str,
) -> FileDescriptor:
    """
    Upload raw content and wait until the File API finishes processing.

    The display name is what citations will show.
    """

    if not content:
        raise ValidationError("No file provided")

    operation = await client.upload_file(content, display_name, mime_type)

    finished = await poller.wait(operation, client.refresh_file)

    return finished.payload


async def import_into_store(
    client,
    poller: AsyncJobPoller,
    store_name: str,
    file_uri: str,
) -> ImportResult:
    """Import a previously uploaded file into a store and wait for it."""

    if not store_name or not store_name.strip():
        raise ValidationError("Store name is required")

    if not file_uri or not file_uri.strip():
        raise ValidationError("fileUri is required")

    operation = await client.import_file(store_name.strip(), file_uri.strip())

    finished = await poller.wait(operation, client.refresh_import)

    return finished.payload
