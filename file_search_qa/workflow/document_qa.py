# file_search_qa/workflow/document_qa.py
from typing import List

from file_search_qa.errors import ValidationError
from file_search_qa.models import GenerationResult
from file_search_qa.prompts.prompt_builder import build_query_prompt


def validate_store_names(store_names: List[str]) -> List[str]:
    """
    Drop blank names; at least one store must remain.
    """
    cleaned = [name.strip() for name in store_names or [] if name and name.strip()]

    if not cleaned:
        raise ValidationError("At least one fileSearchStoreName is required")

    return cleaned


async def answer_query(query: str, store_names: List[str], client) -> GenerationResult:
    """
    Answer a query with File Search grounding over the given stores.

    Synchronous from the caller's point of view: one generate call,
    no polling. Failures propagate as ServiceError.
    """
    if not query or not query.strip():
        raise ValidationError("Query is required")

    stores = validate_store_names(store_names)

    return await client.generate(build_query_prompt(query), stores)
