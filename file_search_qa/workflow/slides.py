# file_search_qa/workflow/slides.py

import asyncio
import json
import logging
from typing import List, Optional

import pydantic

from file_search_qa.config import (
    SLIDES_MAX_OUTPUT_TOKENS,
    SLIDES_PREVIEW_COUNT,
    SLIDES_TEMPERATURE,
)
from file_search_qa.errors import RemoteFailure
from file_search_qa.models import SlideDeck, SlidesExport
from file_search_qa.prompts.prompt_builder import build_slide_deck_prompt
from file_search_qa.slides.exporter import presentation_url
from file_search_qa.workflow.document_qa import validate_store_names


logger = logging.getLogger(__name__)


def parse_slide_deck(raw: str) -> SlideDeck:
    """
    Parse the model's JSON answer into a SlideDeck.

    Raises RemoteFailure(INVALID_SLIDE_CONTENT) on bad JSON or a deck
    without a title or slides.
    """

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        logger.error("Slide content is not JSON", extra={"raw": raw[:500]})
        raise RemoteFailure(
            "Invalid JSON response from Gemini - check prompt structure",
            code="INVALID_SLIDE_CONTENT",
        ) from e

    try:
        return SlideDeck.model_validate(data)
    except pydantic.ValidationError as e:
        raise RemoteFailure(
            "Incomplete slide structure - missing title or slides array",
            code="INVALID_SLIDE_CONTENT",
            detail={"errors": e.errors(include_url=False)},
        ) from e


async def generate_slide_deck(
    client,
    store_names: List[str],
    query: Optional[str] = None,
    topic: Optional[str] = None,
) -> SlideDeck:

    stores = validate_store_names(store_names)

    result = await client.generate(
        build_slide_deck_prompt(query=query, topic=topic),
        stores,
        json_output=True,
        temperature=SLIDES_TEMPERATURE,
        max_output_tokens=SLIDES_MAX_OUTPUT_TOKENS,
    )

    deck = parse_slide_deck(result.text)

    logger.info("Slide deck generated", extra={"slide_count": len(deck.slides)})

    return deck


async def export_slide_deck(deck: SlideDeck, exporter) -> SlidesExport:
    """Run the blocking Slides export off the event loop."""

    presentation_id = await asyncio.to_thread(exporter.export, deck)

    return SlidesExport(
        presentation_id=presentation_id,
        presentation_url=presentation_url(presentation_id),
        slide_count=len(deck.slides),
        title=deck.title,
        preview=deck.slides[:SLIDES_PREVIEW_COUNT],
    )
