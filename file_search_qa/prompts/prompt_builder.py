# file_search_qa/prompts/prompt_builder.py

from typing import Optional

from file_search_qa.prompts.system_prompts import (
    MARKDOWN_INSTRUCTIONS,
    SLIDE_DECK_SCHEMA,
    SLIDES_FROM_QUERY_PROMPT,
    SLIDES_FROM_TOPIC_PROMPT,
)


DEFAULT_SLIDE_COUNT = 5


def build_query_prompt(query: str) -> str:
    """
    Wrap a user query with markdown formatting instructions.

    Retrieval itself is done by the File Search tool; the prompt only
    shapes the answer.
    """

    return f"{query.strip()}\n{MARKDOWN_INSTRUCTIONS}".strip()


def build_slide_deck_prompt(
    query: Optional[str] = None,
    topic: Optional[str] = None,
    slide_count: int = DEFAULT_SLIDE_COUNT,
) -> str:
    """
    Build the JSON-only prompt for a slide deck.

    Exactly one of query / topic must be given.
    """

    if (query is None) == (topic is None):
        raise ValueError("Provide exactly one of query or topic")

    if query is not None:
        head = SLIDES_FROM_QUERY_PROMPT.format(query=query, slide_count=slide_count)
    else:
        head = SLIDES_FROM_TOPIC_PROMPT.format(topic=topic, slide_count=slide_count)

    return f"{head.strip()}\n{SLIDE_DECK_SCHEMA}".strip()
