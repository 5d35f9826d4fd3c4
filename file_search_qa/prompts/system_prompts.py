"""
Centralized prompts.

Production rule:
NEVER hardcode prompts inside workflow or client code.
Always import from here.
"""


MARKDOWN_INSTRUCTIONS = """
## Instructions
You MUST format your response using markdown syntax. Follow these rules:
1. Use headings (# for main title, ## for sections, ### for subsections)
2. Use **bold** for emphasis and key terms
3. Use bullet lists with - (not *) for better compatibility
4. Use numbered lists (1., 2., 3.) for sequential items
5. Use code blocks with ```language for code examples
6. Use [link text](url) for links
7. Separate sections with blank lines
8. Do NOT use plain text paragraphs - structure everything with markdown

Example format:
## Main Topic
Brief introduction paragraph.

### Section 1
- **Key Point 1**: Description
- **Key Point 2**: Description

### Section 2
1. First item
2. Second item

Return your response in markdown format only.
"""


SLIDE_DECK_SCHEMA = """
Return VALID JSON only - no markdown or explanations:
{
  "title": "Presentation Title",
  "subtitle": "Subtitle",
  "slides": [
    {
      "title": "Slide Title",
      "bullet_points": ["Point 1", "Point 2", "Point 3"],
      "notes": "Speaker notes with citations",
      "citations": ["doc1.pdf", "doc2.pdf"]
    }
  ]
}
"""


SLIDES_FROM_QUERY_PROMPT = """
Based on the following query: "{query}"

Create a {slide_count}-slide presentation using the file search documents to answer this query.
"""


SLIDES_FROM_TOPIC_PROMPT = """
Create a {slide_count}-slide presentation about "{topic}" using the file search documents.
"""
