"""Prompt template for artwork question answering.

The model is asked for strict JSON:
  {"answer": "...", "sources": ["Title by Artist", ...]}
with <b>/<i> markup allowed inside ``answer`` and a fixed fallback answer
when the context does not cover the question.
"""

from __future__ import annotations

from artrag.models import ScoredChunk

FALLBACK_ANSWER = "Sorry. I don't have enough information to answer that question."

_CHUNK_SEPARATOR = "\n\n---\n\n"

PROMPT_TEMPLATE = """\
You are an AI assistant that helps answer questions based on the provided context about artworks and cultural objects.

Context:
{context}

Question: {question}

Instructions:
- Use the provided context to answer the question accurately
- Be concise but informative
- Focus on the most relevant information from the context
- If discussing artworks, mention specific details like artist, title, date, or medium when available
- List the sources you used from the context in the "sources" field
- Respond with JSON only, using exactly this structure:
{{
  "answer": "Your answer here",
  "sources": ["Title and Artist of the first source used", "Title and Artist of the second source used"]
}}
- Format the answer as HTML if possible, using <b> for bold text and <i> for italic text
- If you cannot find relevant information, return:
{{
  "answer": "{fallback}",
  "sources": []
}}
"""


def format_context(chunks: list[ScoredChunk]) -> str:
    """Render each chunk as a ``Source:`` line plus its text, separated by ``---``."""
    blocks = [
        f"Source: {sc.chunk.metadata.label()}\n{sc.chunk.text}"
        for sc in chunks
    ]
    return _CHUNK_SEPARATOR.join(blocks)


def build_prompt(question: str, chunks: list[ScoredChunk]) -> str:
    """Substitute the context block and *question* into the fixed template."""
    return PROMPT_TEMPLATE.format(
        context=format_context(chunks),
        question=question.strip(),
        fallback=FALLBACK_ANSWER,
    )
