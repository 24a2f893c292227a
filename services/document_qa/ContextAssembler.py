"""Builds the bounded prompt context and the citation list from ranked passages."""

import re

from shared.models.answer import AssembledContext, Citation, Passage

DEFAULT_MAX_PASSAGES = 5
DEFAULT_PASSAGE_CHAR_LIMIT = 1500
MAX_CITATIONS = 3
EXCERPT_CHARS = 200

CHUNK_SEPARATOR = "\n\n"

# [Document 2: "report.pdf", Page 7]
CHUNK_HEADER_RE = re.compile(r'^\[Document (\d+): "(.*)", Page (\d+)\]$', re.MULTILINE)


def format_chunk_header(index: int, document_name: str, page_number: int) -> str:
    return f'[Document {index}: "{document_name}", Page {page_number}]'


def make_excerpt(text: str) -> str:
    return text[:EXCERPT_CHARS] + "..."


def split_context(context_text: str) -> list[tuple[str, int, str]]:
    """Split assembled context back into (document name, page number, text) chunks."""
    headers = list(CHUNK_HEADER_RE.finditer(context_text))
    chunks: list[tuple[str, int, str]] = []
    for position, header in enumerate(headers):
        end = headers[position + 1].start() if position + 1 < len(headers) else len(context_text)
        body = context_text[header.end():end].strip()
        chunks.append((header.group(2), int(header.group(3)), body))
    return chunks


class ContextAssembler:
    def __init__(self, max_passages: int = DEFAULT_MAX_PASSAGES, passage_char_limit: int = DEFAULT_PASSAGE_CHAR_LIMIT) -> None:
        self.max_passages = max_passages
        self.passage_char_limit = passage_char_limit

    def assemble(self, passages: list[Passage], max_passages: int | None = None) -> AssembledContext:
        """Concatenate the best passages into a prompt context and pick the citations.

        Args:
            passages (list[Passage]): Passages sorted best first.
            max_passages (int | None): Override for the number of passages in the context.

        Returns:
            AssembledContext: Context text (chunks separated by a blank line) and
                              at most three citations, taken from the top passages
                              whatever the context limit.
        """
        limit = self.max_passages if max_passages is None else max_passages
        selected = passages[:limit]

        chunks = [
            format_chunk_header(index, passage.document_name, passage.page_number)
            + "\n"
            + passage.text[: self.passage_char_limit]
            for index, passage in enumerate(selected, start=1)
        ]
        citations = [
            Citation(
                document_name=passage.document_name,
                page_number=passage.page_number,
                excerpt=make_excerpt(passage.text),
            )
            for passage in passages[:MAX_CITATIONS]
        ]
        return AssembledContext(text=CHUNK_SEPARATOR.join(chunks), citations=citations)
