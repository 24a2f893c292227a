"""Text extraction adapter: PDF bytes → ordered page texts (index 0 = page 1)."""

import logging
import re
from io import BytesIO

from pypdf import PdfReader

from shared.models.errors import ExtractionError

_WHITESPACE_RE = re.compile(r"\s+")


class PDFTextExtractor:
    """Extracts plain text per page with pypdf.

    Whitespace inside a page is collapsed to single spaces, so a page reads
    as one flat run of text the way a browser text layer delivers it.
    """

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self.logging = logger or logging.getLogger(__name__)

    def extract(self, payload: bytes) -> list[str]:
        """Extract the text of every page.

        Args:
            payload (bytes): The raw PDF file content.

        Returns:
            list[str]: One string per page, in page order. Individual pages may be empty.

        Raises:
            ExtractionError: If the payload cannot be parsed, has no pages,
                             or every page is empty.
        """
        if not payload:
            raise ExtractionError("The file is empty.")

        try:
            reader = PdfReader(BytesIO(payload))
            texts = [self._normalise(page.extract_text() or "") for page in reader.pages]
        except Exception as e:
            # pypdf raises a wide range of errors on damaged input
            self.logging.error("Failed to parse PDF: %s", e)
            raise ExtractionError(f"Not a readable PDF document: {e}") from e

        if not texts:
            raise ExtractionError("The document has no pages.")
        if not any(texts):
            raise ExtractionError("No text could be extracted (the document may be scanned images only).")

        self.logging.debug("Extracted %d page(s), %d with text", len(texts), sum(1 for t in texts if t))
        return texts

    @staticmethod
    def _normalise(text: str) -> str:
        return _WHITESPACE_RE.sub(" ", text).strip()
