from __future__ import annotations

from typing import Protocol

from contract_lens.domain.models import Document, ExtractedText


class TextExtractorPort(Protocol):
    def supports(self, mime_type: str) -> bool: ...

    def extract(self, document: Document) -> ExtractedText:
        """Raises UnsupportedFormat or ExtractionError."""
        ...
