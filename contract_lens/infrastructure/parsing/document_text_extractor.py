from __future__ import annotations

from dataclasses import dataclass
from io import BytesIO

from contract_lens.application.ports.text_extractor_port import TextExtractorPort
from contract_lens.domain.errors import ExtractionError, UnsupportedFormat
from contract_lens.domain.models import PDF_MIME, TEXT_MIMES, Document, ExtractedText
from contract_lens.domain.services.text_normalization import build_extracted_text, split_pages


def _base_mime(mime_type: str) -> str:
    # "text/plain; charset=utf-8" -> "text/plain"
    return mime_type.split(";", 1)[0].strip().lower()


@dataclass
class DocumentTextExtractor(TextExtractorPort):
    """PDF (pypdf) and UTF-8 text; form feeds in text mark page breaks."""

    max_bytes: int = 20 * 1024 * 1024

    def supports(self, mime_type: str) -> bool:
        base = _base_mime(mime_type)
        return base == PDF_MIME or base in TEXT_MIMES

    def extract(self, document: Document) -> ExtractedText:
        base = _base_mime(document.mime_type)
        if not self.supports(base):
            raise UnsupportedFormat(
                f"unsupported document type '{document.mime_type}'", mime_type=document.mime_type
            )
        content = document.as_bytes()
        if len(content) > self.max_bytes:
            raise ExtractionError(
                f"document '{document.document_id}' is too large",
                diagnostic=f"{len(content)} bytes > limit {self.max_bytes}",
            )
        if base == PDF_MIME:
            pages = self._pdf_pages(document.document_id, content)
        else:
            pages = split_pages(self._decode_text(document.document_id, content))
        return build_extracted_text(document.document_id, document.source_id, pages)

    @staticmethod
    def _decode_text(document_id: str, content: bytes) -> str:
        try:
            return content.decode("utf-8-sig")
        except UnicodeDecodeError as ex:
            raise ExtractionError(
                f"document '{document_id}' is not valid UTF-8",
                diagnostic=f"invalid byte at offset {ex.start}",
            ) from ex

    @staticmethod
    def _pdf_pages(document_id: str, content: bytes) -> list[str]:
        try:
            from pypdf import PdfReader  # lazy import to avoid hard dependency in tests
        except Exception as ex:  # pragma: no cover
            raise ExtractionError("pypdf is not installed", diagnostic=str(ex)) from ex

        try:
            reader = PdfReader(BytesIO(content))
            if reader.is_encrypted:
                raise ExtractionError(
                    f"document '{document_id}' is encrypted", diagnostic="password protected PDF"
                )
            return [page.extract_text() or "" for page in reader.pages]
        except ExtractionError:
            raise
        except Exception as ex:  # noqa: BLE001
            raise ExtractionError(
                f"PDF parse failed for '{document_id}'", diagnostic=f"{type(ex).__name__}: {ex}"
            ) from ex
