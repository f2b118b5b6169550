"""Text normalization: raw page strings -> ExtractedText with paragraph segments.

- NFKC folding, CRLF -> LF, control characters dropped, tabs become spaces.
- Whitespace inside a paragraph collapses to single spaces.
- Blank lines separate paragraphs; pages arrive as separate strings.
- Paragraphs are joined with PARAGRAPH_SEPARATOR; segment offsets index that text.
"""

from __future__ import annotations

import re
import unicodedata
from collections.abc import Sequence

from contract_lens.domain.models import ExtractedText, TextSegment

PAGE_BREAK = "\f"
PARAGRAPH_SEPARATOR = "\n\n"

_BLANK_LINE = re.compile(r"\n[ \t]*\n")
_WS = re.compile(r"\s+")


def _strip_controls(text: str) -> str:
    out: list[str] = []
    for ch in text:
        if ch in "\n\t":
            out.append(ch if ch == "\n" else " ")
        elif unicodedata.category(ch) == "Cc":
            continue
        else:
            out.append(ch)
    return "".join(out)


def normalize_page(raw: str) -> list[str]:
    """Return the cleaned paragraphs of one page, in order."""
    text = unicodedata.normalize("NFKC", raw)
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = _strip_controls(text)
    paragraphs = []
    for block in _BLANK_LINE.split(text):
        collapsed = _WS.sub(" ", block).strip()
        if collapsed:
            paragraphs.append(collapsed)
    return paragraphs


def split_pages(raw: str) -> list[str]:
    return raw.split(PAGE_BREAK)


def build_extracted_text(document_id: str, source_id: str, pages: Sequence[str]) -> ExtractedText:
    segments: list[TextSegment] = []
    parts: list[str] = []
    offset = 0
    for page_no, raw in enumerate(pages):
        for para_no, para in enumerate(normalize_page(raw)):
            if parts:
                parts.append(PARAGRAPH_SEPARATOR)
                offset += len(PARAGRAPH_SEPARATOR)
            segments.append(
                TextSegment(
                    text=para, page=page_no, paragraph=para_no, start=offset, end=offset + len(para)
                )
            )
            parts.append(para)
            offset += len(para)
    return ExtractedText(
        document_id=document_id,
        source_id=source_id,
        text="".join(parts),
        segments=tuple(segments),
        page_count=max(len(pages), 1),
    )
