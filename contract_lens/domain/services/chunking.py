from __future__ import annotations

import re
from bisect import bisect_right
from collections.abc import Sequence
from dataclasses import dataclass

from contract_lens.domain.errors import ValidationError
from contract_lens.domain.models import Chunk, ExtractedText, make_chunk_id

# ---------- Parameters ----------


@dataclass(frozen=True)
class ChunkingParams:
    max_chunk_size: int = 1000
    overlap_size: int = 150
    boundary_tolerance: int = 200

    def validate(self) -> None:
        if self.max_chunk_size <= 0:
            raise ValidationError("max_chunk_size must be > 0")
        if self.overlap_size < 0:
            raise ValidationError("overlap_size must be >= 0")
        if self.overlap_size >= self.max_chunk_size:
            raise ValidationError(
                f"overlap_size ({self.overlap_size}) must be smaller than "
                f"max_chunk_size ({self.max_chunk_size})"
            )
        if self.boundary_tolerance < 0:
            raise ValidationError("boundary_tolerance must be >= 0")


# ---------- Boundary search ----------

# end of a sentence: terminal punctuation (optionally closing quote/bracket) before whitespace
_SENT_END = re.compile(r"[.!?;:][\"')\]]?(?=\s)")


def _segment_cut(boundaries: Sequence[int], floor: int, limit: int) -> int | None:
    """Largest paragraph end in (floor, limit]."""
    idx = bisect_right(boundaries, limit) - 1
    if idx >= 0 and boundaries[idx] > floor:
        return boundaries[idx]
    return None


def _sentence_cut(text: str, floor: int, limit: int, tolerance: int) -> int | None:
    """Last sentence end inside the tolerance window before limit."""
    lo = max(floor + 1, limit - tolerance)
    best: int | None = None
    for m in _SENT_END.finditer(text, lo - 1 if lo > 0 else 0, limit):
        if floor < m.end() <= limit:
            best = m.end()
    return best


# ---------- Chunker ----------


def chunk_extracted_text(extracted: ExtractedText, params: ChunkingParams | None = None) -> list[Chunk]:
    """Split normalized text into overlapping chunks that cover it without gaps.

    Chunks extend greedily to the furthest paragraph end within max_chunk_size.
    When no paragraph end is in reach the cut falls on the last sentence end
    inside boundary_tolerance, else on a hard character limit. The next chunk
    starts overlap_size characters before the previous end, always strictly
    after the previous start.
    """
    p = params or ChunkingParams()
    p.validate()
    text = extracted.text
    n = len(text)
    if n == 0 or not text.strip():
        return []

    boundaries = sorted({s.end for s in extracted.segments} | {n})
    chunks: list[Chunk] = []
    start = 0
    prev_end = 0
    while True:
        limit = min(start + p.max_chunk_size, n)
        if limit == n:
            end = n
        else:
            end = (
                _segment_cut(boundaries, prev_end, limit)
                or _sentence_cut(text, max(start, prev_end), limit, p.boundary_tolerance)
                or limit
            )
        overlap_prev = max(prev_end - start, 0) if chunks else 0
        chunks.append(
            Chunk(
                chunk_id=make_chunk_id(extracted.document_id, start, end),
                document_id=extracted.document_id,
                source_id=extracted.source_id,
                text=text[start:end],
                start=start,
                end=end,
                overlap_prev=overlap_prev,
                page=extracted.page_at(start),
            )
        )
        if end >= n:
            break
        prev_end = end
        start = max(end - p.overlap_size, start + 1)

    # overlap_next mirrors the following chunk's overlap_prev
    for i in range(len(chunks) - 1):
        nxt = chunks[i + 1]
        cur = chunks[i]
        chunks[i] = Chunk(
            chunk_id=cur.chunk_id,
            document_id=cur.document_id,
            source_id=cur.source_id,
            text=cur.text,
            start=cur.start,
            end=cur.end,
            overlap_prev=cur.overlap_prev,
            overlap_next=nxt.overlap_prev,
            page=cur.page,
        )
    return chunks


def reconstruct_text(chunks: Sequence[Chunk]) -> str:
    """Rebuild the source text from ordered chunks; raises on gaps."""
    if not chunks:
        return ""
    ordered = sorted(chunks, key=lambda c: c.start)
    if ordered[0].start != 0:
        raise ValueError(f"text before first chunk is not covered (starts at {ordered[0].start})")
    parts = [ordered[0].text]
    covered = ordered[0].end
    for c in ordered[1:]:
        if c.start > covered:
            raise ValueError(f"gap between offsets {covered} and {c.start}")
        parts.append(c.text[covered - c.start :])
        covered = max(covered, c.end)
    return "".join(parts)
