from __future__ import annotations

from bisect import bisect_right
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import IO, Any

from contract_lens.domain.types import Vector

PDF_MIME = "application/pdf"
TEXT_MIMES = frozenset({"text/plain", "text/markdown"})


# ---------- Documents & text ----------


@dataclass(frozen=True)
class Document:
    """An uploaded contract or reference document, held in memory."""

    document_id: str
    source_id: str
    content: bytes | str
    mime_type: str
    filename: str | None = None

    @classmethod
    def from_stream(
        cls,
        stream: IO[bytes],
        *,
        document_id: str,
        mime_type: str,
        source_id: str | None = None,
        filename: str | None = None,
    ) -> Document:
        return cls(
            document_id=document_id,
            source_id=source_id or document_id,
            content=stream.read(),
            mime_type=mime_type,
            filename=filename,
        )

    def as_bytes(self) -> bytes:
        if isinstance(self.content, str):
            return self.content.encode("utf-8")
        return self.content


@dataclass(frozen=True)
class TextSegment:
    """One paragraph of normalized text; offsets point into ExtractedText.text."""

    text: str
    page: int
    paragraph: int
    start: int
    end: int


@dataclass(frozen=True)
class ExtractedText:
    document_id: str
    source_id: str
    text: str
    segments: tuple[TextSegment, ...] = ()
    page_count: int = 1

    def page_at(self, offset: int) -> int:
        if not self.segments:
            return 0
        starts = [s.start for s in self.segments]
        idx = max(bisect_right(starts, offset) - 1, 0)
        return self.segments[idx].page


# ---------- Chunks, embeddings, index ----------


def make_chunk_id(document_id: str, start: int, end: int) -> str:
    """Stable across collections; the collection is entry metadata, not identity."""
    return f"{document_id}::chunk::{start}-{end}"


@dataclass(frozen=True)
class Chunk:
    chunk_id: str
    document_id: str
    source_id: str
    text: str
    start: int
    end: int
    overlap_prev: int = 0
    overlap_next: int = 0
    page: int = 0


@dataclass(frozen=True)
class Embedding:
    chunk_id: str
    vector: Vector
    model_version: str

    @property
    def dim(self) -> int:
        return len(self.vector)


@dataclass(frozen=True)
class IndexEntry:
    embedding: Embedding
    source_id: str
    document_id: str
    text: str
    start: int = 0
    end: int = 0
    collection: str = "default"
    page: int = 0

    @property
    def chunk_id(self) -> str:
        return self.embedding.chunk_id

    @property
    def model_version(self) -> str:
        return self.embedding.model_version

    def metadata(self) -> dict[str, Any]:
        return {
            "source_id": self.source_id,
            "document_id": self.document_id,
            "collection": self.collection,
            "model_version": self.model_version,
            "start": self.start,
            "end": self.end,
            "page": self.page,
        }


@dataclass(frozen=True)
class RetrievedChunk:
    id: str
    text: str
    score: float
    source_id: str = ""
    metadata: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Citation:
    chunk_id: str
    source: str
    score: float


# ---------- Validation & scoring ----------


class Severity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {Severity.INFO: 0, Severity.WARNING: 1, Severity.CRITICAL: 2}


@dataclass(frozen=True)
class ValidationFinding:
    rule_id: str
    severity: Severity
    matched_text: str
    start: int
    end: int
    explanation: str
    page: int = 0
    reference: str | None = None  # statute section, e.g. "Section 27"
    source: str = "validator"  # "validator" | "semantic" | "both" | "model"
    similarity: float | None = None  # set for semantic matches


@dataclass(frozen=True)
class ModelAssessment:
    """Raw language-model opinion; risk_adjustment is unbounded until scored."""

    risk_adjustment: float
    summary: str = ""
    concerns: tuple[ValidationFinding, ...] = ()
    model: str = ""


class RiskLevel(str, Enum):
    SAFE = "safe"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


@dataclass(frozen=True)
class ScoreBreakdown:
    by_severity: Mapping[str, float]
    rule_score: float
    model_delta: float
    floor_applied: bool = False


@dataclass(frozen=True)
class RiskAssessment:
    score: float
    level: RiskLevel
    findings: tuple[ValidationFinding, ...]
    summary: str
    breakdown: ScoreBreakdown
    mode: str = "combined"  # "combined" | "validator_only"

    @property
    def critical_findings(self) -> tuple[ValidationFinding, ...]:
        return tuple(f for f in self.findings if f.severity is Severity.CRITICAL)


# ---------- Drafting ----------


@dataclass(frozen=True)
class GenerateDraft:
    prompt: str
    template_id: str | None = None


@dataclass(frozen=True)
class EnhanceDraft:
    existing_content: str
    clause_text: str


DraftRequest = GenerateDraft | EnhanceDraft


@dataclass(frozen=True)
class DraftResult:
    text: str
    grounded: bool
    citations: tuple[Citation, ...] = ()
    retrieval_error: str | None = None
