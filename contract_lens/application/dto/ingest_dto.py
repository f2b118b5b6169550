from __future__ import annotations

from dataclasses import dataclass, field

from contract_lens.domain.errors import DomainError
from contract_lens.domain.models import Document


@dataclass(frozen=True)
class IngestDocumentRequest:
    document: Document
    collection: str = "reference_clauses"


@dataclass(frozen=True)
class IngestReport:
    document_id: str
    source_id: str
    chunks_indexed: int
    batches_indexed: int = 0
    stale_removed: int = 0


@dataclass(frozen=True)
class PipelineFailure:
    """Boundary form of a DomainError: a stable kind plus a message."""

    kind: str
    message: str
    document_id: str | None = None

    @classmethod
    def from_error(cls, error: BaseException, document_id: str | None = None) -> PipelineFailure:
        if isinstance(error, DomainError):
            return cls(kind=error.kind, message=error.message, document_id=document_id)
        return cls(kind="InternalError", message=str(error), document_id=document_id)


@dataclass(frozen=True)
class BatchIngestReport:
    succeeded: list[IngestReport] = field(default_factory=list)
    failed: list[PipelineFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed
