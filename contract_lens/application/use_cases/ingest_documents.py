"""Ingestion: extract -> chunk -> embed -> index, one document at a time.

Batches are embedded and indexed in order. A failing batch stops the document
but leaves earlier batches indexed; chunks left over from a previous version of
the same source are pruned only after every batch succeeded.

Chunk ids derive from the document and its offsets, not the collection, so a
source lives in one collection at a time: ingesting it into another collection
moves its chunks there.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field

from ...domain.errors import DomainError, ValidationError
from ...domain.models import Chunk, IndexEntry
from ...domain.services.chunking import ChunkingParams, chunk_extracted_text
from ...domain.types import Result
from ..dto.ingest_dto import BatchIngestReport, IngestDocumentRequest, IngestReport, PipelineFailure
from ..ports.embedding_port import EmbeddingPort
from ..ports.text_extractor_port import TextExtractorPort
from ..ports.vector_index_port import VectorIndexPort

logger = logging.getLogger(__name__)


def _batches(chunks: Sequence[Chunk], size: int) -> Iterator[Sequence[Chunk]]:
    for i in range(0, len(chunks), size):
        yield chunks[i : i + size]


@dataclass
class IngestDocuments:
    extractor: TextExtractorPort
    embedding: EmbeddingPort
    index: VectorIndexPort
    params: ChunkingParams = field(default_factory=ChunkingParams)
    batch_size: int = 32
    max_workers: int = 4

    def execute(self, req: IngestDocumentRequest) -> Result[IngestReport, DomainError]:
        doc = req.document
        if self.batch_size <= 0:
            return Result.failure(ValidationError("batch_size must be > 0"))

        # 1) Extract (nothing is indexed if this fails)
        try:
            extracted = self.extractor.extract(doc)
            chunks = chunk_extracted_text(extracted, self.params)
        except DomainError as ex:
            logger.warning(
                "Ingestion rejected %s: %s", doc.document_id, ex.message, extra={"kind": ex.kind}
            )
            return Result.failure(ex)

        # 2) Embed + index per batch
        indexed = 0
        batches = 0
        for batch in _batches(chunks, self.batch_size):
            try:
                embeddings = self.embedding.embed(
                    [c.text for c in batch], chunk_ids=[c.chunk_id for c in batch]
                )
                entries = [
                    IndexEntry(
                        embedding=emb,
                        source_id=c.source_id,
                        document_id=c.document_id,
                        text=c.text,
                        start=c.start,
                        end=c.end,
                        collection=req.collection,
                        page=c.page,
                    )
                    for c, emb in zip(batch, embeddings, strict=True)
                ]
                self.index.upsert(entries)
            except DomainError as ex:
                logger.warning(
                    "Ingestion of %s stopped after %d chunk(s): %s",
                    doc.document_id,
                    indexed,
                    ex.message,
                    extra={"kind": ex.kind, "chunks_indexed": indexed},
                )
                return Result.failure(ex)
            indexed += len(batch)
            batches += 1

        # 3) Prune chunks from earlier versions of this source
        try:
            removed = self.index.delete_by_source(doc.source_id, keep_ids={c.chunk_id for c in chunks})
        except DomainError as ex:
            return Result.failure(ex)

        logger.info(
            "Indexed %s: %d chunk(s), %d stale removed",
            doc.document_id,
            indexed,
            removed,
            extra={"document_id": doc.document_id, "chunks": indexed, "stale_removed": removed},
        )
        return Result.success(
            IngestReport(
                document_id=doc.document_id,
                source_id=doc.source_id,
                chunks_indexed=indexed,
                batches_indexed=batches,
                stale_removed=removed,
            )
        )

    def _execute_isolated(self, req: IngestDocumentRequest) -> Result[IngestReport, DomainError]:
        try:
            return self.execute(req)
        except Exception as ex:  # noqa: BLE001
            logger.exception("Unexpected failure ingesting %s", req.document.document_id)
            return Result.failure(DomainError(f"unexpected ingestion failure: {ex}"))

    def execute_many(self, reqs: Sequence[IngestDocumentRequest]) -> BatchIngestReport:
        """Ingest independent documents in parallel; one failure never affects another."""
        report = BatchIngestReport()
        if not reqs:
            return report
        workers = max(1, min(self.max_workers, len(reqs)))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="ingest") as pool:
            results = list(pool.map(self._execute_isolated, reqs))
        for req, res in zip(reqs, results, strict=True):
            if res.ok and res.value is not None:
                report.succeeded.append(res.value)
                continue
            error = res.error or DomainError("ingestion returned no report")
            report.failed.append(PipelineFailure.from_error(error, req.document.document_id))
        return report
