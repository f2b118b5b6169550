from __future__ import annotations

import logging
import threading
from collections.abc import Sequence
from dataclasses import dataclass

from contract_lens.application.ports.embedding_port import EmbeddingPort
from contract_lens.application.ports.vector_index_port import VectorIndexPort
from contract_lens.domain.errors import ValidationError
from contract_lens.domain.models import ExtractedText, IndexEntry, ValidationFinding
from contract_lens.domain.services.risk_patterns import (
    RISK_PATTERN_SOURCE,
    RISK_PATTERNS,
    RiskPattern,
    is_standard_safe_clause,
    semantic_finding,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SemanticMatchParams:
    threshold: float = 0.75
    min_clause_chars: int = 50
    top_k: int = 3
    collection: str = "risk_patterns"

    def validate(self) -> None:
        if not 0.0 <= self.threshold <= 1.0:
            raise ValidationError("threshold must be within [0, 1]")
        if self.top_k <= 0:
            raise ValidationError("top_k must be > 0")


class SemanticClauseMatcher:
    """
    Flags contract paragraphs that embed close to a seeded risky pattern.

    Patterns are upserted into the vector index on first use. Embedding and
    index errors propagate as domain errors; the caller decides whether to
    degrade.
    """

    def __init__(
        self,
        embedding: EmbeddingPort,
        index: VectorIndexPort,
        patterns: Sequence[RiskPattern] = RISK_PATTERNS,
        params: SemanticMatchParams | None = None,
    ) -> None:
        self.embedding = embedding
        self.index = index
        self.params = params or SemanticMatchParams()
        self.params.validate()
        self._patterns = {p.pattern_id: p for p in patterns}
        self._seeded = False
        self._lock = threading.Lock()

    def seed(self) -> int:
        """Upsert every pattern example; safe to repeat (ids are stable)."""
        patterns = list(self._patterns.values())
        if not patterns:
            return 0
        embeddings = self.embedding.embed(
            [p.example for p in patterns], chunk_ids=[p.pattern_id for p in patterns]
        )
        self.index.upsert(
            [
                IndexEntry(
                    embedding=emb,
                    source_id=RISK_PATTERN_SOURCE,
                    document_id=p.pattern_id,
                    text=p.example,
                    end=len(p.example),
                    collection=self.params.collection,
                )
                for p, emb in zip(patterns, embeddings, strict=True)
            ]
        )
        logger.info(
            "Seeded %d risk pattern(s)", len(patterns), extra={"collection": self.params.collection}
        )
        return len(patterns)

    def _ensure_seeded(self) -> None:
        if self._seeded:
            return
        with self._lock:
            if not self._seeded:
                self.seed()
                self._seeded = True

    def match(self, extracted: ExtractedText) -> list[ValidationFinding]:
        clauses = [s for s in extracted.segments if len(s.text.strip()) >= self.params.min_clause_chars]
        if not clauses or not self._patterns:
            return []
        self._ensure_seeded()

        embeddings = self.embedding.embed(
            [s.text for s in clauses],
            chunk_ids=[f"{extracted.document_id}::clause::{s.start}-{s.end}" for s in clauses],
        )
        scope = {"collection": self.params.collection, "source_id": RISK_PATTERN_SOURCE}
        findings: list[ValidationFinding] = []
        for segment, emb in zip(clauses, embeddings, strict=True):
            hits = self.index.query(emb, self.params.top_k, filter=scope)
            best = next((h for h in hits if h.id in self._patterns), None)
            if best is None or best.score < self.params.threshold:
                continue
            pattern = self._patterns[best.id]
            if is_standard_safe_clause(segment.text, pattern.clause_type):
                logger.debug("Suppressed standard %s wording at %d", pattern.clause_type, segment.start)
                continue
            findings.append(semantic_finding(pattern, segment, best.score))
        return findings
