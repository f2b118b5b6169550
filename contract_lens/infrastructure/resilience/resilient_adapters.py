"""Retry/timeout decorators around the LLM and vector index ports."""

from __future__ import annotations

from collections.abc import Collection, Sequence
from dataclasses import dataclass, field

from contract_lens.application.ports.llm_port import ChatMessage, LLMPort, LLMResponse
from contract_lens.application.ports.vector_index_port import IndexFilter, VectorIndexPort
from contract_lens.domain.errors import DomainError, GenerationFailed, IndexUnavailable
from contract_lens.domain.models import Embedding, IndexEntry, RetrievedChunk
from contract_lens.infrastructure.resilience.retry import RetryPolicy


@dataclass
class ResilientLLM(LLMPort):
    """LLM calls get one retry with backoff, then surface as GenerationFailed."""

    inner: LLMPort
    policy: RetryPolicy = field(default_factory=lambda: RetryPolicy(max_attempts=2))

    @property
    def model(self) -> str:
        return getattr(self.inner, "model", "unknown")

    def chat(
        self, messages: Sequence[ChatMessage], temperature: float = 0.2, max_tokens: int = 1024
    ) -> LLMResponse:
        try:
            return self.policy.call(
                self.inner.chat, messages, temperature=temperature, max_tokens=max_tokens
            )
        except GenerationFailed:
            raise
        except Exception as ex:  # noqa: BLE001
            raise GenerationFailed(f"LLM unavailable after retries: {ex}") from ex


@dataclass
class ResilientVectorIndex(VectorIndexPort):
    inner: VectorIndexPort
    policy: RetryPolicy = field(default_factory=RetryPolicy)

    def _call(self, fn, *args, **kwargs):  # type: ignore[no-untyped-def]
        try:
            return self.policy.call(fn, *args, **kwargs)
        except DomainError:
            raise
        except Exception as ex:  # noqa: BLE001
            raise IndexUnavailable(f"vector index unavailable: {ex}") from ex

    def upsert(self, entries: Sequence[IndexEntry]) -> None:
        self._call(self.inner.upsert, entries)

    def query(
        self, query_embedding: Embedding, k: int, filter: IndexFilter | None = None
    ) -> list[RetrievedChunk]:
        return self._call(self.inner.query, query_embedding, k, filter=filter)

    def delete_by_source(self, source_id: str, keep_ids: Collection[str] = ()) -> int:
        return self._call(self.inner.delete_by_source, source_id, keep_ids=keep_ids)

    def count(self, source_id: str | None = None) -> int:
        return self._call(self.inner.count, source_id)
