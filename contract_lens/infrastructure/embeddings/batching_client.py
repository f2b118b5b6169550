"""Order-preserving embedding client on top of a raw provider.

Texts are split into batches, batches run concurrently under the shared retry
policy and are reassembled by batch index. Either every text gets a vector or
the whole call raises EmbeddingUnavailable.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field

from contract_lens.application.ports.embedding_port import EmbeddingPort, EmbeddingProviderPort
from contract_lens.domain.errors import EmbeddingUnavailable
from contract_lens.domain.models import Embedding
from contract_lens.infrastructure.resilience.retry import RetryPolicy

logger = logging.getLogger(__name__)


@dataclass
class BatchingEmbeddingClient(EmbeddingPort):
    provider: EmbeddingProviderPort
    policy: RetryPolicy = field(default_factory=RetryPolicy)
    batch_size: int = 32
    max_concurrency: int = 4
    expected_dim: int | None = None

    def __post_init__(self) -> None:
        if self.batch_size <= 0:
            raise ValueError("batch_size must be > 0")
        if self.max_concurrency <= 0:
            raise ValueError("max_concurrency must be > 0")

    @property
    def model_version(self) -> str:
        return self.provider.model_version

    def _embed_one_batch(self, batch: Sequence[str]) -> list[list[float]]:
        vectors = self.policy.call(self.provider.embed_batch, list(batch))
        if len(vectors) != len(batch):
            raise EmbeddingUnavailable(
                f"provider returned {len(vectors)} vector(s) for {len(batch)} text(s)"
            )
        return vectors

    def _check_dimensions(self, vectors: Sequence[Sequence[float]]) -> None:
        dims = {len(v) for v in vectors}
        if len(dims) > 1:
            raise EmbeddingUnavailable(f"provider returned mixed dimensions {sorted(dims)}")
        dim = next(iter(dims))
        if dim == 0:
            raise EmbeddingUnavailable("provider returned empty vectors")
        if self.expected_dim is not None and dim != self.expected_dim:
            raise EmbeddingUnavailable(f"expected dimension {self.expected_dim}, got {dim}")

    def embed(self, texts: Sequence[str], chunk_ids: Sequence[str] | None = None) -> list[Embedding]:
        if chunk_ids is not None and len(chunk_ids) != len(texts):
            raise ValueError("chunk_ids must match texts in length")
        if not texts:
            return []
        batches = [texts[i : i + self.batch_size] for i in range(0, len(texts), self.batch_size)]
        workers = min(self.max_concurrency, len(batches))
        try:
            if workers == 1:
                results = [self._embed_one_batch(b) for b in batches]
            else:
                with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="embed") as pool:
                    # map() yields in submission order, which is batch order
                    results = list(pool.map(self._embed_one_batch, batches))
        except EmbeddingUnavailable:
            raise
        except Exception as ex:  # noqa: BLE001
            logger.error(
                "Embedding failed for %d text(s)", len(texts), extra={"error_type": type(ex).__name__}
            )
            raise EmbeddingUnavailable(f"embedding provider unavailable: {ex}") from ex

        vectors = [v for batch in results for v in batch]
        self._check_dimensions(vectors)
        version = self.model_version
        ids = chunk_ids if chunk_ids is not None else [f"text-{i}" for i in range(len(texts))]
        return [
            Embedding(chunk_id=cid, vector=tuple(float(x) for x in vec), model_version=version)
            for cid, vec in zip(ids, vectors, strict=True)
        ]

    def embed_query(self, text: str) -> Embedding:
        (emb,) = self.embed([text], chunk_ids=["query"])
        return emb
