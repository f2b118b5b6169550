from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from contract_lens.domain.models import Embedding


@runtime_checkable
class EmbeddingProviderPort(Protocol):
    """Raw provider: one call embeds one batch, no retry, no batching."""

    @property
    def model_version(self) -> str: ...

    def embed_batch(self, texts: Sequence[str]) -> list[list[float]]: ...


@runtime_checkable
class EmbeddingPort(Protocol):
    """Order-preserving, all-or-nothing embedding used by the use cases."""

    @property
    def model_version(self) -> str: ...

    def embed(self, texts: Sequence[str], chunk_ids: Sequence[str] | None = None) -> list[Embedding]: ...

    def embed_query(self, text: str) -> Embedding: ...
