from collections.abc import Collection, Mapping, Sequence
from typing import Protocol, runtime_checkable

from contract_lens.domain.models import Embedding, IndexEntry, RetrievedChunk

__all__ = ["IndexFilter", "RetrievedChunk", "VectorIndexPort"]

# supported keys: "source_id", "collection"
IndexFilter = Mapping[str, str]


@runtime_checkable
class VectorIndexPort(Protocol):
    def upsert(self, entries: Sequence[IndexEntry]) -> None: ...

    def query(
        self, query_embedding: Embedding, k: int, filter: IndexFilter | None = None
    ) -> list[RetrievedChunk]: ...

    def delete_by_source(self, source_id: str, keep_ids: Collection[str] = ()) -> int: ...

    def count(self, source_id: str | None = None) -> int: ...
