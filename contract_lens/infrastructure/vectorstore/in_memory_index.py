from __future__ import annotations

import itertools
import threading
from collections.abc import Collection, Sequence
from dataclasses import dataclass, field

from contract_lens.application.ports.vector_index_port import IndexFilter, VectorIndexPort
from contract_lens.domain.errors import IndexUnavailable, ValidationError
from contract_lens.domain.models import Embedding, IndexEntry, RetrievedChunk
from contract_lens.domain.similarity import cosine

_FILTER_KEYS = frozenset({"source_id", "collection"})


@dataclass
class _Slot:
    seq: int  # first insertion order, kept across replacements
    entry: IndexEntry


@dataclass
class InMemoryVectorIndex(VectorIndexPort):
    """Process-local index; exact cosine search over all entries of one model version.

    A single lock guards every read and write, so queries see each entry whole.
    """

    _slots: dict[str, _Slot] = field(default_factory=dict)
    _seq: itertools.count = field(default_factory=itertools.count)
    _lock: threading.RLock = field(default_factory=threading.RLock)

    def upsert(self, entries: Sequence[IndexEntry]) -> None:
        with self._lock:
            for e in entries:
                current = self._slots.get(e.chunk_id)
                seq = current.seq if current is not None else next(self._seq)
                self._slots[e.chunk_id] = _Slot(seq=seq, entry=e)

    def query(
        self, query_embedding: Embedding, k: int, filter: IndexFilter | None = None
    ) -> list[RetrievedChunk]:
        if k <= 0:
            raise ValidationError("k must be > 0")
        flt = dict(filter or {})
        unknown = set(flt) - _FILTER_KEYS
        if unknown:
            raise ValidationError(f"unsupported filter keys: {sorted(unknown)}")
        with self._lock:
            candidates = [
                s
                for s in self._slots.values()
                if s.entry.model_version == query_embedding.model_version
                and all(getattr(s.entry, key) == value for key, value in flt.items())
            ]
        scored: list[tuple[float, int, IndexEntry]] = []
        for s in candidates:
            try:
                score = cosine(query_embedding.vector, s.entry.embedding.vector)
            except ValueError as ex:
                raise IndexUnavailable(f"corrupt entry '{s.entry.chunk_id}': {ex}") from ex
            scored.append((score, s.seq, s.entry))
        scored.sort(key=lambda t: (-t[0], t[1]))
        return [
            RetrievedChunk(
                id=e.chunk_id,
                text=e.text,
                score=score,
                source_id=e.source_id,
                metadata=e.metadata(),
            )
            for score, _, e in scored[:k]
        ]

    def delete_by_source(self, source_id: str, keep_ids: Collection[str] = ()) -> int:
        keep = set(keep_ids)
        with self._lock:
            doomed = [
                cid
                for cid, s in self._slots.items()
                if s.entry.source_id == source_id and cid not in keep
            ]
            for cid in doomed:
                del self._slots[cid]
        return len(doomed)

    def count(self, source_id: str | None = None) -> int:
        with self._lock:
            if source_id is None:
                return len(self._slots)
            return sum(1 for s in self._slots.values() if s.entry.source_id == source_id)

    def ping(self) -> bool:
        return True
