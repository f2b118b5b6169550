from __future__ import annotations

import os
import time
from collections.abc import Collection, Sequence
from dataclasses import dataclass
from typing import Any, cast

from contract_lens.application.ports.vector_index_port import IndexFilter, VectorIndexPort
from contract_lens.domain.errors import IndexUnavailable, ValidationError
from contract_lens.domain.models import Embedding, IndexEntry, RetrievedChunk

try:  # pragma: no cover - exercised via tests with monkeypatch
    import chromadb
except Exception:  # noqa: BLE001
    chromadb = None

_FILTER_KEYS = frozenset({"source_id", "collection"})


def _where(conditions: dict[str, Any]) -> dict[str, Any] | None:
    if not conditions:
        return None
    if len(conditions) == 1:
        return dict(conditions)
    return {"$and": [{k: v} for k, v in conditions.items()]}


@dataclass
class ChromaVectorIndex(VectorIndexPort):
    """Persistent index on a Chroma collection (cosine space).

    Entries carry their model version and first-insertion sequence in metadata;
    queries filter on the former and break score ties with the latter.
    """

    persist_dir: str = "var/chroma/contract_lens"
    collection: str = "contract_chunks"
    _client: Any | None = None
    _coll: Any | None = None

    def __post_init__(self) -> None:
        if chromadb is None:
            raise IndexUnavailable("chromadb not installed.")
        os.makedirs(self.persist_dir, exist_ok=True)
        try:
            self._client = chromadb.PersistentClient(path=self.persist_dir)
            self._coll = self._client.get_or_create_collection(
                name=self.collection,
                metadata={"hnsw:space": "cosine"},
            )
        except Exception as ex:  # noqa: BLE001
            raise IndexUnavailable(f"Failed to init Chroma at '{self.persist_dir}': {ex}") from ex

    def _collection(self) -> Any:
        if self._coll is None:
            raise IndexUnavailable("Chroma collection not initialized.")
        return self._coll

    def _existing_seqs(self, ids: list[str]) -> dict[str, int]:
        got = cast(dict[str, Any], self._collection().get(ids=ids, include=["metadatas"]))
        seqs: dict[str, int] = {}
        for cid, meta in zip(got.get("ids") or [], got.get("metadatas") or [], strict=False):
            if meta and "seq" in meta:
                seqs[str(cid)] = int(meta["seq"])
        return seqs

    def upsert(self, entries: Sequence[IndexEntry]) -> None:
        if not entries:
            return
        coll = self._collection()
        try:
            ids = [e.chunk_id for e in entries]
            seqs = self._existing_seqs(ids)
            base = time.time_ns()
            metadatas = []
            for i, e in enumerate(entries):
                meta = e.metadata()
                meta["seq"] = seqs.get(e.chunk_id, base + i)
                metadatas.append(meta)
            # one call: vectors, metadata and text land together
            coll.upsert(
                ids=ids,
                embeddings=[list(e.embedding.vector) for e in entries],
                metadatas=metadatas,
                documents=[e.text for e in entries],
            )
        except Exception as ex:  # noqa: BLE001
            raise IndexUnavailable(f"Upsert failed: {ex}") from ex

    def query(
        self, query_embedding: Embedding, k: int, filter: IndexFilter | None = None
    ) -> list[RetrievedChunk]:
        if k <= 0:
            raise ValidationError("k must be > 0")
        flt = dict(filter or {})
        unknown = set(flt) - _FILTER_KEYS
        if unknown:
            raise ValidationError(f"unsupported filter keys: {sorted(unknown)}")
        conditions: dict[str, Any] = {"model_version": query_embedding.model_version, **flt}
        try:
            result = cast(
                dict[str, list[list[Any]]],
                self._collection().query(
                    query_embeddings=[list(query_embedding.vector)],
                    n_results=k,
                    where=_where(conditions),
                    include=["documents", "metadatas", "distances"],
                ),
            )
        except Exception as ex:  # noqa: BLE001
            raise IndexUnavailable(f"Search failed: {ex}") from ex

        ids = (result.get("ids") or [[]])[0]
        documents = (result.get("documents") or [[]])[0]
        metadatas = (result.get("metadatas") or [[]])[0]
        distances = (result.get("distances") or [[]])[0]

        ranked: list[tuple[float, int, RetrievedChunk]] = []
        for idx, chunk_id in enumerate(ids):
            distance = float(distances[idx]) if idx < len(distances) else 1.0
            score = 1.0 - distance  # Chroma returns cosine distance
            text = documents[idx] if idx < len(documents) and documents[idx] is not None else ""
            metadata = metadatas[idx] if idx < len(metadatas) and metadatas[idx] is not None else {}
            ranked.append(
                (
                    score,
                    int(metadata.get("seq", 0)),
                    RetrievedChunk(
                        id=str(chunk_id),
                        text=str(text),
                        score=score,
                        source_id=str(metadata.get("source_id", "")),
                        metadata=metadata,
                    ),
                )
            )
        ranked.sort(key=lambda t: (-t[0], t[1]))
        return [c for _, _, c in ranked]

    def delete_by_source(self, source_id: str, keep_ids: Collection[str] = ()) -> int:
        coll = self._collection()
        try:
            got = cast(dict[str, Any], coll.get(where={"source_id": source_id}, include=[]))
            keep = set(keep_ids)
            doomed = [str(i) for i in (got.get("ids") or []) if str(i) not in keep]
            if doomed:
                coll.delete(ids=doomed)
        except Exception as ex:  # noqa: BLE001
            raise IndexUnavailable(f"Delete failed for source '{source_id}': {ex}") from ex
        return len(doomed)

    def count(self, source_id: str | None = None) -> int:
        coll = self._collection()
        try:
            if source_id is None:
                return int(coll.count())
            got = cast(dict[str, Any], coll.get(where={"source_id": source_id}, include=[]))
            return len(got.get("ids") or [])
        except Exception as ex:  # noqa: BLE001
            raise IndexUnavailable(f"Count failed: {ex}") from ex

    def ping(self) -> bool:
        if self._client is None:
            raise IndexUnavailable("Chroma client not initialized.")
        try:
            self._client.heartbeat()
        except Exception as ex:  # noqa: BLE001
            raise IndexUnavailable(f"Chroma heartbeat failed: {ex}") from ex
        return True
