from __future__ import annotations

import threading
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from contract_lens.application.ports.embedding_port import EmbeddingProviderPort
from contract_lens.domain.errors import EmbeddingUnavailable

# Lazy import for testability (allow monkeypatching fake SentenceTransformer)
SentenceTransformer: Any | None
try:  # pragma: no cover - exercised via tests with monkeypatch
    from sentence_transformers import SentenceTransformer as _SentenceTransformer
except Exception:  # noqa: BLE001
    SentenceTransformer = None
else:  # pragma: no cover - exercised in integration
    SentenceTransformer = _SentenceTransformer


@dataclass
class SentenceTransformerProvider(EmbeddingProviderPort):
    """HuggingFace Sentence-Transformers provider (normalized embeddings)."""

    model_name: str = "sentence-transformers/all-MiniLM-L6-v2"
    device: str = "cpu"
    local_files_only: bool = False  # support offline deployments
    revision: str | None = None
    _model: Any | None = None
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    @property
    def model_version(self) -> str:
        # vectors from different checkpoints must never be compared
        return f"{self.model_name}@{self.revision or 'main'}"

    def _ensure_model(self) -> Any:
        if self._model is not None:
            return self._model
        if SentenceTransformer is None:
            raise EmbeddingUnavailable("sentence-transformers not installed.")
        # concurrent batches share one load
        with self._lock:
            if self._model is not None:
                return self._model
            try:
                self._model = SentenceTransformer(
                    self.model_name,
                    device=self.device,
                    revision=self.revision,
                    local_files_only=self.local_files_only,
                )
            except Exception as ex:  # noqa: BLE001
                raise EmbeddingUnavailable(
                    f"Failed to load embedding model '{self.model_name}': {ex}"
                ) from ex
        return self._model

    def embed_batch(self, texts: Sequence[str]) -> list[list[float]]:
        model = self._ensure_model()
        try:
            raw_vectors = model.encode(
                list(texts),
                normalize_embeddings=True,
                convert_to_numpy=True,
                show_progress_bar=False,
            )
        except Exception as ex:  # noqa: BLE001
            raise EmbeddingUnavailable(f"Embedding texts failed: {ex}") from ex
        return [[float(x) for x in vec] for vec in raw_vectors]
