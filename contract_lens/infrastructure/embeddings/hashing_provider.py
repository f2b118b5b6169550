from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass
from hashlib import blake2b

from contract_lens.application.ports.embedding_port import EmbeddingProviderPort
from contract_lens.domain.similarity import l2_normalize

_TOKEN = re.compile(r"\w+")


@dataclass
class HashingEmbeddingProvider(EmbeddingProviderPort):
    """Deterministic feature-hashing embeddings without any model download.

    Used offline and in tests. Tokens hash into a fixed number of buckets with a
    signed count, then the vector is L2-normalized.
    """

    dimension: int = 256

    @property
    def model_version(self) -> str:
        return f"hashing-blake2b-{self.dimension}"

    def _embed(self, text: str) -> list[float]:
        vector = [0.0] * self.dimension
        for token in _TOKEN.findall(text.lower()):
            digest = blake2b(token.encode("utf-8"), digest_size=8).digest()
            idx = int.from_bytes(digest[:4], "little") % self.dimension
            vector[idx] += -1.0 if digest[4] % 2 else 1.0
        return list(l2_normalize(vector))

    def embed_batch(self, texts: Sequence[str]) -> list[list[float]]:
        return [self._embed(t) for t in texts]
