import math
import threading
import time

import pytest

from contract_lens.domain.errors import EmbeddingUnavailable
from contract_lens.infrastructure.embeddings import hf_sentence_transformers as hf
from contract_lens.infrastructure.embeddings.hashing_provider import HashingEmbeddingProvider


def test_hashing_provider_is_deterministic_and_normalized():
    provider = HashingEmbeddingProvider(dimension=64)
    a, b, c = provider.embed_batch(["Notice period", "notice  PERIOD", "Governing law"])
    assert a == b
    assert a != c
    assert len(a) == 64
    assert math.isclose(math.sqrt(sum(x * x for x in a)), 1.0)
    assert provider.model_version == "hashing-blake2b-64"


def test_hashing_provider_empty_text_is_zero_vector():
    (vec,) = HashingEmbeddingProvider(dimension=8).embed_batch(["   "])
    assert vec == [0.0] * 8


class FakeSentenceTransformer:
    loaded = []

    def __init__(self, name, device="cpu", revision=None, local_files_only=False):
        FakeSentenceTransformer.loaded.append((name, device, revision, local_files_only))

    def encode(self, texts, normalize_embeddings=False, convert_to_numpy=False, show_progress_bar=True):
        assert normalize_embeddings is True
        return [[1.0, 0.0, 0.0] for _ in texts]


class TestSentenceTransformerProvider:
    def test_loads_model_once_and_encodes(self, monkeypatch):
        FakeSentenceTransformer.loaded = []
        monkeypatch.setattr(hf, "SentenceTransformer", FakeSentenceTransformer)
        provider = hf.SentenceTransformerProvider(model_name="m", revision="abc", local_files_only=True)
        assert provider.embed_batch(["x", "y"]) == [[1.0, 0.0, 0.0], [1.0, 0.0, 0.0]]
        provider.embed_batch(["z"])
        assert FakeSentenceTransformer.loaded == [("m", "cpu", "abc", True)]
        assert provider.model_version == "m@abc"

    def test_concurrent_first_calls_load_model_once(self, monkeypatch):
        class SlowLoad(FakeSentenceTransformer):
            def __init__(self, *args, **kwargs):
                time.sleep(0.05)
                super().__init__(*args, **kwargs)

        FakeSentenceTransformer.loaded = []
        monkeypatch.setattr(hf, "SentenceTransformer", SlowLoad)
        provider = hf.SentenceTransformerProvider(model_name="m")
        barrier = threading.Barrier(4)

        def first_batch():
            barrier.wait()
            provider.embed_batch(["x"])

        threads = [threading.Thread(target=first_batch) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert FakeSentenceTransformer.loaded == [("m", "cpu", None, False)]

    def test_missing_library(self, monkeypatch):
        monkeypatch.setattr(hf, "SentenceTransformer", None)
        with pytest.raises(EmbeddingUnavailable):
            hf.SentenceTransformerProvider().embed_batch(["x"])

    def test_load_failure(self, monkeypatch):
        def broken(*args, **kwargs):
            raise OSError("model not found")

        monkeypatch.setattr(hf, "SentenceTransformer", broken)
        with pytest.raises(EmbeddingUnavailable):
            hf.SentenceTransformerProvider(model_name="missing").embed_batch(["x"])
