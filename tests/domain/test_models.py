import io

from contract_lens.domain.models import (
    Document,
    Embedding,
    IndexEntry,
    Severity,
    make_chunk_id,
)
from contract_lens.domain.similarity import cosine, l2_normalize
from contract_lens.domain.types import Result


def test_document_from_stream_reads_bytes():
    doc = Document.from_stream(io.BytesIO(b"hello"), document_id="d1", mime_type="text/plain")
    assert doc.content == b"hello"
    assert doc.source_id == "d1"
    assert Document("d2", "s", "text", "text/plain").as_bytes() == b"text"


def test_chunk_id_is_deterministic():
    assert make_chunk_id("doc", 0, 10) == make_chunk_id("doc", 0, 10) == "doc::chunk::0-10"


def test_index_entry_metadata():
    entry = IndexEntry(
        embedding=Embedding("c1", (1.0, 0.0), "m-1"),
        source_id="s",
        document_id="d",
        text="t",
        collection="refs",
    )
    assert entry.chunk_id == "c1"
    assert entry.metadata()["model_version"] == "m-1"
    assert entry.metadata()["collection"] == "refs"


def test_severity_rank_orders_levels():
    assert Severity.INFO.rank < Severity.WARNING.rank < Severity.CRITICAL.rank


def test_cosine_and_normalize():
    assert cosine((1.0, 0.0), (1.0, 0.0)) == 1.0
    assert cosine((1.0, 0.0), (0.0, 1.0)) == 0.0
    assert cosine((0.0, 0.0), (1.0, 0.0)) == 0.0
    assert l2_normalize([3.0, 4.0]) == (0.6, 0.8)


def test_result_success_and_failure():
    ok = Result.success(1)
    bad = Result.failure(ValueError("x"))
    assert ok.ok and ok.value == 1 and ok.error is None
    assert not bad.ok and isinstance(bad.error, ValueError)
