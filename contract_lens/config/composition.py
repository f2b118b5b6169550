"""Composition root: the only place that picks adapters and wires use cases.

Service handles are created once by build_services() and passed to whatever
drives the pipeline (HTTP layer, worker, tests). Nothing here is a global.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from contract_lens.application.ports.embedding_port import EmbeddingPort, EmbeddingProviderPort
from contract_lens.application.ports.llm_port import LLMPort
from contract_lens.application.ports.risk_assessor_port import RiskAssessorPort
from contract_lens.application.ports.text_extractor_port import TextExtractorPort
from contract_lens.application.ports.vector_index_port import VectorIndexPort
from contract_lens.application.use_cases.analyze_contract import AnalyzeContract
from contract_lens.application.use_cases.check_health import CheckHealth, ComponentProbe
from contract_lens.application.use_cases.draft_contract import DraftContract, RetrievalParams
from contract_lens.application.use_cases.ingest_documents import IngestDocuments
from contract_lens.application.use_cases.semantic_matching import (
    SemanticClauseMatcher,
    SemanticMatchParams,
)
from contract_lens.config.logging_config import configure_logging
from contract_lens.config.settings import AppSettings
from contract_lens.domain.errors import ValidationError
from contract_lens.domain.services.chunking import ChunkingParams
from contract_lens.domain.services.legal_validator import LegalValidator
from contract_lens.domain.services.risk_scoring import ScoringWeights
from contract_lens.domain.services.rule_catalog import default_registry
from contract_lens.infrastructure.embeddings.batching_client import BatchingEmbeddingClient
from contract_lens.infrastructure.embeddings.hashing_provider import HashingEmbeddingProvider
from contract_lens.infrastructure.llm.llm_risk_assessor import LLMRiskAssessor
from contract_lens.infrastructure.llm.openai_chat_adapter import OpenAIChatAdapter
from contract_lens.infrastructure.parsing.document_text_extractor import DocumentTextExtractor
from contract_lens.infrastructure.resilience.resilient_adapters import (
    ResilientLLM,
    ResilientVectorIndex,
)
from contract_lens.infrastructure.resilience.retry import RetryPolicy
from contract_lens.infrastructure.templates.in_memory_template_store import InMemoryTemplateStore
from contract_lens.infrastructure.vectorstore.in_memory_index import InMemoryVectorIndex


def build_retry_policy(settings: AppSettings) -> RetryPolicy:
    return RetryPolicy(
        max_attempts=settings.retry_max_attempts,
        base_delay=settings.retry_base_delay_s,
        max_delay=settings.retry_max_delay_s,
        jitter=settings.retry_jitter_s,
        total_timeout=settings.retry_total_timeout_s,
        call_timeout=settings.call_timeout_s or None,
    )


def build_chunking_params(settings: AppSettings) -> ChunkingParams:
    params = ChunkingParams(
        max_chunk_size=settings.chunk_max_size,
        overlap_size=settings.chunk_overlap,
        boundary_tolerance=settings.chunk_boundary_tolerance,
    )
    params.validate()
    return params


def build_scoring_weights(settings: AppSettings) -> ScoringWeights:
    weights = ScoringWeights(
        critical=settings.score_weight_critical,
        warning=settings.score_weight_warning,
        info=settings.score_weight_info,
        critical_floor=settings.score_critical_floor,
        model_weight=settings.score_model_weight,
        max_model_delta=settings.score_max_model_delta,
    )
    weights.validate()
    return weights


def build_embedding_provider(settings: AppSettings) -> EmbeddingProviderPort:
    backend = settings.embedding_backend
    if backend == "hashing":
        return HashingEmbeddingProvider(dimension=settings.embedding_dim)
    if backend == "sentence_transformers":
        from contract_lens.infrastructure.embeddings.hf_sentence_transformers import (
            SentenceTransformerProvider,
        )

        return SentenceTransformerProvider(
            model_name=settings.embedding_model,
            device=settings.embedding_device,
            revision=settings.embedding_revision or None,
        )
    raise ValidationError(f"unknown EMBEDDING_BACKEND '{backend}'")


def build_embedding(settings: AppSettings, policy: RetryPolicy | None = None) -> EmbeddingPort:
    return BatchingEmbeddingClient(
        provider=build_embedding_provider(settings),
        policy=policy or build_retry_policy(settings),
        batch_size=settings.embedding_batch_size,
        max_concurrency=settings.embedding_concurrency,
    )


def build_vector_index(settings: AppSettings, policy: RetryPolicy | None = None) -> VectorIndexPort:
    backend = settings.vector_backend
    if backend == "memory":
        # local calls: no retry wrapper
        return InMemoryVectorIndex()
    if backend == "chroma":
        from contract_lens.infrastructure.vectorstore.chroma_vector_store import ChromaVectorIndex

        return ResilientVectorIndex(
            inner=ChromaVectorIndex(
                persist_dir=settings.chroma_dir, collection=settings.chroma_collection
            ),
            policy=policy or build_retry_policy(settings),
        )
    raise ValidationError(f"unknown VECTOR_BACKEND '{backend}'")


def build_llm(settings: AppSettings, policy: RetryPolicy | None = None) -> LLMPort | None:
    if not settings.llm_enabled:
        return None
    base = policy or build_retry_policy(settings)
    # generation is slow: LLM_TIMEOUT_S bounds each attempt, not CALL_TIMEOUT_S
    llm_policy = replace(
        base,
        max_attempts=2,  # one retry for generation
        call_timeout=max(base.call_timeout or 0.0, settings.llm_timeout_s) or None,
        total_timeout=max(base.total_timeout, 2 * settings.llm_timeout_s),
    )
    return ResilientLLM(
        inner=OpenAIChatAdapter(
            base_url=settings.llm_base_url,
            api_key=settings.llm_api_key,
            model=settings.llm_model,
            timeout_s=settings.llm_timeout_s,
        ),
        policy=llm_policy,
    )


def build_semantic_matcher(
    settings: AppSettings, embedding: EmbeddingPort, index: VectorIndexPort
) -> SemanticClauseMatcher | None:
    if not settings.semantic_enabled:
        return None
    return SemanticClauseMatcher(
        embedding=embedding,
        index=index,
        params=SemanticMatchParams(
            threshold=settings.semantic_threshold,
            collection=settings.risk_pattern_collection,
        ),
    )


@dataclass(frozen=True)
class ServiceHandles:
    settings: AppSettings
    extractor: TextExtractorPort
    validator: LegalValidator
    embedding: EmbeddingPort
    index: VectorIndexPort
    llm: LLMPort | None
    matcher: SemanticClauseMatcher | None
    ingest: IngestDocuments
    analyze: AnalyzeContract
    draft: DraftContract | None
    health: CheckHealth


def _probe_validator(validator: LegalValidator) -> str:
    if not len(validator.registry):
        raise ValidationError("no legal rules registered")
    return f"{len(validator.registry)} rules"


def _probe_llm(llm: LLMPort) -> object:
    inner = getattr(llm, "inner", llm)
    ping = getattr(inner, "ping", None)
    return ping() if ping is not None else True


def build_health(
    extractor: TextExtractorPort,
    validator: LegalValidator,
    embedding: EmbeddingPort,
    index: VectorIndexPort,
    llm: LLMPort | None,
) -> CheckHealth:
    probes = [
        ComponentProbe("extractor", lambda: extractor.supports("application/pdf")),
        ComponentProbe("validator", lambda: _probe_validator(validator)),
        ComponentProbe("embedding", lambda: embedding.embed_query("health check").dim),
        ComponentProbe("vector_index", lambda: f"{index.count()} entries"),
    ]
    if llm is not None:
        probes.append(ComponentProbe("llm", lambda: _probe_llm(llm), required=False))
    return CheckHealth(probes)


def build_services(settings: AppSettings | None = None) -> ServiceHandles:
    s = settings or AppSettings()
    configure_logging(s.log_level, s.log_json)
    policy = build_retry_policy(s)
    extractor = DocumentTextExtractor()
    validator = LegalValidator(registry=default_registry(), default_jurisdiction=s.default_jurisdiction)
    embedding = build_embedding(s, policy)
    index = build_vector_index(s, policy)
    llm = build_llm(s, policy)
    assessor: RiskAssessorPort | None = LLMRiskAssessor(llm) if llm is not None else None

    ingest = IngestDocuments(
        extractor=extractor,
        embedding=embedding,
        index=index,
        params=build_chunking_params(s),
        # one ingest slice fills every concurrent embedding batch
        batch_size=s.embedding_batch_size * max(s.embedding_concurrency, 1),
        max_workers=s.ingest_workers,
    )
    matcher = build_semantic_matcher(s, embedding, index)
    analyze = AnalyzeContract(
        extractor=extractor,
        validator=validator,
        assessor=assessor,
        weights=build_scoring_weights(s),
        matcher=matcher,
    )
    draft = (
        DraftContract(
            embedding=embedding,
            index=index,
            llm=llm,
            templates=InMemoryTemplateStore.with_builtins(),
            params=RetrievalParams(
                top_k=s.retrieval_top_k,
                min_similarity=s.retrieval_min_similarity,
                collection=s.reference_collection,
            ),
        )
        if llm is not None
        else None
    )
    return ServiceHandles(
        settings=s,
        extractor=extractor,
        validator=validator,
        embedding=embedding,
        index=index,
        llm=llm,
        matcher=matcher,
        ingest=ingest,
        analyze=analyze,
        draft=draft,
        health=build_health(extractor, validator, embedding, index, llm),
    )
