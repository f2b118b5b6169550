"""Application settings with environment-driven configuration.

This is the ONLY place where environment variables are read. All other layers
receive settings via dependency injection.
"""

import os
from dataclasses import dataclass, field


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class AppSettings:
    """Application settings loaded from environment variables.

    Backends:
    - vector_backend: "memory" (process-local) | "chroma" (persistent)
    - embedding_backend: "hashing" (deterministic, offline) | "sentence_transformers"
    - llm_enabled: without an LLM, analysis is rule-only and drafting is unavailable
    """

    # ===== Chunking =====
    chunk_max_size: int = field(default_factory=lambda: int(os.getenv("CHUNK_MAX_SIZE", "1000")))
    chunk_overlap: int = field(default_factory=lambda: int(os.getenv("CHUNK_OVERLAP", "150")))
    chunk_boundary_tolerance: int = field(
        default_factory=lambda: int(os.getenv("CHUNK_BOUNDARY_TOLERANCE", "200"))
    )

    # ===== Embedding Configuration =====
    embedding_backend: str = field(
        default_factory=lambda: os.getenv("EMBEDDING_BACKEND", "hashing").lower()
    )
    embedding_model: str = field(
        default_factory=lambda: os.getenv(
            "EMBEDDING_MODEL", "sentence-transformers/all-MiniLM-L6-v2"
        )
    )
    embedding_revision: str = field(default_factory=lambda: os.getenv("EMBEDDING_REVISION", ""))
    embedding_device: str = field(default_factory=lambda: os.getenv("EMBEDDING_DEVICE", "cpu"))
    # Supported: "cpu" | "cuda" | "mps"
    embedding_dim: int = field(default_factory=lambda: int(os.getenv("EMBEDDING_DIM", "256")))
    # only used by the hashing backend
    embedding_batch_size: int = field(
        default_factory=lambda: int(os.getenv("EMBEDDING_BATCH_SIZE", "32"))
    )
    embedding_concurrency: int = field(
        default_factory=lambda: int(os.getenv("EMBEDDING_CONCURRENCY", "4"))
    )

    # ===== Vector Store Configuration =====
    vector_backend: str = field(default_factory=lambda: os.getenv("VECTOR_BACKEND", "memory").lower())
    chroma_dir: str = field(default_factory=lambda: os.getenv("CHROMA_DIR", "var/chroma/contract_lens"))
    chroma_collection: str = field(
        default_factory=lambda: os.getenv("CHROMA_COLLECTION", "contract_chunks")
    )
    reference_collection: str = field(
        default_factory=lambda: os.getenv("REFERENCE_COLLECTION", "reference_clauses")
    )

    # ===== LLM Configuration =====
    llm_enabled: bool = field(default_factory=lambda: _env_bool("LLM_ENABLED", "true"))
    llm_base_url: str = field(
        default_factory=lambda: os.getenv("LLM_BASE_URL", "http://localhost:8000/v1")
    )
    llm_api_key: str = field(default_factory=lambda: os.getenv("LLM_API_KEY", "EMPTY"))
    llm_model: str = field(
        default_factory=lambda: os.getenv("LLM_MODEL", "meta-llama/Meta-Llama-3.1-8B-Instruct")
    )
    llm_timeout_s: float = field(default_factory=lambda: float(os.getenv("LLM_TIMEOUT_S", "60")))

    # ===== Retry Configuration =====
    retry_max_attempts: int = field(default_factory=lambda: int(os.getenv("RETRY_MAX_ATTEMPTS", "3")))
    retry_base_delay_s: float = field(
        default_factory=lambda: float(os.getenv("RETRY_BASE_DELAY_S", "0.5"))
    )
    retry_max_delay_s: float = field(
        default_factory=lambda: float(os.getenv("RETRY_MAX_DELAY_S", "8"))
    )
    retry_jitter_s: float = field(default_factory=lambda: float(os.getenv("RETRY_JITTER_S", "0.5")))
    retry_total_timeout_s: float = field(
        default_factory=lambda: float(os.getenv("RETRY_TOTAL_TIMEOUT_S", "60"))
    )
    call_timeout_s: float = field(default_factory=lambda: float(os.getenv("CALL_TIMEOUT_S", "30")))
    # 0 disables the per-call timeout

    # ===== Retrieval =====
    retrieval_top_k: int = field(default_factory=lambda: int(os.getenv("RETRIEVAL_TOP_K", "5")))
    retrieval_min_similarity: float = field(
        default_factory=lambda: float(os.getenv("RETRIEVAL_MIN_SIMILARITY", "0.3"))
    )

    # ===== Semantic Clause Matching =====
    semantic_enabled: bool = field(default_factory=lambda: _env_bool("SEMANTIC_ENABLED", "true"))
    semantic_threshold: float = field(
        default_factory=lambda: float(os.getenv("SEMANTIC_THRESHOLD", "0.75"))
    )
    risk_pattern_collection: str = field(
        default_factory=lambda: os.getenv("RISK_PATTERN_COLLECTION", "risk_patterns")
    )

    # ===== Risk Scoring =====
    score_weight_critical: float = field(
        default_factory=lambda: float(os.getenv("SCORE_WEIGHT_CRITICAL", "45"))
    )
    score_weight_warning: float = field(
        default_factory=lambda: float(os.getenv("SCORE_WEIGHT_WARNING", "15"))
    )
    score_weight_info: float = field(default_factory=lambda: float(os.getenv("SCORE_WEIGHT_INFO", "3")))
    score_critical_floor: float = field(
        default_factory=lambda: float(os.getenv("SCORE_CRITICAL_FLOOR", "70"))
    )
    score_model_weight: float = field(
        default_factory=lambda: float(os.getenv("SCORE_MODEL_WEIGHT", "1.0"))
    )
    score_max_model_delta: float = field(
        default_factory=lambda: float(os.getenv("SCORE_MAX_MODEL_DELTA", "15"))
    )
    default_jurisdiction: str = field(
        default_factory=lambda: os.getenv("DEFAULT_JURISDICTION", "IN").upper()
    )

    # ===== Ingestion / Logging =====
    ingest_workers: int = field(default_factory=lambda: int(os.getenv("INGEST_WORKERS", "4")))
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").upper())
    log_json: bool = field(default_factory=lambda: _env_bool("LOG_JSON", "false"))
