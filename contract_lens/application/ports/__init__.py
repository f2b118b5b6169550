"""Application ports package.

Re-exports the ports so use cases and adapters can import from one place.
"""

from contract_lens.application.ports.embedding_port import EmbeddingPort, EmbeddingProviderPort
from contract_lens.application.ports.llm_port import ChatMessage, LLMPort, LLMResponse
from contract_lens.application.ports.risk_assessor_port import RiskAssessorPort
from contract_lens.application.ports.template_store_port import ContractTemplate, TemplateStorePort
from contract_lens.application.ports.text_extractor_port import TextExtractorPort
from contract_lens.application.ports.vector_index_port import (
    IndexFilter,
    RetrievedChunk,
    VectorIndexPort,
)

__all__ = [
    "ChatMessage",
    "ContractTemplate",
    "EmbeddingPort",
    "EmbeddingProviderPort",
    "IndexFilter",
    "LLMPort",
    "LLMResponse",
    "RetrievedChunk",
    "RiskAssessorPort",
    "TemplateStorePort",
    "TextExtractorPort",
    "VectorIndexPort",
]
