from __future__ import annotations

import logging
from dataclasses import dataclass

from contract_lens.application.ports.embedding_port import EmbeddingPort
from contract_lens.application.ports.llm_port import ChatMessage, LLMPort
from contract_lens.application.ports.template_store_port import TemplateStorePort
from contract_lens.application.ports.vector_index_port import VectorIndexPort
from contract_lens.domain.errors import DomainError, GenerationFailed, ValidationError
from contract_lens.domain.models import (
    Citation,
    DraftRequest,
    DraftResult,
    EnhanceDraft,
    GenerateDraft,
    RetrievedChunk,
)
from contract_lens.domain.services.prompting import (
    DRAFTING_SYSTEM_PROMPT,
    ENHANCE_SYSTEM_PROMPT,
    build_draft_prompt,
    build_enhance_prompt,
)
from contract_lens.domain.types import Result

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetrievalParams:
    top_k: int = 5
    min_similarity: float = 0.3
    collection: str | None = "reference_clauses"


class DraftContract:
    """
    Retrieval-augmented drafting and clause insertion.

    Retrieval is best effort: no hits, or a failing embedding/index backend,
    leads to an ungrounded draft flagged as such. Only a failing language model
    fails the request.
    """

    def __init__(
        self,
        embedding: EmbeddingPort,
        index: VectorIndexPort,
        llm: LLMPort,
        templates: TemplateStorePort | None = None,
        params: RetrievalParams | None = None,
        temperature: float = 0.3,
        max_tokens: int = 2048,
    ) -> None:
        self.embedding = embedding
        self.index = index
        self.llm = llm
        self.templates = templates
        self.params = params or RetrievalParams()
        self.temperature = temperature
        self.max_tokens = max_tokens

    # ----- retrieval -----

    def retrieve(self, query: str) -> tuple[list[RetrievedChunk], str | None]:
        """Top-k chunks above the similarity floor, plus an error note if retrieval failed."""
        flt = {"collection": self.params.collection} if self.params.collection else None
        try:
            q = self.embedding.embed_query(query)
            hits = self.index.query(q, self.params.top_k, filter=flt)
        except DomainError as ex:
            logger.warning(
                "Retrieval failed, drafting without references: %s",
                ex.message,
                extra={"kind": ex.kind},
            )
            return [], f"{ex.kind}: {ex.message}"
        return [h for h in hits if h.score >= self.params.min_similarity], None

    # ----- generation -----

    def _complete(self, system: str, prompt: str) -> str:
        messages = [
            ChatMessage(role="system", content=system),
            ChatMessage(role="user", content=prompt),
        ]
        try:
            resp = self.llm.chat(messages, temperature=self.temperature, max_tokens=self.max_tokens)
        except GenerationFailed:
            raise
        except Exception as ex:  # noqa: BLE001
            raise GenerationFailed(f"llm generation failed: {ex}") from ex
        text = (resp.text or "").strip()
        if not text:
            raise GenerationFailed("llm returned an empty draft")
        return text

    def _result(
        self, text: str, refs: list[RetrievedChunk], retrieval_error: str | None
    ) -> DraftResult:
        if not refs:
            logger.info("Draft produced without grounding references")
        return DraftResult(
            text=text,
            grounded=bool(refs),
            citations=tuple(Citation(chunk_id=r.id, source=r.source_id, score=r.score) for r in refs),
            retrieval_error=retrieval_error,
        )

    def generate_draft(
        self, prompt: str, template_id: str | None = None
    ) -> Result[DraftResult, DomainError]:
        if not prompt or not prompt.strip():
            return Result.failure(ValidationError("prompt must not be empty"))
        template_body = None
        if template_id is not None:
            template = self.templates.get(template_id) if self.templates else None
            if template is None:
                return Result.failure(ValidationError(f"unknown template '{template_id}'"))
            template_body = template.body

        refs, err = self.retrieve(prompt)
        try:
            text = self._complete(DRAFTING_SYSTEM_PROMPT, build_draft_prompt(prompt, refs, template_body))
        except GenerationFailed as ex:
            return Result.failure(ex)
        return Result.success(self._result(text, refs, err))

    def enhance(self, existing_content: str, clause_text: str) -> Result[DraftResult, DomainError]:
        if not existing_content or not existing_content.strip():
            return Result.failure(ValidationError("existing_content must not be empty"))
        if not clause_text or not clause_text.strip():
            return Result.failure(ValidationError("clause_text must not be empty"))

        refs, err = self.retrieve(clause_text)
        try:
            text = self._complete(
                ENHANCE_SYSTEM_PROMPT, build_enhance_prompt(existing_content, clause_text, refs)
            )
        except GenerationFailed as ex:
            return Result.failure(ex)
        return Result.success(self._result(text, refs, err))

    def execute(self, req: DraftRequest) -> Result[DraftResult, DomainError]:
        if isinstance(req, EnhanceDraft):
            return self.enhance(req.existing_content, req.clause_text)
        if isinstance(req, GenerateDraft):
            return self.generate_draft(req.prompt, req.template_id)
        return Result.failure(ValidationError(f"unsupported draft request: {type(req).__name__}"))
