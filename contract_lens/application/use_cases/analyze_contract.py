from __future__ import annotations

import logging

from contract_lens.application.dto.analysis_dto import AnalyzeContractRequest, ContractAnalysis
from contract_lens.application.ports.risk_assessor_port import RiskAssessorPort
from contract_lens.application.ports.text_extractor_port import TextExtractorPort
from contract_lens.application.use_cases.semantic_matching import SemanticClauseMatcher
from contract_lens.domain.errors import DomainError
from contract_lens.domain.models import ModelAssessment, ValidationFinding
from contract_lens.domain.services.legal_validator import LegalValidator
from contract_lens.domain.services.risk_patterns import merge_semantic_findings
from contract_lens.domain.services.risk_scoring import ScoringWeights, score_findings
from contract_lens.domain.types import Result

logger = logging.getLogger(__name__)


class AnalyzeContract:
    """
    Extract -> validate -> (optional) semantic match -> (optional) model
    assessment -> score.

    Semantic matching and the model are both advisory: when either fails the
    assessment is still produced from rule findings alone.
    """

    def __init__(
        self,
        extractor: TextExtractorPort,
        validator: LegalValidator,
        assessor: RiskAssessorPort | None = None,
        weights: ScoringWeights | None = None,
        matcher: SemanticClauseMatcher | None = None,
    ) -> None:
        self.extractor = extractor
        self.validator = validator
        self.assessor = assessor
        self.weights = weights or ScoringWeights()
        self.matcher = matcher

    def execute(self, req: AnalyzeContractRequest) -> Result[ContractAnalysis, DomainError]:
        # 1) Extract
        try:
            extracted = self.extractor.extract(req.document)
        except DomainError as ex:
            return Result.failure(ex)

        # 2) Rules
        report = self.validator.run(extracted, req.jurisdiction)
        findings: list[ValidationFinding] = list(report.findings)

        # 3) Similarity to seeded risky patterns (optional, degradable)
        semantic_checked = False
        if self.matcher is not None and req.use_semantic:
            try:
                semantic = self.matcher.match(extracted)
            except DomainError as ex:
                logger.warning(
                    "Semantic matching unavailable for %s, using keyword rules only: %s",
                    req.document.document_id,
                    ex.message,
                    extra={"kind": ex.kind},
                )
            else:
                findings = merge_semantic_findings(findings, semantic)
                semantic_checked = True

        # 4) Model opinion (optional, degradable)
        assessment: ModelAssessment | None = None
        if self.assessor is not None and req.use_model:
            try:
                assessment = self.assessor.assess(extracted, tuple(findings))
            except DomainError as ex:
                logger.warning(
                    "Model assessment unavailable for %s, scoring from rules only: %s",
                    req.document.document_id,
                    ex.message,
                    extra={"kind": ex.kind},
                )

        # 5) Score
        risk = score_findings(findings, assessment, self.weights)
        return Result.success(
            ContractAnalysis(
                document_id=req.document.document_id,
                assessment=risk,
                page_count=extracted.page_count,
                skipped_rules=tuple(e.rule_id for e in report.rule_errors),
                semantic_checked=semantic_checked,
            )
        )
