from __future__ import annotations

from dataclasses import dataclass

from contract_lens.domain.models import Document, RiskAssessment


@dataclass(frozen=True)
class AnalyzeContractRequest:
    """
    DTO for analysing an uploaded contract.

    - document: the uploaded file, already in memory
    - jurisdiction: rule set to apply (defaults to the validator's default)
    - use_model: ask the language model for an adjustment on top of the rules
    - use_semantic: also compare paragraphs against seeded risky patterns
    """

    document: Document
    jurisdiction: str | None = None
    use_model: bool = True
    use_semantic: bool = True


@dataclass(frozen=True)
class ContractAnalysis:
    document_id: str
    assessment: RiskAssessment
    page_count: int
    skipped_rules: tuple[str, ...] = ()
    semantic_checked: bool = False
