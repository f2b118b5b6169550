"""Seeded risky-clause patterns for similarity matching.

Each pattern carries one example clause. Contract paragraphs that embed close
to an example are reported as semantic findings, which catches rephrasings the
keyword rules miss. Standard deliverable, fee and timeline wording that merely
resembles a risky pattern is suppressed.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, replace

from contract_lens.domain.models import Severity, TextSegment, ValidationFinding

RISK_PATTERN_SOURCE = "risk_patterns"


@dataclass(frozen=True)
class RiskPattern:
    pattern_id: str
    clause_type: str
    severity: Severity
    example: str
    explanation: str
    reference: str | None = None


RISK_PATTERNS: tuple[RiskPattern, ...] = (
    RiskPattern(
        pattern_id="risk_pattern::non_compete_section27",
        clause_type="non_compete_section27",
        severity=Severity.CRITICAL,
        example="The Contractor agrees not to engage in any competing business for 2 years.",
        explanation="Non-compete restriction; restraints of trade are void in India.",
        reference="Section 27",
    ),
    RiskPattern(
        pattern_id="risk_pattern::unlawful_object_section23",
        clause_type="unlawful_object_section23",
        severity=Severity.CRITICAL,
        example="Services include structuring transactions to avoid tax compliance.",
        explanation="Object of the agreement may be unlawful or opposed to public policy.",
        reference="Section 23",
    ),
    RiskPattern(
        pattern_id="risk_pattern::unlimited_liability_section73",
        clause_type="unlimited_liability_section73",
        severity=Severity.WARNING,
        example=(
            "Contractor shall be liable for all direct, indirect, and consequential "
            "damages without limit."
        ),
        explanation="Liability beyond losses arising naturally from the breach.",
        reference="Section 73",
    ),
    RiskPattern(
        pattern_id="risk_pattern::blanket_ip_transfer",
        clause_type="blanket_ip_transfer",
        severity=Severity.WARNING,
        example=(
            "All intellectual property created during the term, whether related to the "
            "project or not, belongs to Client."
        ),
        explanation="IP assignment reaches work unrelated to the engagement.",
        reference="Section 27",
    ),
    RiskPattern(
        pattern_id="risk_pattern::indirect_non_compete_portfolio",
        clause_type="indirect_non_compete_portfolio",
        severity=Severity.CRITICAL,
        example=(
            "Developer may not showcase work in portfolio without prior written consent, "
            "confidentiality extends for 5 years."
        ),
        explanation="Portfolio ban acts as an indirect restraint on future work.",
        reference="Section 27",
    ),
    RiskPattern(
        pattern_id="risk_pattern::excessive_penalty_section74",
        clause_type="excessive_penalty_section74",
        severity=Severity.WARNING,
        example="Contractor shall pay penalty of 10x project value for any breach.",
        explanation="Penalty far above reasonable compensation.",
        reference="Section 74",
    ),
    RiskPattern(
        pattern_id="risk_pattern::unilateral_termination",
        clause_type="unilateral_termination",
        severity=Severity.WARNING,
        example="Client may terminate this agreement at any time without cause or notice.",
        explanation="One-sided termination without cause or notice.",
        reference="Section 73",
    ),
    RiskPattern(
        pattern_id="risk_pattern::unfair_payment_terms",
        clause_type="unfair_payment_terms",
        severity=Severity.WARNING,
        example=(
            "Payment shall be made within 120 days of invoice, subject to client "
            "receiving payment from end customer."
        ),
        explanation="Pay-when-paid terms with a long payment window.",
        reference="Section 73",
    ),
    RiskPattern(
        pattern_id="risk_pattern::foreign_jurisdiction",
        clause_type="foreign_jurisdiction",
        severity=Severity.WARNING,
        example="This agreement shall be governed by the laws of Delaware, USA.",
        explanation="Foreign governing law makes enforcement costly.",
        reference="Section 23",
    ),
    RiskPattern(
        pattern_id="risk_pattern::undue_influence_section16",
        clause_type="undue_influence_section16",
        severity=Severity.WARNING,
        example="This offer expires in 24 hours and terms are non-negotiable.",
        explanation="Pressure to sign without review may vitiate free consent.",
        reference="Section 16",
    ),
    RiskPattern(
        pattern_id="risk_pattern::vague_scope",
        clause_type="vague_scope",
        severity=Severity.INFO,
        example=(
            "Contractor shall perform services as required by Client from time to time "
            "without additional compensation."
        ),
        explanation="Open-ended scope with no change-request compensation.",
        reference="Section 73",
    ),
)


# Standard wording that resembles a risky pattern but is benign.
SAFE_CLAUSE_PATTERNS: dict[str, tuple[str, ...]] = {
    "deliverables": (
        r"shall deliver|will deliver|agrees to deliver",
        r"deliverables include|deliverables shall",
        r"complete.*source code.*documentation",
        r"provide.*documentation.*manual",
    ),
    "fee_statements": (
        r"total fee.*inr|fee of.*rupees",
        r"compensation.*shall be",
        r"milestone.*payment",
    ),
    "fair_ip": (
        r"upon (?:full )?payment.*transfer|transfer.*upon.*payment",
        r"ip.*in the (?:application|deliverable|work product)",
        r"contractor retains|developer retains",
        r"pre-existing.*materials",
    ),
    "standard_terms": (
        r"completion within.*days",
        r"project timeline",
        r"milestones? (?:are|shall)",
    ),
}

_SAFE_FAMILIES: tuple[tuple[tuple[str, ...], tuple[str, ...]], ...] = (
    (("ip_transfer", "blanket_ip"), ("deliverables", "fair_ip")),
    (("payment", "unfair"), ("fee_statements",)),
    (("vague_scope",), ("standard_terms",)),
)


def is_standard_safe_clause(text: str, clause_type: str) -> bool:
    """True when text is ordinary wording for the kind of risk it resembles."""
    lowered = text.lower()
    for markers, families in _SAFE_FAMILIES:
        if not any(m in clause_type for m in markers):
            continue
        for family in families:
            if any(re.search(p, lowered) for p in SAFE_CLAUSE_PATTERNS[family]):
                return True
    return False


def semantic_finding(pattern: RiskPattern, segment: TextSegment, similarity: float) -> ValidationFinding:
    # similarity alone never proves a void clause
    severity = Severity.WARNING if pattern.severity is Severity.CRITICAL else pattern.severity
    return ValidationFinding(
        rule_id=f"semantic_{pattern.clause_type}",
        severity=severity,
        matched_text=segment.text,
        start=segment.start,
        end=segment.end,
        explanation=f"{pattern.explanation} (similarity {similarity:.2f})",
        page=segment.page,
        reference=pattern.reference,
        source="semantic",
        similarity=round(similarity, 4),
    )


def _overlaps(a: ValidationFinding, b: ValidationFinding) -> bool:
    return a.end > a.start and a.start < b.end and b.start < a.end


def merge_semantic_findings(
    keyword: Sequence[ValidationFinding], semantic: Iterable[ValidationFinding]
) -> list[ValidationFinding]:
    """
    Keyword findings win. A keyword finding inside a semantically matched
    paragraph is tagged "both" and keeps its own severity; semantic matches on
    paragraphs no keyword rule touched are appended.
    """
    merged = list(keyword)
    for sem in semantic:
        hits = [i for i, f in enumerate(merged) if f.source in ("validator", "both") and _overlaps(f, sem)]
        if not hits:
            merged.append(sem)
            continue
        for i in hits:
            merged[i] = replace(merged[i], source="both", similarity=sem.similarity)
    return merged
