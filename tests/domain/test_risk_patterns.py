import pytest

from contract_lens.domain.models import Severity, TextSegment, ValidationFinding
from contract_lens.domain.services.risk_patterns import (
    RISK_PATTERNS,
    RiskPattern,
    is_standard_safe_clause,
    merge_semantic_findings,
    semantic_finding,
)

NON_COMPETE = RiskPattern(
    pattern_id="risk_pattern::nc",
    clause_type="non_compete_section27",
    severity=Severity.CRITICAL,
    example="The Contractor agrees not to engage in any competing business for 2 years.",
    explanation="Restraint of trade.",
    reference="Section 27",
)


def _segment(text, start=100):
    return TextSegment(text=text, page=1, paragraph=2, start=start, end=start + len(text))


def _keyword(start, end, rule_id="ica_s27_non_compete", severity=Severity.CRITICAL):
    return ValidationFinding(
        rule_id=rule_id,
        severity=severity,
        matched_text="x",
        start=start,
        end=end,
        explanation=rule_id,
    )


def test_catalog_ids_are_unique_and_examples_long_enough_to_match():
    ids = [p.pattern_id for p in RISK_PATTERNS]
    assert len(ids) == len(set(ids))
    assert all(len(p.example) >= 50 for p in RISK_PATTERNS)


def test_semantic_finding_is_capped_at_warning_and_spans_the_paragraph():
    seg = _segment("The Consultant will refrain from offering competing services for two years.")
    finding = semantic_finding(NON_COMPETE, seg, 0.8123456)
    assert finding.severity is Severity.WARNING
    assert finding.source == "semantic"
    assert finding.rule_id == "semantic_non_compete_section27"
    assert (finding.start, finding.end, finding.page) == (seg.start, seg.end, 1)
    assert finding.similarity == 0.8123
    assert finding.reference == "Section 27"


@pytest.mark.parametrize(
    "text, clause_type",
    [
        ("The Developer shall deliver the source code and documentation.", "blanket_ip_transfer"),
        ("Upon full payment the Developer will transfer ownership.", "blanket_ip_transfer"),
        ("Milestone payments are released within 15 days of acceptance.", "unfair_payment_terms"),
        ("The project timeline is attached as Schedule B.", "vague_scope"),
    ],
)
def test_standard_wording_is_safe_for_its_risk_family(text, clause_type):
    assert is_standard_safe_clause(text, clause_type)


def test_safe_wording_only_applies_to_related_risks():
    text = "The Developer shall deliver the complete source code and documentation."
    assert not is_standard_safe_clause(text, "non_compete_section27")
    assert not is_standard_safe_clause("All IP belongs to Client forever.", "blanket_ip_transfer")


class TestMergeSemanticFindings:
    def test_keyword_inside_matched_paragraph_becomes_both(self):
        seg = _segment("The Employee shall not compete with the Company for two years after exit.")
        keyword = _keyword(seg.start + 13, seg.start + 30)
        merged = merge_semantic_findings([keyword], [semantic_finding(NON_COMPETE, seg, 0.9)])
        assert len(merged) == 1
        assert merged[0].source == "both"
        assert merged[0].severity is Severity.CRITICAL
        assert merged[0].similarity == 0.9

    def test_semantic_only_match_is_appended(self):
        seg = _segment("The Consultant will refrain from offering competing services for two years.")
        keyword = _keyword(0, 20, rule_id="no_severance")
        sem = semantic_finding(NON_COMPETE, seg, 0.8)
        merged = merge_semantic_findings([keyword], [sem])
        assert merged == [keyword, sem]

    def test_missing_clause_findings_are_never_merged(self):
        text = "The Consultant will refrain from offering competing services for two years."
        seg = _segment(text, start=0)
        missing = _keyword(0, 0, rule_id="missing_governing_law", severity=Severity.INFO)
        merged = merge_semantic_findings([missing], [semantic_finding(NON_COMPETE, seg, 0.8)])
        assert [f.source for f in merged] == ["validator", "semantic"]
