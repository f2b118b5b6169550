import pytest

from contract_lens.domain.models import Severity
from contract_lens.domain.services.legal_rules import (
    KeywordRule,
    MissingClauseRule,
    PatternRule,
    RuleRegistry,
    ThresholdRule,
)
from contract_lens.domain.services.legal_validator import LegalValidator
from contract_lens.domain.services.rule_catalog import NO_SEVERANCE_PATTERN, default_registry
from contract_lens.domain.services.text_normalization import build_extracted_text


def _text(*pages: str):
    return build_extracted_text("c-1", "c-1", list(pages))


def _no_severance_rule() -> PatternRule:
    return PatternRule("no_severance", Severity.CRITICAL, NO_SEVERANCE_PATTERN, "No severance.")


class TestRules:
    @pytest.mark.parametrize(
        "sentence",
        [
            "The Employee shall receive no severance pay.",
            "Termination is without any severance.",
            "The Employee forfeits any severance benefits.",
            "The Employee shall not be entitled to any severance.",
        ],
    )
    def test_no_severance_variants(self, sentence):
        findings = list(_no_severance_rule().evaluate(_text(sentence)))
        assert len(findings) == 1
        assert findings[0].severity is Severity.CRITICAL

    def test_pattern_finding_offsets_point_into_text(self):
        extracted = _text("Intro paragraph.", "Upon exit there is no severance pay.")
        (finding,) = _no_severance_rule().evaluate(extracted)
        assert finding.start == extracted.text.index("no severance")
        assert extracted.text[finding.start : finding.end] == finding.matched_text
        assert finding.page == 1

    def test_keyword_rule_needs_two_hits_unless_critical(self):
        rule = KeywordRule(
            "liability", Severity.WARNING, ("unlimited liability", "consequential damages"), "x"
        )
        assert list(rule.evaluate(_text("The Contractor bears unlimited liability."))) == []
        both = _text("Unlimited liability applies, including consequential damages.")
        (finding,) = rule.evaluate(both)
        assert finding.matched_text.lower() == "unlimited liability"

        critical = KeywordRule("waiver", Severity.CRITICAL, ("waive right to sue",), "x")
        assert len(list(critical.evaluate(_text("You waive right to sue.")))) == 1

    def test_keyword_rule_tries_regex_first(self):
        rule = KeywordRule(
            "nc", Severity.CRITICAL, ("non-compete",), "x", pattern=r"shall\s+not\s+compete"
        )
        (finding,) = rule.evaluate(_text("The Employee shall not compete with the Company."))
        assert finding.matched_text == "shall not compete"

    def test_threshold_rule_tiers_do_not_stack(self):
        extracted = _text("Payment shall be made within 90 days of invoice.")
        ids = [f.rule_id for f in LegalValidator().validate(extracted, "*")]
        assert "payment_terms_excessive" in ids
        assert "payment_terms_long" not in ids

    def test_threshold_rule_below_direction(self):
        rule = ThresholdRule(
            "notice",
            Severity.WARNING,
            r"(?P<value>\d+)\s*days\s+notice",
            limit=15,
            direction="below",
            explanation="Short notice",
        )
        assert len(list(rule.evaluate(_text("Terminate with 7 days notice.")))) == 1
        assert list(rule.evaluate(_text("Terminate with 30 days notice."))) == []

    def test_missing_clause_rule(self):
        rule = MissingClauseRule("law", Severity.INFO, (r"governed\s+by",), "No governing law")
        assert len(list(rule.evaluate(_text("Just payment terms.")))) == 1
        assert list(rule.evaluate(_text("This is governed by Indian law."))) == []


class TestLegalValidator:
    def test_findings_sorted_critical_first_stable(self):
        registry = RuleRegistry()
        registry.register(PatternRule("w1", Severity.WARNING, r"alpha", "w1"))
        registry.register(PatternRule("c1", Severity.CRITICAL, r"beta", "c1"))
        registry.register(PatternRule("w2", Severity.WARNING, r"gamma", "w2"))
        registry.register(PatternRule("c2", Severity.CRITICAL, r"delta", "c2"))
        findings = LegalValidator(registry).validate(_text("alpha beta gamma delta"))
        assert [f.rule_id for f in findings] == ["c1", "c2", "w1", "w2"]

    def test_malformed_rule_is_skipped_and_reported(self, caplog):
        registry = RuleRegistry()
        registry.register(PatternRule("broken", Severity.CRITICAL, r"(unclosed", "never"))
        registry.register(_no_severance_rule())
        validator = LegalValidator(registry)

        with caplog.at_level("WARNING"):
            report = validator.run(_text("There is no severance pay."))

        assert [f.rule_id for f in report.findings] == ["no_severance"]
        assert [e.rule_id for e in report.rule_errors] == ["broken"]
        assert report.rule_errors[0].kind == "ValidationRuleError"
        assert "broken" in caplog.text

    def test_jurisdiction_selects_rule_sets(self):
        extracted = _text("The Employee shall not compete with the Company for two years.")
        india = LegalValidator(default_registry()).validate(extracted, "IN")
        elsewhere = LegalValidator(default_registry()).validate(extracted, "US")
        assert "ica_s27_non_compete" in {f.rule_id for f in india}
        assert "ica_s27_non_compete" not in {f.rule_id for f in elsewhere}

    def test_duplicate_rule_ids_rejected(self):
        registry = RuleRegistry()
        registry.register(_no_severance_rule())
        with pytest.raises(ValueError):
            registry.register(_no_severance_rule())
