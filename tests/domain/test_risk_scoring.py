import math

import pytest

from contract_lens.domain.errors import ValidationError
from contract_lens.domain.models import ModelAssessment, RiskLevel, Severity, ValidationFinding
from contract_lens.domain.services.risk_scoring import (
    ScoringWeights,
    risk_level,
    score_findings,
)


def make_finding(rule_id: str, severity: Severity, source: str = "validator") -> ValidationFinding:
    return ValidationFinding(
        rule_id=rule_id,
        severity=severity,
        matched_text="x",
        start=0,
        end=1,
        explanation=rule_id,
        source=source,
    )


class TestScoreFindings:
    def test_no_findings_no_model_is_safe(self):
        result = score_findings([])
        assert result.score == 0
        assert result.level is RiskLevel.SAFE
        assert result.mode == "validator_only"

    def test_rule_score_sums_weights(self):
        findings = [make_finding("w", Severity.WARNING), make_finding("i", Severity.INFO)]
        result = score_findings(findings, weights=ScoringWeights(warning=15, info=3))
        assert result.score == 18
        assert result.breakdown.by_severity == {"info": 3.0, "warning": 15.0, "critical": 0.0}

    def test_rule_score_capped_at_100(self):
        findings = [make_finding(f"c{i}", Severity.CRITICAL) for i in range(5)]
        assert score_findings(findings).score == 100

    @pytest.mark.parametrize("adjustment", [1e9, -1e9, math.inf, -math.inf])
    def test_extreme_model_adjustment_stays_in_bounds(self, adjustment):
        findings = [make_finding("w", Severity.WARNING)]
        result = score_findings(findings, ModelAssessment(risk_adjustment=adjustment))
        assert 0 <= result.score <= 100
        assert abs(result.breakdown.model_delta) <= ScoringWeights().max_model_delta

    def test_model_delta_clamped(self):
        findings = [make_finding("w", Severity.WARNING)]
        up = score_findings(findings, ModelAssessment(risk_adjustment=500))
        down = score_findings(findings, ModelAssessment(risk_adjustment=-500))
        assert up.score == 15 + 15
        assert down.score == 0
        assert up.mode == "combined"

    def test_nan_adjustment_is_ignored(self):
        result = score_findings([], ModelAssessment(risk_adjustment=math.nan))
        assert result.score == 0
        assert result.breakdown.model_delta == 0

    def test_critical_floor_survives_negative_model(self):
        findings = [make_finding("c", Severity.CRITICAL)]
        result = score_findings(findings, ModelAssessment(risk_adjustment=-1000))
        assert result.score == 70
        assert result.breakdown.floor_applied
        assert result.level is RiskLevel.HIGH

    def test_model_concerns_capped_at_warning(self):
        concern = make_finding("model_concern_1", Severity.CRITICAL)
        result = score_findings([], ModelAssessment(risk_adjustment=0, concerns=(concern,)))
        assert [f.severity for f in result.findings] == [Severity.WARNING]
        assert result.findings[0].source == "model"
        assert result.critical_findings == ()
        # concerns do not feed the rule score
        assert result.breakdown.rule_score == 0

    def test_summary_mentions_missing_model(self):
        result = score_findings([make_finding("w", Severity.WARNING)])
        assert "rule checks only" in result.summary


@pytest.mark.parametrize(
    "score, level",
    [
        (0, RiskLevel.SAFE),
        (1, RiskLevel.LOW),
        (25, RiskLevel.MEDIUM),
        (50, RiskLevel.HIGH),
        (75, RiskLevel.CRITICAL),
    ],
)
def test_risk_levels(score, level):
    assert risk_level(score) is level


def test_invalid_weights_rejected():
    with pytest.raises(ValidationError):
        ScoringWeights(critical_floor=120).validate()
    with pytest.raises(ValidationError):
        ScoringWeights(warning=-1).validate()
