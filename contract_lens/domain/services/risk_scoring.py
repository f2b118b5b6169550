"""Combine validator findings and an optional model opinion into one score.

score = clamp(rule_score + model_delta, 0, 100)
  rule_score  = min(100, sum of severity weights)
  model_delta = clamp(risk_adjustment * model_weight, -max_model_delta, +max_model_delta)
Any critical validator finding keeps the final score at or above critical_floor,
whatever the model says.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass, replace

from contract_lens.domain.errors import ValidationError
from contract_lens.domain.models import (
    ModelAssessment,
    RiskAssessment,
    RiskLevel,
    ScoreBreakdown,
    Severity,
    ValidationFinding,
)
from contract_lens.domain.services.legal_validator import order_by_severity

MIN_SCORE = 0.0
MAX_SCORE = 100.0


@dataclass(frozen=True)
class ScoringWeights:
    critical: float = 45.0
    warning: float = 15.0
    info: float = 3.0
    critical_floor: float = 70.0
    model_weight: float = 1.0
    max_model_delta: float = 15.0

    def weight_for(self, severity: Severity) -> float:
        return {
            Severity.CRITICAL: self.critical,
            Severity.WARNING: self.warning,
            Severity.INFO: self.info,
        }[severity]

    def validate(self) -> None:
        if min(self.critical, self.warning, self.info) < 0:
            raise ValidationError("severity weights must be >= 0")
        if not MIN_SCORE <= self.critical_floor <= MAX_SCORE:
            raise ValidationError("critical_floor must be within [0, 100]")
        if self.max_model_delta < 0:
            raise ValidationError("max_model_delta must be >= 0")


def clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def risk_level(score: float) -> RiskLevel:
    if score >= 75:
        return RiskLevel.CRITICAL
    if score >= 50:
        return RiskLevel.HIGH
    if score >= 25:
        return RiskLevel.MEDIUM
    if score > 0:
        return RiskLevel.LOW
    return RiskLevel.SAFE


def model_delta(assessment: ModelAssessment | None, weights: ScoringWeights) -> float:
    if assessment is None or not math.isfinite(assessment.risk_adjustment):
        return 0.0
    raw = assessment.risk_adjustment * weights.model_weight
    return clamp(raw, -weights.max_model_delta, weights.max_model_delta)


def cap_model_finding(finding: ValidationFinding) -> ValidationFinding:
    """Model-derived findings never outrank warning and are tagged as such."""
    severity = Severity.WARNING if finding.severity is Severity.CRITICAL else finding.severity
    return replace(finding, severity=severity, source="model")


def _summarize(
    score: float, level: RiskLevel, findings: Sequence[ValidationFinding], model: ModelAssessment | None
) -> str:
    counts = {s: sum(1 for f in findings if f.severity is s) for s in Severity}
    lines = [
        f"Risk score {score:.0f}/100 ({level.value}).",
        f"{counts[Severity.CRITICAL]} critical, {counts[Severity.WARNING]} warning, "
        f"{counts[Severity.INFO]} informational finding(s).",
    ]
    refs = sorted({f.reference for f in findings if f.reference and f.severity is Severity.CRITICAL})
    if refs:
        lines.append("Potentially void under: " + ", ".join(refs) + ".")
    if model is None:
        lines.append("Model assessment unavailable; score is based on rule checks only.")
    elif model.summary:
        lines.append(model.summary.strip())
    return " ".join(lines)


def score_findings(
    findings: Sequence[ValidationFinding],
    assessment: ModelAssessment | None = None,
    weights: ScoringWeights | None = None,
) -> RiskAssessment:
    w = weights or ScoringWeights()
    by_severity = {s.value: 0.0 for s in Severity}
    for f in findings:
        by_severity[f.severity.value] += w.weight_for(f.severity)
    has_critical = any(f.severity is Severity.CRITICAL for f in findings)

    rule_score = min(MAX_SCORE, sum(by_severity.values()))
    if has_critical:
        rule_score = max(rule_score, w.critical_floor)

    delta = model_delta(assessment, w)
    final = clamp(rule_score + delta, MIN_SCORE, MAX_SCORE)
    floor_applied = has_critical and final < w.critical_floor
    if floor_applied:
        final = w.critical_floor

    merged = list(findings)
    if assessment is not None:
        merged.extend(cap_model_finding(c) for c in assessment.concerns)
    merged = order_by_severity(merged)

    level = risk_level(final)
    return RiskAssessment(
        score=final,
        level=level,
        findings=tuple(merged),
        summary=_summarize(final, level, merged, assessment),
        breakdown=ScoreBreakdown(
            by_severity=by_severity,
            rule_score=rule_score,
            model_delta=delta,
            floor_applied=floor_applied,
        ),
        mode="combined" if assessment is not None else "validator_only",
    )
