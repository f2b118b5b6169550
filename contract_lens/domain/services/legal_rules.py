"""Legal validation rules as independent, registrable objects.

A rule looks at the normalized contract text and yields findings with exact
character offsets. Rules never see each other; ordering and error isolation
are the validator's job.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass, field
from typing import Literal, Protocol, runtime_checkable

from contract_lens.domain.models import ExtractedText, Severity, ValidationFinding

ANY_JURISDICTION = "*"


@runtime_checkable
class LegalRule(Protocol):
    rule_id: str
    severity: Severity

    def evaluate(self, extracted: ExtractedText) -> Iterable[ValidationFinding]: ...


def _finding(
    rule_id: str,
    severity: Severity,
    extracted: ExtractedText,
    start: int,
    end: int,
    explanation: str,
    reference: str | None,
) -> ValidationFinding:
    return ValidationFinding(
        rule_id=rule_id,
        severity=severity,
        matched_text=extracted.text[start:end],
        start=start,
        end=end,
        explanation=explanation,
        page=extracted.page_at(start),
        reference=reference,
    )


@dataclass(frozen=True)
class PatternRule:
    """Flags every regex match. The pattern compiles on first use, so a
    malformed pattern surfaces as an evaluation error, not at registration."""

    rule_id: str
    severity: Severity
    pattern: str
    explanation: str
    reference: str | None = None
    flags: int = re.IGNORECASE

    def evaluate(self, extracted: ExtractedText) -> Iterator[ValidationFinding]:
        regex = re.compile(self.pattern, self.flags)
        for m in regex.finditer(extracted.text):
            if m.end() > m.start():
                yield _finding(
                    self.rule_id,
                    self.severity,
                    extracted,
                    m.start(),
                    m.end(),
                    self.explanation,
                    self.reference,
                )


@dataclass(frozen=True)
class KeywordRule:
    """Keyword evidence with an optional precise regex tried first.

    Without a regex hit, the rule fires once when enough distinct keywords
    occur: one for critical rules, two otherwise, unless min_hits is set.
    """

    rule_id: str
    severity: Severity
    keywords: Sequence[str]
    explanation: str
    reference: str | None = None
    pattern: str | None = None
    min_hits: int | None = None

    @property
    def required_hits(self) -> int:
        if self.min_hits is not None:
            return self.min_hits
        return 1 if self.severity is Severity.CRITICAL else 2

    def evaluate(self, extracted: ExtractedText) -> Iterator[ValidationFinding]:
        text = extracted.text
        if self.pattern:
            m = re.search(self.pattern, text, re.IGNORECASE)
            if m and m.end() > m.start():
                yield _finding(
                    self.rule_id,
                    self.severity,
                    extracted,
                    m.start(),
                    m.end(),
                    self.explanation,
                    self.reference,
                )
                return

        lowered = text.lower()
        hits: list[tuple[int, str]] = []
        for kw in self.keywords:
            pos = lowered.find(kw.lower())
            if pos >= 0:
                hits.append((pos, kw))
        if len(hits) < self.required_hits:
            return
        pos, kw = min(hits)
        matched = ", ".join(k for _, k in sorted(hits))
        yield _finding(
            self.rule_id,
            self.severity,
            extracted,
            pos,
            pos + len(kw),
            f"{self.explanation} (matched: {matched})",
            self.reference,
        )


@dataclass(frozen=True)
class MissingClauseRule:
    """Structural check: fires when none of the expected clause markers occur."""

    rule_id: str
    severity: Severity
    markers: Sequence[str]  # regexes
    explanation: str
    reference: str | None = None

    def evaluate(self, extracted: ExtractedText) -> Iterator[ValidationFinding]:
        for marker in self.markers:
            if re.search(marker, extracted.text, re.IGNORECASE):
                return
        yield ValidationFinding(
            rule_id=self.rule_id,
            severity=self.severity,
            matched_text="",
            start=0,
            end=0,
            explanation=self.explanation,
            page=0,
            reference=self.reference,
        )


@dataclass(frozen=True)
class ThresholdRule:
    """Numeric contract terms compared against a limit.

    `pattern` must define a named group `value`; the finding spans the whole
    match so the reader sees the surrounding wording.
    """

    rule_id: str
    severity: Severity
    pattern: str
    limit: float
    explanation: str
    direction: Literal["above", "below"] = "above"
    unit: str = "days"
    reference: str | None = None
    ceiling: float | None = None  # tiered rules stop firing above this

    def _violates(self, value: float) -> bool:
        if self.ceiling is not None and value > self.ceiling:
            return False
        if self.direction == "above":
            return value > self.limit
        return value < self.limit

    def evaluate(self, extracted: ExtractedText) -> Iterator[ValidationFinding]:
        regex = re.compile(self.pattern, re.IGNORECASE)
        for m in regex.finditer(extracted.text):
            value = float(m.group("value"))
            if not self._violates(value):
                continue
            yield _finding(
                self.rule_id,
                self.severity,
                extracted,
                m.start(),
                m.end(),
                f"{self.explanation} ({value:g} {self.unit}, limit {self.limit:g})",
                self.reference,
            )


@dataclass
class RuleRegistry:
    """Rules by jurisdiction code; `*` rules apply everywhere.

    Registration order is evaluation order.
    """

    _rules: list[tuple[str, LegalRule]] = field(default_factory=list)

    def register(self, rule: LegalRule, jurisdiction: str = ANY_JURISDICTION) -> None:
        if any(r.rule_id == rule.rule_id for _, r in self._rules):
            raise ValueError(f"duplicate rule id '{rule.rule_id}'")
        self._rules.append((jurisdiction.upper(), rule))

    def register_all(self, rules: Iterable[LegalRule], jurisdiction: str = ANY_JURISDICTION) -> None:
        for rule in rules:
            self.register(rule, jurisdiction)

    def rules_for(self, jurisdiction: str) -> list[LegalRule]:
        code = jurisdiction.upper()
        return [r for j, r in self._rules if j in (ANY_JURISDICTION, code)]

    def jurisdictions(self) -> set[str]:
        return {j for j, _ in self._rules if j != ANY_JURISDICTION}

    def __len__(self) -> int:
        return len(self._rules)
