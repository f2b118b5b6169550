from __future__ import annotations

import logging
from dataclasses import dataclass, field

from contract_lens.domain.errors import ValidationRuleError
from contract_lens.domain.models import ExtractedText, ValidationFinding
from contract_lens.domain.services.legal_rules import RuleRegistry
from contract_lens.domain.services.rule_catalog import default_registry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ValidationReport:
    findings: tuple[ValidationFinding, ...]
    rule_errors: tuple[ValidationRuleError, ...] = ()
    rules_evaluated: int = 0


def order_by_severity(findings: list[ValidationFinding]) -> list[ValidationFinding]:
    """Critical first; ties keep their incoming order (sort is stable)."""
    return sorted(findings, key=lambda f: -f.severity.rank)


@dataclass
class LegalValidator:
    registry: RuleRegistry = field(default_factory=default_registry)
    default_jurisdiction: str = "IN"

    def run(self, extracted: ExtractedText, jurisdiction: str | None = None) -> ValidationReport:
        rules = self.registry.rules_for(jurisdiction or self.default_jurisdiction)
        collected: list[ValidationFinding] = []
        errors: list[ValidationRuleError] = []
        for rule in rules:
            try:
                # materialize so a generator failing midway contributes nothing
                collected.extend(list(rule.evaluate(extracted)))
            except Exception as ex:  # noqa: BLE001
                err = ValidationRuleError(f"rule '{rule.rule_id}' failed: {ex}", rule_id=rule.rule_id)
                errors.append(err)
                logger.warning(
                    "Skipping legal rule %s",
                    rule.rule_id,
                    extra={"rule_id": rule.rule_id, "error": str(ex), "error_type": type(ex).__name__},
                )
        return ValidationReport(
            findings=tuple(order_by_severity(collected)),
            rule_errors=tuple(errors),
            rules_evaluated=len(rules),
        )

    def validate(self, extracted: ExtractedText, jurisdiction: str | None = None) -> list[ValidationFinding]:
        return list(self.run(extracted, jurisdiction).findings)
