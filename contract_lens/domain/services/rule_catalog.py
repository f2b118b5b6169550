"""Default rule sets: universal fair-contract checks and Indian Contract Act, 1872.

Keyword lists and thresholds follow common Indian freelance and employment
practice. Findings are advisory signals, not legal conclusions.
"""

from __future__ import annotations

from contract_lens.domain.models import Severity
from contract_lens.domain.services.legal_rules import (
    ANY_JURISDICTION,
    KeywordRule,
    LegalRule,
    MissingClauseRule,
    PatternRule,
    RuleRegistry,
    ThresholdRule,
)

INDIA = "IN"

NO_SEVERANCE_PATTERN = (
    r"\b(?:no|without(?:\s+any)?|forfeits?(?:\s+any)?|not\s+(?:be\s+)?entitled\s+to(?:\s+any)?)"
    r"\s+severance\b"
)


UNIVERSAL_RULES: tuple[LegalRule, ...] = (
    PatternRule(
        rule_id="no_severance",
        severity=Severity.CRITICAL,
        pattern=NO_SEVERANCE_PATTERN,
        explanation="Contract denies severance on termination.",
    ),
    PatternRule(
        rule_id="immediate_termination",
        severity=Severity.WARNING,
        pattern=(
            r"terminat\w*\s+(?:this\s+\w+\s+)?(?:immediately|with\s+immediate\s+effect)"
            r"(?:\s+without\s+(?:any\s+)?(?:prior\s+)?notice)?|terminat\w*\s+without\s+(?:any\s+)?notice"
        ),
        explanation="Termination without a notice period leaves no time to wind down work.",
    ),
    ThresholdRule(
        rule_id="payment_terms_long",
        severity=Severity.INFO,
        pattern=(
            r"(?:pay(?:ment|able)?\s+(?:\w+\s+){0,3}?(?:within|in)\s+|net\s+)(?P<value>\d{1,3})\b"
        ),
        limit=45,
        ceiling=60,
        explanation="Payment term longer than the usual 30 to 45 days.",
    ),
    ThresholdRule(
        rule_id="payment_terms_excessive",
        severity=Severity.WARNING,
        pattern=(
            r"(?:pay(?:ment|able)?\s+(?:\w+\s+){0,3}?(?:within|in)\s+|net\s+)(?P<value>\d{1,3})\b"
        ),
        limit=60,
        explanation="Payment term far beyond industry standard; cash-flow risk.",
    ),
    ThresholdRule(
        rule_id="short_notice_period",
        severity=Severity.WARNING,
        pattern=r"(?P<value>\d{1,3})\s*days?'?\s+(?:prior\s+)?(?:written\s+)?notice",
        limit=15,
        direction="below",
        explanation="Notice period shorter than 15 days.",
    ),
    PatternRule(
        rule_id="always_available",
        severity=Severity.WARNING,
        pattern=r"\b24\s*[x/]\s*7\b|round[\s-]the[\s-]clock|available\s+at\s+all\s+times",
        explanation="Open-ended availability requirement without working-hour limits.",
    ),
    ThresholdRule(
        rule_id="long_confidentiality",
        severity=Severity.INFO,
        pattern=(
            r"confidential(?:ity)?\s+(?:obligations?\s+)?(?:for|period\s+of)\s+"
            r"(?P<value>\d{1,2})\s*years?"
        ),
        limit=5,
        unit="years",
        explanation="Confidentiality obligation longer than five years.",
    ),
    MissingClauseRule(
        rule_id="missing_termination_clause",
        severity=Severity.WARNING,
        markers=(r"\bterminat",),
        explanation="No termination clause found; exit terms are undefined.",
    ),
    MissingClauseRule(
        rule_id="missing_payment_clause",
        severity=Severity.WARNING,
        markers=(r"\bpay(?:ment|able)?\b", r"\bfees?\b", r"\bsalary\b", r"\bcompensation\b"),
        explanation="No payment terms found.",
    ),
    MissingClauseRule(
        rule_id="missing_governing_law",
        severity=Severity.INFO,
        markers=(r"governed\s+by", r"governing\s+law", r"jurisdiction"),
        explanation="No governing-law or jurisdiction clause found.",
    ),
)


INDIAN_CONTRACT_ACT_RULES: tuple[LegalRule, ...] = (
    KeywordRule(
        rule_id="ica_s27_non_compete",
        severity=Severity.CRITICAL,
        keywords=(
            "non-compete",
            "non compete",
            "restraint of trade",
            "not engage in similar",
            "cannot work for competitor",
            "not work for any competitor",
        ),
        pattern=r"\b(?:shall|will|agrees?)\s+(?:not|to\s+not|not\s+to)\s+compete\b",
        reference="Section 27",
        explanation="Agreements in restraint of trade are void in India.",
    ),
    KeywordRule(
        rule_id="ica_s28_legal_waiver",
        severity=Severity.CRITICAL,
        keywords=(
            "waive right to sue",
            "waive all rights",
            "no legal action",
            "forfeit legal rights",
            "barred from litigation",
            "prohibited from suing",
        ),
        reference="Section 28",
        explanation="Agreements restraining legal proceedings are void.",
    ),
    KeywordRule(
        rule_id="ica_s23_unlawful_object",
        severity=Severity.CRITICAL,
        keywords=(
            "illegal purpose",
            "unlawful activity",
            "evade tax",
            "circumvent regulations",
            "against public policy",
            "immoral purpose",
        ),
        reference="Section 23",
        explanation="Consideration or object that is unlawful or opposed to public policy.",
    ),
    KeywordRule(
        rule_id="ica_s15_s16_s17_free_consent",
        severity=Severity.CRITICAL,
        keywords=(
            "sign or lose",
            "no time to review",
            "cannot consult lawyer",
            "concealed material fact",
            "undisclosed conditions",
        ),
        reference="Sections 15-17",
        explanation="Signals of coercion, undue influence or fraud undermine free consent.",
    ),
    KeywordRule(
        rule_id="ica_s73_unlimited_liability",
        severity=Severity.WARNING,
        keywords=(
            "unlimited liability",
            "no limit on liability",
            "consequential damages",
            "indirect damages",
            "liable for all losses",
            "without limitation",
        ),
        reference="Section 73",
        explanation="Compensation is limited to losses arising naturally from the breach.",
    ),
    KeywordRule(
        rule_id="ica_s74_penalty",
        severity=Severity.WARNING,
        keywords=(
            "penalty of",
            "liquidated damages of",
            "penalty equal to",
            "forfeit entire",
            "daily penalty",
        ),
        pattern=r"penalty\s+(?:of|equal\s+to)\s+(?:rs\.?|inr|₹|\$)?\s*\d+",
        reference="Section 74",
        explanation="Stipulated penalties are capped at reasonable compensation.",
    ),
    KeywordRule(
        rule_id="ica_unilateral_termination",
        severity=Severity.WARNING,
        keywords=("terminate at will", "without cause", "at sole discretion", "cancel anytime"),
        reference="Section 10",
        explanation="One-sided termination rights favour the drafting party.",
    ),
    PatternRule(
        rule_id="ica_foreign_jurisdiction",
        severity=Severity.WARNING,
        pattern=(
            r"(?:governed\s+by|laws\s+of|jurisdiction\s+of)\s+(?:the\s+)?(?:state\s+of\s+)?"
            r"(?:usa|united\s+states|america|delaware|california|new\s+york|uk|united\s+kingdom|"
            r"england|singapore)\b|arbitration\s+in\s+(?:singapore|london|new\s+york)\b"
        ),
        reference="Section 10",
        explanation="Foreign governing law makes enforcement costly for an Indian party.",
    ),
)


def default_registry() -> RuleRegistry:
    registry = RuleRegistry()
    registry.register_all(UNIVERSAL_RULES, ANY_JURISDICTION)
    registry.register_all(INDIAN_CONTRACT_ACT_RULES, INDIA)
    return registry
