"""Prompt text for drafting, clause insertion and risk assessment.

Pure string building; the use cases wrap these into chat messages.
"""

from __future__ import annotations

from collections.abc import Sequence

from contract_lens.domain.models import RetrievedChunk, ValidationFinding

DRAFTING_SYSTEM_PROMPT = (
    "You are an expert legal contract drafter specialising in Indian contract law. "
    "Draft clear, balanced agreements that comply with the Indian Contract Act, 1872. "
    "Use {{PLACEHOLDER}} markers for party names, dates, amounts and other unknown details. "
    "Structure the contract with numbered sections and a governing-law clause. "
    "Return only the contract text."
)

ENHANCE_SYSTEM_PROMPT = (
    "You are an expert legal editor. Insert the requested clause into the existing "
    "contract at the most appropriate section, renumber sections if needed, keep all "
    "other wording unchanged and return the full updated contract text only."
)

ASSESSMENT_SYSTEM_PROMPT = (
    "You review contracts for the weaker party (freelancer or employee) under Indian law. "
    "Respond with JSON only, matching: "
    '{"risk_adjustment": <number between -20 and 20>, "summary": "<two sentences>", '
    '"concerns": [{"quote": "<exact text from the contract>", "explanation": "<why>", '
    '"severity": "info|warning|critical"}]}. '
    "A positive risk_adjustment means the contract is riskier than the listed rule findings suggest."
)

_MAX_REFERENCE_CHARS = 1200
_MAX_CONTRACT_CHARS = 12000


def format_references(chunks: Sequence[RetrievedChunk]) -> str:
    parts = []
    for i, c in enumerate(chunks, start=1):
        snippet = c.text.strip()[:_MAX_REFERENCE_CHARS]
        parts.append(f"[{i}] (source: {c.source_id or 'unknown'}, similarity {c.score:.2f})\n{snippet}")
    return "\n\n".join(parts)


def build_draft_prompt(
    prompt: str, references: Sequence[RetrievedChunk], template: str | None = None
) -> str:
    sections = [f"Request:\n{prompt.strip()}"]
    if template:
        sections.append(f"Start from this template and adapt it:\n{template.strip()}")
    if references:
        sections.append(
            "Reference clauses from vetted contracts (reuse their wording where it fits):\n"
            + format_references(references)
        )
    else:
        sections.append("No reference clauses are available; rely on standard Indian practice.")
    sections.append("Contract:")
    return "\n\n".join(sections)


def build_enhance_prompt(
    existing_content: str, clause_text: str, references: Sequence[RetrievedChunk]
) -> str:
    sections = [
        f"Existing contract:\n{existing_content.strip()}",
        f"Clause to add:\n{clause_text.strip()}",
    ]
    if references:
        sections.append("Reference clauses:\n" + format_references(references))
    sections.append("Updated contract:")
    return "\n\n".join(sections)


def build_assessment_prompt(contract_text: str, findings: Sequence[ValidationFinding]) -> str:
    listed = "\n".join(
        f"- [{f.severity.value}] {f.rule_id}: {f.explanation}" for f in findings
    ) or "- none"
    text = contract_text[:_MAX_CONTRACT_CHARS]
    return f"Rule findings already detected:\n{listed}\n\nContract:\n{text}\n\nJSON:"
