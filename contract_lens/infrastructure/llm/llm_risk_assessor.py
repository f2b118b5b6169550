"""Risk assessment by a language model, parsed with pydantic.

The model answers in JSON; anything unparseable is a GenerationFailed so the
analysis can fall back to rule-only scoring.
"""

from __future__ import annotations

import json
import re
from collections.abc import Sequence
from dataclasses import dataclass

from pydantic import BaseModel, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from contract_lens.application.ports.llm_port import ChatMessage, LLMPort
from contract_lens.application.ports.risk_assessor_port import RiskAssessorPort
from contract_lens.domain.errors import GenerationFailed
from contract_lens.domain.models import (
    ExtractedText,
    ModelAssessment,
    Severity,
    ValidationFinding,
)
from contract_lens.domain.services.prompting import ASSESSMENT_SYSTEM_PROMPT, build_assessment_prompt

_JSON_BLOCK = re.compile(r"\{.*\}", re.DOTALL)


class ConcernModel(BaseModel):
    quote: str = ""
    explanation: str = ""
    severity: Severity = Severity.WARNING

    @field_validator("severity", mode="before")
    @classmethod
    def coerce_severity(cls, v: object) -> object:
        if not isinstance(v, str):
            return v
        v = v.strip().lower()
        return v if v in {s.value for s in Severity} else Severity.WARNING.value


class AssessmentModel(BaseModel):
    risk_adjustment: float = 0.0
    summary: str = ""
    concerns: list[ConcernModel] = Field(default_factory=list)


def parse_assessment(raw: str) -> AssessmentModel:
    match = _JSON_BLOCK.search(raw or "")
    if match is None:
        raise GenerationFailed("model answer contains no JSON object")
    try:
        return AssessmentModel.model_validate(json.loads(match.group(0)))
    except (json.JSONDecodeError, PydanticValidationError) as ex:
        raise GenerationFailed(f"model answer is not a valid assessment: {ex}") from ex


def _locate(extracted: ExtractedText, concern: ConcernModel, n: int) -> ValidationFinding:
    quote = concern.quote.strip()
    pos = extracted.text.find(quote) if quote else -1
    start, end = (pos, pos + len(quote)) if pos >= 0 else (0, 0)
    return ValidationFinding(
        rule_id=f"model_concern_{n}",
        severity=concern.severity,
        matched_text=extracted.text[start:end],
        start=start,
        end=end,
        explanation=concern.explanation or "Flagged by model review.",
        page=extracted.page_at(start),
        source="model",
    )


@dataclass
class LLMRiskAssessor(RiskAssessorPort):
    llm: LLMPort
    temperature: float = 0.0
    max_tokens: int = 800

    def assess(
        self, extracted: ExtractedText, findings: Sequence[ValidationFinding]
    ) -> ModelAssessment:
        messages = [
            ChatMessage(role="system", content=ASSESSMENT_SYSTEM_PROMPT),
            ChatMessage(role="user", content=build_assessment_prompt(extracted.text, findings)),
        ]
        try:
            resp = self.llm.chat(messages, temperature=self.temperature, max_tokens=self.max_tokens)
        except GenerationFailed:
            raise
        except Exception as ex:  # noqa: BLE001
            raise GenerationFailed(f"risk assessment failed: {ex}") from ex
        parsed = parse_assessment(resp.text)
        return ModelAssessment(
            risk_adjustment=parsed.risk_adjustment,
            summary=parsed.summary,
            concerns=tuple(_locate(extracted, c, i) for i, c in enumerate(parsed.concerns, start=1)),
            model=getattr(self.llm, "model", ""),
        )
