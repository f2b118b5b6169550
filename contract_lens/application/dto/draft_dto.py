"""Draft request boundary: raw payload -> GenerateDraft | EnhanceDraft.

The action is resolved exactly once here. Callers may send snake_case or
camelCase keys and may omit `action`; an omitted action means "enhance" when
both existing content and clause text are present, "generate" otherwise.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator
from pydantic import ValidationError as PydanticValidationError

from contract_lens.domain.errors import ValidationError
from contract_lens.domain.models import DraftRequest, EnhanceDraft, GenerateDraft


class _DraftModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)


class GenerateDraftModel(_DraftModel):
    action: Literal["generate"] = "generate"
    prompt: Annotated[str, Field(min_length=1, max_length=8000)]
    template_id: str | None = Field(default=None, alias="templateId")

    @field_validator("prompt")
    @classmethod
    def strip_prompt(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("prompt must not be blank")
        return v

    def to_domain(self) -> GenerateDraft:
        return GenerateDraft(prompt=self.prompt, template_id=self.template_id)


class EnhanceDraftModel(_DraftModel):
    action: Literal["enhance"] = "enhance"
    existing_content: Annotated[str, Field(min_length=1, alias="existingContent")]
    clause_text: Annotated[str, Field(min_length=1, alias="clauseText")]

    @field_validator("existing_content", "clause_text")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v

    def to_domain(self) -> EnhanceDraft:
        return EnhanceDraft(existing_content=self.existing_content, clause_text=self.clause_text)


DraftRequestModel = Annotated[
    GenerateDraftModel | EnhanceDraftModel, Field(discriminator="action")
]
_adapter: TypeAdapter[GenerateDraftModel | EnhanceDraftModel] = TypeAdapter(DraftRequestModel)


def _infer_action(payload: Mapping[str, Any]) -> str:
    has_existing = bool(payload.get("existing_content") or payload.get("existingContent"))
    has_clause = bool(payload.get("clause_text") or payload.get("clauseText"))
    return "enhance" if has_existing and has_clause else "generate"


def parse_draft_request(payload: Mapping[str, Any]) -> DraftRequest:
    """Validate a raw mapping into the domain tagged union.

    Raises:
        ValidationError: unknown action or missing/blank fields.
    """
    data = dict(payload)
    if not data.get("action"):
        data["action"] = _infer_action(data)
    try:
        model = _adapter.validate_python(data)
    except PydanticValidationError as ex:
        raise ValidationError(f"invalid draft request: {ex}") from ex
    return model.to_domain()
