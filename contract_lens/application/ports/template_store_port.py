from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class ContractTemplate:
    template_id: str
    title: str
    category: str
    body: str


class TemplateStorePort(Protocol):
    def get(self, template_id: str) -> ContractTemplate | None: ...

    def list_templates(self) -> list[ContractTemplate]: ...
