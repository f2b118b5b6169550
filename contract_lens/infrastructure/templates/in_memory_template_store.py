from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from contract_lens.application.ports.template_store_port import ContractTemplate, TemplateStorePort

BUILTIN_TEMPLATES: tuple[ContractTemplate, ...] = (
    ContractTemplate(
        template_id="freelance_services",
        title="Freelance Services Agreement",
        category="freelance",
        body=(
            "FREELANCE SERVICES AGREEMENT\n\n"
            "This Agreement is made on {{DATE}} between {{CLIENT_NAME}} (\"Client\") and "
            "{{FREELANCER_NAME}} (\"Freelancer\").\n\n"
            "1. Scope of Work. The Freelancer shall deliver {{DELIVERABLES}}.\n\n"
            "2. Payment. The Client shall pay {{AMOUNT}} within 30 days of each invoice.\n\n"
            "3. Intellectual Property. Rights in the deliverables pass to the Client on full payment.\n\n"
            "4. Termination. Either party may terminate with 15 days written notice; work completed "
            "until termination shall be paid pro rata.\n\n"
            "5. Governing Law. This Agreement is governed by the laws of India and the courts at "
            "{{CITY}} shall have jurisdiction."
        ),
    ),
    ContractTemplate(
        template_id="mutual_nda",
        title="Mutual Non-Disclosure Agreement",
        category="confidentiality",
        body=(
            "MUTUAL NON-DISCLOSURE AGREEMENT\n\n"
            "Between {{PARTY_A}} and {{PARTY_B}}, effective {{DATE}}.\n\n"
            "1. Confidential Information means non-public information disclosed by either party.\n\n"
            "2. Obligations. Each party shall keep Confidential Information confidential for a "
            "period of 3 years from disclosure.\n\n"
            "3. Exclusions. Information that is public, independently developed or lawfully "
            "received from a third party is excluded.\n\n"
            "4. Governing Law. This Agreement is governed by the laws of India."
        ),
    ),
    ContractTemplate(
        template_id="employment_offer",
        title="Employment Agreement",
        category="employment",
        body=(
            "EMPLOYMENT AGREEMENT\n\n"
            "{{EMPLOYER_NAME}} appoints {{EMPLOYEE_NAME}} as {{DESIGNATION}} from {{START_DATE}}.\n\n"
            "1. Compensation. Salary of {{SALARY}} per month, payable on the last working day.\n\n"
            "2. Working Hours. 9 hours per day, 5 days per week.\n\n"
            "3. Notice Period. Either party may terminate with 30 days written notice or salary "
            "in lieu of notice.\n\n"
            "4. Governing Law. This Agreement is governed by the laws of India."
        ),
    ),
)


@dataclass
class InMemoryTemplateStore(TemplateStorePort):
    _templates: dict[str, ContractTemplate] = field(default_factory=dict)

    @classmethod
    def with_builtins(cls, extra: Iterable[ContractTemplate] = ()) -> InMemoryTemplateStore:
        store = cls()
        for t in (*BUILTIN_TEMPLATES, *extra):
            store.add(t)
        return store

    def add(self, template: ContractTemplate) -> None:
        self._templates[template.template_id] = template

    def get(self, template_id: str) -> ContractTemplate | None:
        return self._templates.get(template_id)

    def list_templates(self) -> list[ContractTemplate]:
        return sorted(self._templates.values(), key=lambda t: t.template_id)
