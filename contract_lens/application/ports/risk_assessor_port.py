"""Language-model opinion on a contract, consumed by the risk scorer."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence

from contract_lens.domain.models import ExtractedText, ModelAssessment, ValidationFinding


class RiskAssessorPort(ABC):
    @abstractmethod
    def assess(
        self, extracted: ExtractedText, findings: Sequence[ValidationFinding]
    ) -> ModelAssessment:
        """Return the model's adjustment and concerns.

        Raises:
            GenerationFailed: model unreachable or answer unusable. The analysis
                use case degrades to validator-only scoring.
        """
        ...
