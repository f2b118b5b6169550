"""Domain errors (typed) for the contract pipeline.

Every failure that leaves a use case is one of these. Adapters translate
third-party exceptions at the boundary so nothing vendor-specific leaks upward.
"""

from __future__ import annotations


class DomainError(Exception):
    """Base class for domain-specific errors.

    `kind` is the stable identifier reported at the boundary; `message` is the
    human-readable part.
    """

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message

    @property
    def kind(self) -> str:
        return type(self).__name__


class ValidationError(DomainError):
    """Invalid input/domain state."""


class UnsupportedFormat(DomainError):
    """Document type is neither PDF nor UTF-8 text."""

    def __init__(self, message: str = "", mime_type: str | None = None) -> None:
        super().__init__(message)
        self.mime_type = mime_type


class ExtractionError(DomainError):
    """Document is corrupted or cannot be parsed."""

    def __init__(self, message: str = "", diagnostic: str = "") -> None:
        super().__init__(message)
        self.diagnostic = diagnostic


class EmbeddingUnavailable(DomainError):
    """Embedding provider failed after retries or returned unusable output."""


class IndexUnavailable(DomainError):
    """Vector index backend failed or is misconfigured."""


class GenerationFailed(DomainError):
    """Language model failed after retries."""


class ValidationRuleError(DomainError):
    """A single legal rule failed internally; reported, never fatal."""

    def __init__(self, message: str = "", rule_id: str = "") -> None:
        super().__init__(message)
        self.rule_id = rule_id
