"""Validation report models shared by relation and learner manifest checks."""

from enum import Enum

from pydantic import BaseModel, Field


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


class ValidationIssue(BaseModel):
    """A single problem found in a manifest."""

    severity: Severity
    category: str = Field(description="Check category, e.g. REFERENCE or PARAMETER")
    location: str = Field(description="Where the issue is, e.g. 'iris/features'")
    message: str
    suggestion: str | None = None
    value: str | None = Field(default=None, description="Offending value, if any")

    def __str__(self) -> str:
        return f"[{self.severity.value}] {self.location}: {self.message}"


class ValidationResult(BaseModel):
    """All issues found while validating one manifest."""

    issues: list[ValidationIssue] = Field(default_factory=list)

    @property
    def errors(self) -> list[ValidationIssue]:
        return [i for i in self.issues if i.severity == Severity.ERROR]

    @property
    def warnings(self) -> list[ValidationIssue]:
        return [i for i in self.issues if i.severity == Severity.WARNING]

    @property
    def valid(self) -> bool:
        """True when there are no ERROR-level issues."""
        return not self.errors

    def merge(self, other: "ValidationResult") -> "ValidationResult":
        return ValidationResult(issues=[*self.issues, *other.issues])
