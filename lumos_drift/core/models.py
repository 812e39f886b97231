"""
Core data models for a single drift-check run.

This module contains plain data structures: schema references, generated
artifacts, per-language drift records, policy decisions and the run report.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional


class Language(str, Enum):
    """Target languages emitted by the code generator."""
    RUST = "rust"
    TYPESCRIPT = "typescript"


# Fixed comparison order for every schema.
LANGUAGES = (Language.RUST, Language.TYPESCRIPT)


class DriftStatus(str, Enum):
    UNCHANGED = "unchanged"
    MODIFIED = "modified"
    MISSING_COMMITTED = "missing-committed"
    GENERATION_ERROR = "generation-error"


DRIFT_STATUSES = frozenset({DriftStatus.MODIFIED, DriftStatus.MISSING_COMMITTED})


class Outcome(str, Enum):
    PASS = "pass"
    FAIL = "fail"
    WARN_PASS = "warn-pass"


@dataclass(frozen=True)
class SchemaRef:
    """One schema unit resolved for this run."""
    path: Path
    directory: Path
    name: str

    @classmethod
    def from_path(cls, path: Path) -> "SchemaRef":
        path = Path(path)
        return cls(path=path, directory=path.parent, name=path.stem)

    def __str__(self) -> str:
        return str(self.path)


@dataclass(frozen=True)
class GeneratedArtifact:
    language: Language
    content: bytes
    schema: SchemaRef


@dataclass(frozen=True)
class DriftRecord:
    schema: SchemaRef
    language: Language
    status: DriftStatus
    diff: Optional[str] = None
    error: Optional[str] = None

    @property
    def is_drift(self) -> bool:
        return self.status in DRIFT_STATUSES

    def to_dict(self) -> Dict[str, Any]:
        return {
            "schema": str(self.schema.path),
            "name": self.schema.name,
            "language": self.language.value,
            "status": self.status.value,
            "diff": self.diff,
            "error": self.error,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DriftRecord":
        return cls(
            schema=SchemaRef.from_path(Path(data["schema"])),
            language=Language(data["language"]),
            status=DriftStatus(data["status"]),
            diff=data.get("diff"),
            error=data.get("error"),
        )


@dataclass(frozen=True)
class PolicyContext:
    """Inputs of the policy evaluator besides the drift records."""
    fail_on_drift: bool = True
    is_pull_request: bool = False
    override_granted: bool = False


@dataclass(frozen=True)
class PolicyDecision:
    outcome: Outcome
    reason: str

    @property
    def exit_code(self) -> int:
        return 1 if self.outcome is Outcome.FAIL else 0


@dataclass(frozen=True)
class RunReport:
    """Aggregate result of one run; the only externally observable output."""
    schemas_validated: int
    schemas_generated: int
    drift_detected: bool
    diff_summary: str
    decision: PolicyDecision
    records: List[DriftRecord] = field(default_factory=list)
    status_counts: Dict[str, int] = field(default_factory=dict)

    @property
    def exit_code(self) -> int:
        return self.decision.exit_code

    def failed_schemas(self) -> List[DriftRecord]:
        """Records that carry a generation error, one per language."""
        return [r for r in self.records if r.status is DriftStatus.GENERATION_ERROR]

    def outputs(self) -> Dict[str, str]:
        """Step outputs in the names a workflow reads them by."""
        return {
            "schemas-validated": str(self.schemas_validated),
            "schemas-generated": str(self.schemas_generated),
            "drift-detected": "true" if self.drift_detected else "false",
            "diff-summary": self.diff_summary,
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "summary": {
                "schemas_validated": self.schemas_validated,
                "schemas_generated": self.schemas_generated,
                "drift_detected": self.drift_detected,
                "status_counts": dict(self.status_counts),
            },
            "decision": {
                "outcome": self.decision.outcome.value,
                "reason": self.decision.reason,
            },
            "records": [r.to_dict() for r in self.records],
            "diff_summary": self.diff_summary,
        }
