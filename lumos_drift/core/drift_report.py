"""Run report composition."""

from __future__ import annotations

import json
import uuid
from collections import Counter
from pathlib import Path
from typing import Any, Dict, List, Sequence

from lumos_drift.core.models import (
    LANGUAGES,
    DriftRecord,
    DriftStatus,
    PolicyDecision,
    RunReport,
    SchemaRef,
)


def _ordered_schemas(records: Sequence[DriftRecord]) -> List[SchemaRef]:
    seen: Dict[SchemaRef, None] = {}
    for record in records:
        seen.setdefault(record.schema, None)
    return list(seen)


def _check_complete(records: Sequence[DriftRecord], schemas: Sequence[SchemaRef]) -> None:
    pairs = Counter((r.schema, r.language) for r in records)
    for schema in schemas:
        for lang in LANGUAGES:
            count = pairs.get((schema, lang), 0)
            if count != 1:
                raise ValueError(
                    f"expected exactly one {lang.value} record for {schema.path}, found {count}"
                )


def diff_summary(records: Sequence[DriftRecord]) -> str:
    """Concatenate the diffs of modified records, each under a schema header."""
    sections = []
    for record in records:
        if record.status is not DriftStatus.MODIFIED:
            continue
        sections.append(f"### {record.schema.name} ({record.language.value})\n{record.diff or ''}")
    return "\n".join(sections)


def aggregate(records: Sequence[DriftRecord], decision: PolicyDecision) -> RunReport:
    """
    Fold per-language records into a RunReport.

    Raises:
        ValueError: if a schema does not have exactly one record per language.
    """
    records = list(records)
    schemas = _ordered_schemas(records)
    _check_complete(records, schemas)

    counts = Counter(r.status.value for r in records)
    status_counts = {status.value: counts.get(status.value, 0) for status in DriftStatus}
    generated = {r.schema for r in records if r.status is not DriftStatus.GENERATION_ERROR}

    return RunReport(
        schemas_validated=len(schemas),
        schemas_generated=len(generated),
        drift_detected=any(r.is_drift for r in records),
        diff_summary=diff_summary(records),
        decision=decision,
        records=records,
        status_counts=status_counts,
    )


def write_report(report: RunReport, path: Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(report.to_dict(), indent=2, ensure_ascii=False), encoding="utf-8")
    return path


def load_records(path: Path) -> List[DriftRecord]:
    """Read the records back out of a JSON report written by ``write_report``."""
    data: Dict[str, Any] = json.loads(Path(path).read_text(encoding="utf-8"))
    return [DriftRecord.from_dict(item) for item in data.get("records", [])]


def write_github_outputs(report: RunReport, path: Path) -> None:
    """Append the report outputs to a ``$GITHUB_OUTPUT`` style file."""
    lines = []
    for key, value in report.outputs().items():
        if "\n" in value:
            delimiter = f"EOF_{uuid.uuid4().hex}"
            lines.append(f"{key}<<{delimiter}\n{value}\n{delimiter}\n")
        else:
            lines.append(f"{key}={value}\n")
    with open(path, "a", encoding="utf-8") as f:
        f.writelines(lines)
