"""Compare freshly generated artifacts against committed ones."""

from __future__ import annotations

import asyncio
import difflib
import logging
from typing import Callable, Dict, List, Mapping, Optional, Sequence

from lumos_drift.core.errors import GenerationError
from lumos_drift.core.models import (
    LANGUAGES,
    DriftRecord,
    DriftStatus,
    GeneratedArtifact,
    Language,
    SchemaRef,
)

logger = logging.getLogger(__name__)

GenerateFn = Callable[[SchemaRef], Mapping[Language, bytes]]
ReadCommittedFn = Callable[[SchemaRef, Language], Optional[bytes]]
ProgressFn = Callable[[SchemaRef], None]


def unified_diff(committed: bytes, generated: bytes, label: str, context_lines: int = 3) -> str:
    """Line-based unified diff from the committed text to the generated text."""
    before = committed.decode("utf-8", errors="backslashreplace").splitlines(keepends=True)
    after = generated.decode("utf-8", errors="backslashreplace").splitlines(keepends=True)
    lines = difflib.unified_diff(
        before,
        after,
        fromfile=f"committed/{label}",
        tofile=f"generated/{label}",
        n=context_lines,
    )
    out = []
    for line in lines:
        out.append(line if line.endswith("\n") else line + "\n\\ No newline at end of file\n")
    return "".join(out)


def _by_language(raw: Mapping) -> Dict[Language, bytes]:
    known = {lang.value for lang in LANGUAGES}
    result: Dict[Language, bytes] = {}
    for key, value in raw.items():
        name = key.value if isinstance(key, Language) else str(key)
        if name in known and value is not None:
            result[Language(name)] = value
    return result


def classify(
    artifact: GeneratedArtifact,
    committed: Optional[bytes],
    context_lines: int = 3,
) -> DriftRecord:
    """Classify one generated artifact against its committed counterpart."""
    if committed is None:
        return DriftRecord(artifact.schema, artifact.language, DriftStatus.MISSING_COMMITTED)
    if committed == artifact.content:
        return DriftRecord(artifact.schema, artifact.language, DriftStatus.UNCHANGED)
    label = f"{artifact.schema.name}.{artifact.language.value}"
    diff = unified_diff(committed, artifact.content, label, context_lines)
    if not diff:
        diff = (
            f"Binary files committed/{label} and generated/{label} differ "
            f"({len(committed)} vs {len(artifact.content)} bytes)\n"
        )
    return DriftRecord(artifact.schema, artifact.language, DriftStatus.MODIFIED, diff=diff)


class DriftComparator:
    """
    Runs generation and comparison for every schema.

    Schemas are processed concurrently, at most ``max_workers`` at a time.
    Blocking collaborator calls run in worker threads. The returned records
    follow input order: for each schema, one record per language in
    ``LANGUAGES`` order.

    A ``GenerationError`` is attributed to its schema. Any other exception
    (notably ``CollaboratorUnavailable``) cancels the outstanding work and
    propagates.
    """

    def __init__(
        self,
        generate: GenerateFn,
        read_committed: ReadCommittedFn,
        max_workers: int = 4,
        context_lines: int = 3,
    ):
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self.generate = generate
        self.read_committed = read_committed
        self.max_workers = max_workers
        self.context_lines = context_lines

    def compare(self, schemas: Sequence[SchemaRef], on_complete: Optional[ProgressFn] = None) -> List[DriftRecord]:
        return asyncio.run(self.compare_async(schemas, on_complete=on_complete))

    async def compare_async(
        self,
        schemas: Sequence[SchemaRef],
        on_complete: Optional[ProgressFn] = None,
    ) -> List[DriftRecord]:
        semaphore = asyncio.Semaphore(self.max_workers)

        async def worker(schema: SchemaRef) -> List[DriftRecord]:
            async with semaphore:
                records = await self._compare_one(schema)
            if on_complete:
                on_complete(schema)
            return records

        tasks = [asyncio.create_task(worker(schema)) for schema in schemas]
        try:
            per_schema = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        # gather preserves task order, which is input order
        return [record for records in per_schema for record in records]

    async def _compare_one(self, schema: SchemaRef) -> List[DriftRecord]:
        try:
            raw = await asyncio.to_thread(self.generate, schema)
            generated = _by_language(raw)
            missing = [lang.value for lang in LANGUAGES if generated.get(lang) is None]
            if missing:
                raise GenerationError(str(schema.path), f"generator produced no {', '.join(missing)} output")
        except GenerationError as e:
            logger.warning("Generation failed for %s: %s", schema.path, e.message)
            return [
                DriftRecord(schema, lang, DriftStatus.GENERATION_ERROR, error=str(e))
                for lang in LANGUAGES
            ]

        records = []
        for lang in LANGUAGES:
            committed = await asyncio.to_thread(self.read_committed, schema, lang)
            artifact = GeneratedArtifact(language=lang, content=bytes(generated[lang]), schema=schema)
            record = classify(artifact, committed, self.context_lines)
            logger.debug("%s [%s]: %s", schema.name, lang.value, record.status.value)
            records.append(record)
        return records


def compare(
    schemas: Sequence[SchemaRef],
    generate: GenerateFn,
    read_committed: ReadCommittedFn,
    max_workers: int = 4,
) -> List[DriftRecord]:
    """Module-level convenience wrapper around ``DriftComparator.compare``."""
    return DriftComparator(generate, read_committed, max_workers=max_workers).compare(schemas)
