"""High-level drift gate orchestration."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence

from lumos_drift.core.config import LumosDriftConfig
from lumos_drift.core.drift_comparator import DriftComparator, GenerateFn, ProgressFn, ReadCommittedFn
from lumos_drift.core.drift_report import aggregate
from lumos_drift.core.errors import CollaboratorUnavailable
from lumos_drift.core.generator import CommandCodeGenerator, FileCommittedReader
from lumos_drift.core.models import PolicyContext, RunReport, SchemaRef
from lumos_drift.core.policy import evaluate
from lumos_drift.core.resolver import GlobSchemaResolver

logger = logging.getLogger(__name__)

ExpandFn = Callable[[Sequence[str]], List[SchemaRef]]


@dataclass
class DriftGate:
    """
    Resolve, generate, compare, evaluate and aggregate in one run.

    Collaborators default to the filesystem and subprocess implementations
    built from ``config``; tests and callers may inject their own.
    """
    config: LumosDriftConfig = field(default_factory=LumosDriftConfig)
    expand: Optional[ExpandFn] = None
    generate: Optional[GenerateFn] = None
    read_committed: Optional[ReadCommittedFn] = None

    def __post_init__(self) -> None:
        root = self.config.root_path()
        if self.expand is None:
            self.expand = GlobSchemaResolver(root, self.config.ignored_patterns).expand
        if self.generate is None:
            self.generate = CommandCodeGenerator(
                command=self.config.generator_command,
                artifact_names=self.config.artifact_names,
                timeout=self.config.generation_timeout_seconds,
                cwd=root,
            ).generate
        if self.read_committed is None:
            self.read_committed = FileCommittedReader(
                artifact_names=self.config.artifact_names,
                path_template=self.config.committed_path_template,
                root=root,
            ).read

    def run(
        self,
        schema_globs: Optional[Sequence[str]] = None,
        fail_on_drift: Optional[bool] = None,
        override_granted: bool = False,
        context: Optional[PolicyContext] = None,
        on_start: Optional[Callable[[int], None]] = None,
        on_complete: Optional[ProgressFn] = None,
    ) -> RunReport:
        """
        Run one drift check.

        Either pass a fully resolved ``context`` or the individual
        ``fail_on_drift`` / ``override_granted`` flags; ``fail_on_drift``
        defaults to the configured value. ``schema_globs=None`` uses the
        configured globs; an empty sequence matches nothing.

        ``on_start`` receives the number of resolved schemas before any
        generation starts.

        Raises:
            NoSchemasMatched: before any generation, if no schema matched.
            CollaboratorUnavailable: if resolver, generator or reader infrastructure fails.
        """
        globs = list(self.config.schema_globs) if schema_globs is None else list(schema_globs)
        if context is None:
            context = PolicyContext(
                fail_on_drift=self.config.fail_on_drift if fail_on_drift is None else fail_on_drift,
                override_granted=override_granted,
            )

        try:
            schemas = self.expand(globs)
            logger.info("Checking %d schema(s) with %d worker(s)", len(schemas), self.config.max_workers)
            if on_start:
                on_start(len(schemas))

            comparator = DriftComparator(
                generate=self.generate,
                read_committed=self.read_committed,
                max_workers=self.config.max_workers,
                context_lines=self.config.diff_context_lines,
            )
            records = comparator.compare(schemas, on_complete=on_complete)
        except CollaboratorUnavailable as e:
            logger.error("Drift check aborted: %s", e)
            raise

        decision = evaluate(records, context)
        report = aggregate(records, decision)
        logger.info(
            "Drift check finished: %s (%s)", decision.outcome.value, decision.reason
        )
        return report


def run(
    schema_globs: Sequence[str],
    fail_on_drift: bool = True,
    override_granted: bool = False,
    config: Optional[LumosDriftConfig] = None,
) -> RunReport:
    """Single entry point for callers that only need the default collaborators."""
    gate = DriftGate(config=config or LumosDriftConfig())
    return gate.run(schema_globs, fail_on_drift=fail_on_drift, override_granted=override_granted)
