"""Policy evaluation: drift records plus run context to a pass/fail decision."""

from __future__ import annotations

import fnmatch
import logging
import os
from typing import Iterable, Mapping, Optional, Sequence

from lumos_drift.core.config import LumosDriftConfig
from lumos_drift.core.models import (
    DriftRecord,
    DriftStatus,
    Outcome,
    PolicyContext,
    PolicyDecision,
)

logger = logging.getLogger(__name__)

PULL_REQUEST_EVENTS = frozenset({"pull_request", "pull_request_target"})

REASON_GENERATION_FAILED = "schema generation failed"
REASON_NO_DRIFT = "no drift detected"
REASON_OVERRIDE = "drift present, override accepted"
REASON_BLOCKING = "drift detected, override not granted"
REASON_NON_BLOCKING = "drift detected, non-blocking configuration"


def evaluate(records: Sequence[DriftRecord], context: PolicyContext) -> PolicyDecision:
    """
    Decide the run outcome.

    Generation errors always fail the run. Configuration only decides whether
    drift blocks it, and an override only downgrades drift, never errors.
    """
    if any(r.status is DriftStatus.GENERATION_ERROR for r in records):
        return PolicyDecision(Outcome.FAIL, REASON_GENERATION_FAILED)
    if not any(r.is_drift for r in records):
        return PolicyDecision(Outcome.PASS, REASON_NO_DRIFT)
    if context.override_granted:
        return PolicyDecision(Outcome.WARN_PASS, REASON_OVERRIDE)
    if context.fail_on_drift:
        return PolicyDecision(Outcome.FAIL, REASON_BLOCKING)
    return PolicyDecision(Outcome.WARN_PASS, REASON_NON_BLOCKING)


def _matches_any(branch: str, patterns: Iterable[str]) -> bool:
    return any(fnmatch.fnmatchcase(branch, pattern) for pattern in patterns)


def resolve_policy_context(
    config: LumosDriftConfig,
    event_name: Optional[str] = None,
    branch: Optional[str] = None,
    labels: Optional[Iterable[str]] = None,
    override: bool = False,
    environ: Optional[Mapping[str, str]] = None,
) -> PolicyContext:
    """
    Build a PolicyContext from CI facts.

    Missing event and branch fall back to the GitHub Actions environment
    (``GITHUB_EVENT_NAME``, ``GITHUB_HEAD_REF`` then ``GITHUB_REF_NAME``).
    """
    env = os.environ if environ is None else environ
    event_name = event_name if event_name is not None else env.get("GITHUB_EVENT_NAME", "")
    is_pull_request = event_name in PULL_REQUEST_EVENTS
    if branch is None:
        branch = env.get("GITHUB_HEAD_REF") or env.get("GITHUB_REF_NAME") or ""

    fail_on_drift = config.fail_on_drift
    if config.pull_request_only and not is_pull_request:
        fail_on_drift = False
    # strict_branches applies to non-PR events only
    if branch and not is_pull_request and _matches_any(branch, config.strict_branches):
        fail_on_drift = True

    granted_labels = sorted(set(labels or ()) & set(config.override_labels))
    override_granted = bool(override) or (is_pull_request and bool(granted_labels))
    if granted_labels and is_pull_request:
        logger.info("Drift override granted by label(s): %s", ", ".join(granted_labels))

    context = PolicyContext(
        fail_on_drift=fail_on_drift,
        is_pull_request=is_pull_request,
        override_granted=override_granted,
    )
    logger.debug("Resolved policy context for event=%r branch=%r: %s", event_name, branch, context)
    return context
