"""Error taxonomy for drift-check runs."""

from __future__ import annotations

from typing import Optional, Sequence

ERR_POLICY = 1
ERR_CONFIG = 2
ERR_COLLABORATOR = 3
ERR_INTERNAL = 99


class LumosDriftError(Exception):
    """Base class for every error raised by lumos_drift."""

    exit_code = ERR_CONFIG


class NoSchemasMatched(LumosDriftError):
    """Schema globs expanded to nothing; raised before any generation."""

    exit_code = ERR_CONFIG

    def __init__(self, patterns: Sequence[str]):
        self.patterns = list(patterns)
        super().__init__(f"No schema files matched: {', '.join(self.patterns) or '<none>'}")


class InvalidSchemaPattern(LumosDriftError):
    """A schema glob cannot be evaluated at all."""

    exit_code = ERR_CONFIG

    def __init__(self, pattern: str, reason: str):
        self.pattern = pattern
        self.reason = reason
        super().__init__(f"Invalid schema pattern {pattern!r}: {reason}")


class GenerationError(LumosDriftError):
    """The generator rejected one schema (syntax error, generator failure)."""

    exit_code = ERR_POLICY

    def __init__(self, schema: str, message: str):
        self.schema = schema
        self.message = message
        super().__init__(f"{schema}: {message}")


class CollaboratorUnavailable(LumosDriftError):
    """Resolver, generator or reader infrastructure failed; aborts the run."""

    exit_code = ERR_COLLABORATOR

    def __init__(self, collaborator: str, message: str, cause: Optional[BaseException] = None):
        self.collaborator = collaborator
        self.message = message
        self.cause = cause
        super().__init__(f"{collaborator} unavailable: {message}")
