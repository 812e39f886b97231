"""Schema set resolution: glob patterns to an ordered list of SchemaRefs."""

from __future__ import annotations

import fnmatch
import logging
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Set

from lumos_drift.core.errors import CollaboratorUnavailable, InvalidSchemaPattern, NoSchemasMatched
from lumos_drift.core.models import SchemaRef

logger = logging.getLogger(__name__)


def match_ignored(relative_path: str, patterns: Iterable[str]) -> bool:
    """Return True when a root-relative POSIX path matches any ignore pattern."""
    for pattern in patterns:
        if fnmatch.fnmatch(relative_path, pattern):
            return True
        # "**/x/**" should also catch "x/..." at the root
        if pattern.startswith("**/") and fnmatch.fnmatch(relative_path, pattern[3:]):
            return True
    return False


class GlobSchemaResolver:
    """Expands glob patterns relative to a project root."""

    def __init__(self, project_root: Path, ignored_patterns: Optional[Sequence[str]] = None):
        self.project_root = Path(project_root).resolve()
        self.ignored_patterns = list(ignored_patterns or [])

    def expand(self, patterns: Sequence[str]) -> List[SchemaRef]:
        """
        Expand patterns into SchemaRefs.

        Patterns are processed in the given order; matches within one pattern
        are sorted. A path matched by several patterns is kept once, at its
        first position.

        Raises:
            NoSchemasMatched: if nothing matched.
            InvalidSchemaPattern: if a pattern is not a valid glob.
            CollaboratorUnavailable: if the project root cannot be read.
        """
        if not self.project_root.is_dir():
            raise CollaboratorUnavailable(
                "schema resolver", f"project root {self.project_root} is not a directory"
            )

        seen: Set[Path] = set()
        refs: List[SchemaRef] = []
        for pattern in patterns:
            try:
                matches = sorted(self._glob(pattern))
            except ValueError as e:
                raise InvalidSchemaPattern(pattern, str(e)) from e
            except OSError as e:
                raise CollaboratorUnavailable("schema resolver", str(e), cause=e) from e
            for path in matches:
                if path in seen or not path.is_file():
                    continue
                try:
                    relative = path.relative_to(self.project_root).as_posix()
                except ValueError:
                    relative = path.as_posix()
                if match_ignored(relative, self.ignored_patterns):
                    logger.debug("Ignoring schema %s", relative)
                    continue
                seen.add(path)
                refs.append(SchemaRef.from_path(path))
            logger.debug("Pattern %r matched %d file(s)", pattern, len(matches))

        if not refs:
            raise NoSchemasMatched(patterns)
        logger.info("Resolved %d schema file(s)", len(refs))
        return refs

    def _glob(self, pattern: str) -> List[Path]:
        if not pattern.strip():
            raise ValueError("empty pattern")
        candidate = Path(pattern)
        if candidate.is_absolute():
            try:
                relative = candidate.relative_to(self.project_root)
            except ValueError:
                # Outside the root: glob from the filesystem anchor.
                anchor = Path(candidate.anchor)
                return [p.resolve() for p in anchor.glob(str(candidate.relative_to(anchor)))]
            pattern = relative.as_posix()
        return [p.resolve() for p in self.project_root.glob(pattern)]
