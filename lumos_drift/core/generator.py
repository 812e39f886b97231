"""Code generation and committed-artifact access backed by the filesystem."""

from __future__ import annotations

import logging
import subprocess
import tempfile
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence

from lumos_drift.core.errors import CollaboratorUnavailable, GenerationError
from lumos_drift.core.models import LANGUAGES, Language, SchemaRef

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommandResult:
    code: int
    stdout: str
    stderr: str
    duration_ms: int

    @property
    def combined_output(self) -> str:
        return (self.stdout + self.stderr).strip()


def run_command(cmd: List[str], cwd: Path, timeout: Optional[float] = None) -> CommandResult:
    started = time.monotonic()
    proc = subprocess.run(cmd, cwd=cwd, text=True, capture_output=True, check=False, timeout=timeout)
    duration_ms = int((time.monotonic() - started) * 1000)
    return CommandResult(
        code=proc.returncode,
        stdout=proc.stdout or "",
        stderr=proc.stderr or "",
        duration_ms=duration_ms,
    )


class CommandCodeGenerator:
    """
    Runs an external generator command for one schema at a time.

    The command is an argv template; ``{schema}`` is replaced with the schema
    path and ``{output_dir}`` with a fresh temporary directory from which the
    artifacts named in ``artifact_names`` are read back.
    """

    def __init__(
        self,
        command: Sequence[str],
        artifact_names: Mapping[str, str],
        timeout: Optional[float] = None,
        cwd: Optional[Path] = None,
    ):
        self.command = list(command)
        self.artifact_names = dict(artifact_names)
        self.timeout = timeout
        self.cwd = Path(cwd) if cwd else Path.cwd()

    def build_command(self, schema: SchemaRef, output_dir: Path) -> List[str]:
        return [
            part.replace("{schema}", str(schema.path)).replace("{output_dir}", str(output_dir))
            for part in self.command
        ]

    def generate(self, schema: SchemaRef) -> Dict[Language, bytes]:
        with tempfile.TemporaryDirectory(prefix="lumos-drift-") as tmp:
            output_dir = Path(tmp)
            cmd = self.build_command(schema, output_dir)
            logger.debug("Running generator: %s", " ".join(cmd))
            try:
                result = run_command(cmd, cwd=self.cwd, timeout=self.timeout)
            except FileNotFoundError as e:
                raise CollaboratorUnavailable("code generator", f"executable not found: {cmd[0]}", cause=e) from e
            except subprocess.TimeoutExpired as e:
                raise GenerationError(str(schema.path), f"generator timed out after {self.timeout}s") from e
            except OSError as e:
                raise CollaboratorUnavailable("code generator", str(e), cause=e) from e

            if result.code != 0:
                detail = result.combined_output or f"exit code {result.code}"
                raise GenerationError(str(schema.path), detail)
            logger.debug("Generated %s in %dms", schema.name, result.duration_ms)

            artifacts: Dict[Language, bytes] = {}
            for language in LANGUAGES:
                artifact = output_dir / self.artifact_names[language.value]
                if artifact.is_file():
                    artifacts[language] = artifact.read_bytes()
            return artifacts


class FileCommittedReader:
    """
    Reads committed artifacts from a path template next to the schema.

    A template that renders to a relative path is resolved against ``root``,
    the project root. Without a root, the working directory at construction
    time is used.
    """

    def __init__(
        self,
        artifact_names: Mapping[str, str],
        path_template: str = "{schema_dir}/{artifact}",
        root: Optional[Path] = None,
    ):
        self.artifact_names = dict(artifact_names)
        self.path_template = path_template
        self.root = Path(root).resolve() if root else Path.cwd()

    def path_for(self, schema: SchemaRef, language: Language) -> Path:
        path = Path(self.path_template.format(
            schema_dir=str(schema.directory),
            schema_name=schema.name,
            artifact=self.artifact_names[language.value],
        ))
        return path if path.is_absolute() else self.root / path

    def read(self, schema: SchemaRef, language: Language) -> Optional[bytes]:
        path = self.path_for(schema, language)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            return None
        except IsADirectoryError as e:
            raise CollaboratorUnavailable("committed reader", f"{path} is a directory", cause=e) from e
        except OSError as e:
            raise CollaboratorUnavailable("committed reader", str(e), cause=e) from e
