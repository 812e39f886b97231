import yaml
import logging
from typing import List, Optional, Dict, Any
from pathlib import Path
from pydantic import BaseModel, Field, field_validator

from lumos_drift.core.drift_config import (
    DEFAULT_SCHEMA_GLOBS,
    DEFAULT_IGNORED_PATTERNS,
    DEFAULT_FAIL_ON_DRIFT,
    DEFAULT_PULL_REQUEST_ONLY,
    DEFAULT_STRICT_BRANCHES,
    DEFAULT_OVERRIDE_LABELS,
    DEFAULT_GENERATOR_COMMAND,
    DEFAULT_GENERATION_TIMEOUT_SECONDS,
    DEFAULT_ARTIFACT_NAMES,
    DEFAULT_COMMITTED_PATH_TEMPLATE,
    DEFAULT_MAX_WORKERS,
    DEFAULT_DIFF_CONTEXT_LINES,
)
from lumos_drift.core.models import LANGUAGES

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "lumos-drift.config.yaml"
DEFAULT_PROJECT_ROOT = "."


class LumosDriftConfig(BaseModel):
    """
    Central configuration model for drift checks.
    """
    project_root: str = Field(default=DEFAULT_PROJECT_ROOT)
    schema_globs: List[str] = Field(default_factory=lambda: list(DEFAULT_SCHEMA_GLOBS))
    ignored_patterns: List[str] = Field(default_factory=lambda: list(DEFAULT_IGNORED_PATTERNS))

    # Policy
    fail_on_drift: bool = DEFAULT_FAIL_ON_DRIFT
    pull_request_only: bool = DEFAULT_PULL_REQUEST_ONLY
    strict_branches: List[str] = Field(default_factory=lambda: list(DEFAULT_STRICT_BRANCHES))
    override_labels: List[str] = Field(default_factory=lambda: list(DEFAULT_OVERRIDE_LABELS))

    # Generation
    generator_command: List[str] = Field(default_factory=lambda: list(DEFAULT_GENERATOR_COMMAND))
    generation_timeout_seconds: float = DEFAULT_GENERATION_TIMEOUT_SECONDS
    artifact_names: Dict[str, str] = Field(default_factory=lambda: DEFAULT_ARTIFACT_NAMES.copy())
    committed_path_template: str = DEFAULT_COMMITTED_PATH_TEMPLATE

    # Execution
    max_workers: int = Field(default=DEFAULT_MAX_WORKERS, ge=1)
    diff_context_lines: int = Field(default=DEFAULT_DIFF_CONTEXT_LINES, ge=0)

    @field_validator("artifact_names")
    @classmethod
    def _require_every_language(cls, value: Dict[str, str]) -> Dict[str, str]:
        missing = [lang.value for lang in LANGUAGES if lang.value not in value]
        if missing:
            raise ValueError(f"artifact_names is missing entries for: {', '.join(missing)}")
        return value

    @field_validator("generator_command")
    @classmethod
    def _require_schema_placeholder(cls, value: List[str]) -> List[str]:
        if not value:
            raise ValueError("generator_command must not be empty")
        if not any("{schema}" in part for part in value):
            raise ValueError("generator_command must reference {schema}")
        return value

    def root_path(self) -> Path:
        return Path(self.project_root).resolve()


def load_config(
    config_path: Optional[str] = None,
    cli_args: Optional[Dict[str, Any]] = None
) -> LumosDriftConfig:
    """
    Load configuration from file and overrides.

    Priority:
    1. CLI Arguments (if provided and not None)
    2. Config File (if provided or found at default path)
    3. Default Values

    Args:
        config_path: Path to the YAML config file. If None, tries 'lumos-drift.config.yaml'.
        cli_args: Dictionary of CLI arguments to override config values.

    Returns:
        LumosDriftConfig: The resolved configuration object.

    Raises:
        pydantic.ValidationError: if the merged values are invalid.
    """
    config_data: Dict[str, Any] = {}

    target_path = config_path if config_path else DEFAULT_CONFIG_PATH
    path_obj = Path(target_path)

    if path_obj.exists() and path_obj.is_file():
        try:
            with open(path_obj, 'r', encoding='utf-8') as f:
                file_data = yaml.safe_load(f)
                if file_data:
                    config_data.update(file_data)
            logger.info(f"Loaded configuration from {target_path}")
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f"Failed to load config file {target_path}: {e}")
    elif config_path:
        logger.warning(f"Config file not found at explicit path: {config_path}")
    else:
        logger.info(f"No config file found at {DEFAULT_CONFIG_PATH}, using defaults.")

    if cli_args:
        for key, value in cli_args.items():
            if value is not None:
                config_data[key] = value

    return LumosDriftConfig(**config_data)
