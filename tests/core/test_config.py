import pytest
import yaml
from pydantic import ValidationError

from lumos_drift.core.config import LumosDriftConfig, load_config


def test_defaults_without_file(tmp_path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    config = load_config()

    assert config.schema_globs == ["**/*.lumos"]
    assert config.fail_on_drift is True
    assert config.artifact_names == {"rust": "generated.rs", "typescript": "generated.ts"}
    assert config.max_workers == 4


def test_file_values_and_cli_precedence(tmp_path) -> None:
    path = tmp_path / "lumos-drift.config.yaml"
    path.write_text(yaml.safe_dump({
        "schema_globs": ["schemas/*.lumos"],
        "fail_on_drift": False,
        "override_labels": ["allow-drift"],
        "max_workers": 2,
    }), encoding="utf-8")

    config = load_config(str(path), cli_args={"max_workers": 8, "fail_on_drift": None})

    assert config.schema_globs == ["schemas/*.lumos"]
    assert config.fail_on_drift is False
    assert config.override_labels == ["allow-drift"]
    assert config.max_workers == 8


def test_missing_explicit_file_falls_back_to_defaults(tmp_path) -> None:
    config = load_config(str(tmp_path / "absent.yaml"))

    assert config == LumosDriftConfig()


def test_broken_yaml_is_ignored(tmp_path) -> None:
    path = tmp_path / "broken.yaml"
    path.write_text("schema_globs: [unclosed\n", encoding="utf-8")

    assert load_config(str(path)).schema_globs == ["**/*.lumos"]


def test_artifact_names_must_cover_both_languages() -> None:
    with pytest.raises(ValidationError, match="typescript"):
        LumosDriftConfig(artifact_names={"rust": "lib.rs"})


def test_generator_command_needs_schema_placeholder() -> None:
    with pytest.raises(ValidationError):
        LumosDriftConfig(generator_command=["lumos", "generate"])


def test_max_workers_must_be_positive() -> None:
    with pytest.raises(ValidationError):
        LumosDriftConfig(max_workers=0)
