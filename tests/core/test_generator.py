from __future__ import annotations

import subprocess
import sys
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from lumos_drift.core.errors import CollaboratorUnavailable, GenerationError
from lumos_drift.core.generator import CommandCodeGenerator, FileCommittedReader
from lumos_drift.core.models import Language, SchemaRef

ARTIFACTS = {"rust": "generated.rs", "typescript": "generated.ts"}
COMMAND = ["lumos", "generate", "{schema}", "--output", "{output_dir}"]


@pytest.fixture
def schema(tmp_path):
    path = tmp_path / "schemas" / "user.lumos"
    path.parent.mkdir(parents=True)
    path.write_text("struct User { id: u64 }\n", encoding="utf-8")
    return SchemaRef.from_path(path)


def _writes_artifacts(files):
    def fake_run(cmd, **kwargs):
        output_dir = Path(cmd[cmd.index("--output") + 1])
        for name, content in files.items():
            (output_dir / name).write_bytes(content)
        return MagicMock(returncode=0, stdout="", stderr="")
    return fake_run


def test_build_command_substitutes_placeholders(schema, tmp_path) -> None:
    generator = CommandCodeGenerator(COMMAND, ARTIFACTS)
    cmd = generator.build_command(schema, tmp_path / "out")

    assert cmd == ["lumos", "generate", str(schema.path), "--output", str(tmp_path / "out")]


def test_generate_reads_artifacts(schema, tmp_path) -> None:
    generator = CommandCodeGenerator(COMMAND, ARTIFACTS, timeout=5, cwd=tmp_path)
    files = {"generated.rs": b"pub struct User;\n", "generated.ts": b"export interface User {}\n"}

    with patch("lumos_drift.core.generator.subprocess.run", side_effect=_writes_artifacts(files)) as mock_run:
        result = generator.generate(schema)

    assert result == {Language.RUST: b"pub struct User;\n", Language.TYPESCRIPT: b"export interface User {}\n"}
    assert mock_run.call_args.kwargs["timeout"] == 5
    assert mock_run.call_args.kwargs["cwd"] == tmp_path


def test_generate_omits_missing_artifact(schema) -> None:
    generator = CommandCodeGenerator(COMMAND, ARTIFACTS)

    with patch("lumos_drift.core.generator.subprocess.run",
               side_effect=_writes_artifacts({"generated.rs": b"x"})):
        result = generator.generate(schema)

    assert Language.TYPESCRIPT not in result


def test_nonzero_exit_is_generation_error(schema) -> None:
    generator = CommandCodeGenerator(COMMAND, ARTIFACTS)

    with patch("lumos_drift.core.generator.subprocess.run") as mock_run:
        mock_run.return_value = MagicMock(returncode=1, stdout="", stderr="error: unexpected token '}'")
        with pytest.raises(GenerationError) as excinfo:
            generator.generate(schema)

    assert excinfo.value.schema == str(schema.path)
    assert "unexpected token" in excinfo.value.message


def test_timeout_is_generation_error(schema) -> None:
    generator = CommandCodeGenerator(COMMAND, ARTIFACTS, timeout=1)

    with patch("lumos_drift.core.generator.subprocess.run") as mock_run:
        mock_run.side_effect = subprocess.TimeoutExpired(["lumos"], 1)
        with pytest.raises(GenerationError, match="timed out"):
            generator.generate(schema)


def test_missing_executable_is_collaborator_failure(schema) -> None:
    generator = CommandCodeGenerator(COMMAND, ARTIFACTS)

    with patch("lumos_drift.core.generator.subprocess.run") as mock_run:
        mock_run.side_effect = FileNotFoundError("lumos")
        with pytest.raises(CollaboratorUnavailable, match="executable not found"):
            generator.generate(schema)


def test_generate_with_real_process(schema) -> None:
    script = (
        "import pathlib, sys; out = pathlib.Path(sys.argv[2]); "
        "out.joinpath('generated.rs').write_text('rs'); out.joinpath('generated.ts').write_text('ts')"
    )
    generator = CommandCodeGenerator([sys.executable, "-c", script, "{schema}", "{output_dir}"], ARTIFACTS)

    assert generator.generate(schema) == {Language.RUST: b"rs", Language.TYPESCRIPT: b"ts"}


def test_committed_reader(schema) -> None:
    (schema.directory / "generated.rs").write_bytes(b"pub struct User;\n")
    reader = FileCommittedReader(ARTIFACTS)

    assert reader.read(schema, Language.RUST) == b"pub struct User;\n"
    assert reader.read(schema, Language.TYPESCRIPT) is None


def test_committed_reader_path_template(schema, tmp_path) -> None:
    reader = FileCommittedReader(ARTIFACTS, path_template=str(tmp_path) + "/generated/{schema_name}/{artifact}")

    assert reader.path_for(schema, Language.TYPESCRIPT) == tmp_path / "generated" / "user" / "generated.ts"


def test_committed_reader_directory_is_collaborator_failure(schema) -> None:
    (schema.directory / "generated.ts").mkdir()

    with pytest.raises(CollaboratorUnavailable):
        FileCommittedReader(ARTIFACTS).read(schema, Language.TYPESCRIPT)


def test_committed_reader_relative_template_uses_root(schema, tmp_path, monkeypatch) -> None:
    target = tmp_path / "gen" / "user"
    target.mkdir(parents=True)
    (target / "generated.rs").write_bytes(b"pub struct User;\n")
    elsewhere = tmp_path / "elsewhere"
    elsewhere.mkdir()
    monkeypatch.chdir(elsewhere)

    reader = FileCommittedReader(ARTIFACTS, path_template="gen/{schema_name}/{artifact}", root=tmp_path)

    assert reader.path_for(schema, Language.RUST) == tmp_path.resolve() / "gen" / "user" / "generated.rs"
    assert reader.read(schema, Language.RUST) == b"pub struct User;\n"


def test_generation_error_behaves_like_an_exception() -> None:
    err = GenerationError("schemas/user.lumos", "unexpected token")

    assert err.args == ("schemas/user.lumos: unexpected token",)
    assert str(err) == "schemas/user.lumos: unexpected token"
    assert err.exit_code == 1
    assert {err} == {err}
