from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING

import pytest

from codebase_flattener import __version__, cli
from codebase_flattener.config import (
    DEFAULT_EXCLUDE_PATTERNS,
    EXCLUDE_PRESET_LABELS,
    FlattenerConfig,
    OutputFormat,
)
from codebase_flattener.models import CodebaseAnalysis, FileCounts, LanguageShare, LargestFile

if TYPE_CHECKING:
    from pytest_mock import MockerFixture


@pytest.mark.unit
def test_parse_args_flatten_options() -> None:
    settings = cli.parse_args(
        [
            "src",
            "--output",
            "out.md",
            "--exclude",
            "dist/**",
            "*.lock",
            "--exclude",
            "tmp",
            "--minify",
            "--depth",
            "3",
        ],
    )

    assert settings.command == "flatten"
    assert settings.directory == Path("src")
    assert settings.output == Path("out.md")
    assert settings.exclude == ["dist/**", "*.lock", "tmp"]
    assert settings.minify is True
    assert settings.depth == 3  # noqa: PLR2004
    assert settings.output_format() == OutputFormat.MARKDOWN


@pytest.mark.unit
def test_parse_args_without_exclude_keeps_defaults() -> None:
    settings = cli.parse_args([])

    assert settings.exclude is None
    assert settings.directory == Path()


@pytest.mark.unit
def test_parse_args_tree_subcommand() -> None:
    settings = cli.parse_args(["tree", "project", "-d", "2", "--icons"])

    assert settings.command == "tree"
    assert settings.directory == Path("project")
    assert settings.depth == 2  # noqa: PLR2004
    assert settings.icons is True


@pytest.mark.unit
def test_parse_args_analyze_subcommand() -> None:
    settings = cli.parse_args(["analyze", "--json"])

    assert settings.command == "analyze"
    assert settings.as_json is True


@pytest.mark.unit
def test_parse_args_rejects_unknown_format() -> None:
    with pytest.raises(SystemExit) as exc_info:
        cli.parse_args(["--format", "pdf"])

    assert exc_info.value.code == 2  # noqa: PLR2004


@pytest.mark.unit
def test_parse_args_version_flag(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as exc_info:
        cli.parse_args(["--version"])

    assert exc_info.value.code == 0
    assert __version__ in capsys.readouterr().out


@pytest.mark.unit
def test_load_config_overrides_from_yaml(tmp_path: Path) -> None:
    config_file = tmp_path / "flatten.yaml"
    config_file.write_text("minifyOutput: true\noutputFormat: json\nexcludePatterns:\n  - '*.lock'\n", encoding="utf-8")

    merged = cli.load_config_overrides(FlattenerConfig(), config_file)

    assert merged.minify_output is True
    assert merged.output_format == OutputFormat.JSON
    assert merged.exclude_patterns == ("*.lock",)


@pytest.mark.unit
def test_load_config_overrides_reads_json_files(tmp_path: Path) -> None:
    config_file = tmp_path / "flatten.json"
    config_file.write_text(json.dumps({"treeOnly": True}), encoding="utf-8")

    assert cli.load_config_overrides(FlattenerConfig(), config_file).tree_only is True


@pytest.mark.unit
@pytest.mark.parametrize("text", ["- just\n- a list\n", "outputFormat: pdf\n", "key: [unclosed\n"])
def test_load_config_overrides_ignores_bad_files(
    tmp_path: Path,
    text: str,
    capsys: pytest.CaptureFixture[str],
) -> None:
    config_file = tmp_path / "flatten.yaml"
    config_file.write_text(text, encoding="utf-8")
    config = FlattenerConfig()

    assert cli.load_config_overrides(config, config_file) is config
    assert "could not load config file" in capsys.readouterr().err


@pytest.mark.unit
def test_main_missing_directory_returns_error(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    exit_code = cli.main([str(tmp_path / "missing"), "--output", str(tmp_path / "out.xml")])

    assert exit_code == 1
    assert "Error: Directory not found." in capsys.readouterr().err
    assert not (tmp_path / "out.xml").exists()


@pytest.mark.unit
def test_main_tree_missing_directory_returns_error(tmp_path: Path) -> None:
    assert cli.main(["tree", str(tmp_path / "missing")]) == 1


@pytest.mark.unit
def test_main_passes_depth_and_progress_to_the_engine(tmp_path: Path, mocker: MockerFixture) -> None:
    (tmp_path / "app.py").write_text("print('hi')\n", encoding="utf-8")
    spy = mocker.spy(cli, "flatten_directory")
    output = tmp_path / "out.xml"

    exit_code = cli.main([str(tmp_path), "--output", str(output), "--depth", "1"])

    assert exit_code == 0
    _, kwargs = spy.call_args
    assert kwargs["tree_depth"] == 1
    assert callable(spy.call_args.args[2])


@pytest.mark.unit
def test_main_config_format_decides_default_output_name(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    project = tmp_path / "project"
    project.mkdir()
    (project / "app.py").write_text("x = 1\n", encoding="utf-8")
    config_file = tmp_path / "flatten.yaml"
    config_file.write_text("outputFormat: json\n", encoding="utf-8")
    monkeypatch.chdir(tmp_path)

    exit_code = cli.main([str(project), "--config", str(config_file)])

    assert exit_code == 0
    data = json.loads((tmp_path / "codebase.json").read_text(encoding="utf-8"))
    assert data["metadata"]["config"]["outputFormat"] == "json"


@pytest.mark.unit
def test_main_output_dir_writes_timestamped_file(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    project = tmp_path / "project"
    project.mkdir()
    (project / "main.go").write_text("package main\n", encoding="utf-8")

    exit_code = cli.main([str(project), "--output-dir", str(tmp_path / "outputs"), "--format", "md"])

    assert exit_code == 0
    written = list((tmp_path / "outputs").iterdir())
    assert len(written) == 1
    assert written[0].name.endswith("-flattened.md")
    assert "format=markdown files=1" in capsys.readouterr().out


@pytest.mark.unit
def test_main_analyze_prints_report(
    tmp_path: Path,
    mocker: MockerFixture,
    capsys: pytest.CaptureFixture[str],
) -> None:
    analysis = CodebaseAnalysis(
        files=FileCounts(total=4, by_language={"Python": 3, "Unknown": 1}),
        directories=2,
        total_size=4096,
        average_file_size=1024.0,
        largest_file=LargestFile(name="big.py", size=2048),
        file_types={"py": 3, "no-extension": 1},
        languages=[
            LanguageShare(name="Python", files=3, percentage=75),
            LanguageShare(name="Unknown", files=1, percentage=25),
        ],
        lines_of_code=120,
    )
    mocker.patch.object(cli, "analyze_codebase", return_value=analysis)

    exit_code = cli.main(["analyze", str(tmp_path)])

    out = capsys.readouterr().out
    assert exit_code == 0
    assert "  Files: 4\n" in out
    assert "  Size: 4 KB\n" in out
    assert "  py: 3 files (75.0%)\n" in out
    assert "  Lines of code: 120\n" in out
    assert "  Largest file: big.py (2 KB)\n" in out
    assert "  Python: 75%\n" in out


@pytest.mark.unit
def test_parse_args_negative_tree_depth_exits_with_usage_error(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.parse_args(["tree", ".", "-d", "-1"])

    assert excinfo.value.code == 2  # noqa: PLR2004
    assert "depth" in capsys.readouterr().err


@pytest.mark.unit
def test_main_negative_flatten_depth_exits_with_usage_error(tmp_path: Path) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main([str(tmp_path), "--depth", "-3"])

    assert excinfo.value.code == 2  # noqa: PLR2004


@pytest.mark.unit
def test_parse_args_presets_extend_the_default_excludes() -> None:
    settings = cli.parse_args([".", "--preset", "lock", "--preset", "coverage"])

    assert settings.preset == ["lock", "coverage"]
    assert settings.flattener_config().exclude_patterns == (
        *DEFAULT_EXCLUDE_PATTERNS,
        "*.lock",
        "**/*.lock",
        "coverage/**",
    )


@pytest.mark.unit
def test_parse_args_unknown_preset_exits_with_usage_error() -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.parse_args([".", "--preset", "vendor"])

    assert excinfo.value.code == 2  # noqa: PLR2004


@pytest.mark.unit
def test_main_prints_scan_summary_before_writing(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    project = tmp_path / "project"
    (project / "node_modules").mkdir(parents=True)
    (project / "node_modules" / "dep.js").write_text("x\n", encoding="utf-8")
    (project / "a.py").write_text("a = 1\n", encoding="utf-8")
    (project / "b.py").write_text("b = 2\n", encoding="utf-8")
    (project / "notes.md").write_text("# notes\n", encoding="utf-8")

    exit_code = cli.main([str(project), "--output", str(tmp_path / "out.xml")])

    out = capsys.readouterr().out
    assert exit_code == 0
    assert "Found 3 files in 1 directories\n" in out
    assert "File Statistics:\n  py: 2 files\n  md: 1 files\n" in out
    assert "3 files will be included\n" in out
    assert "1 paths will be excluded\n" in out
    assert out.index("File Statistics:") < out.index("Wrote ")


def _interactive_project(root: Path) -> None:
    (root / "node_modules").mkdir(parents=True)
    (root / "node_modules" / "x.js").write_text("module.exports = 1;\n", encoding="utf-8")
    (root / "app.py").write_text("x = 1  # one\n", encoding="utf-8")
    (root / "yarn.lock").write_text("lock\n", encoding="utf-8")
    (root / "debug.log").write_text("trace\n", encoding="utf-8")


@pytest.mark.unit
def test_main_interactive_applies_the_answers(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    mocker: MockerFixture,
    capsys: pytest.CaptureFixture[str],
) -> None:
    project = tmp_path / "project"
    _interactive_project(project)
    monkeypatch.chdir(tmp_path)
    prompt = mocker.patch.object(cli.typer, "prompt", return_value="json")
    presets = [name != "logs" for name in EXCLUDE_PRESET_LABELS]
    # presets, then comments, minify and proceed
    confirm = mocker.patch.object(cli.typer, "confirm", side_effect=[*presets, True, False, True])

    exit_code = cli.main([str(project), "--interactive"])

    assert exit_code == 0
    assert prompt.call_args.kwargs["default"] == "xml"
    assert confirm.call_count == len(EXCLUDE_PRESET_LABELS) + 3
    data = json.loads((tmp_path / "codebase.json").read_text(encoding="utf-8"))
    assert [f["relativePath"] for f in data["files"]] == ["app.py", "debug.log"]
    assert data["metadata"]["config"]["includeComments"] is True
    assert "*.lock" in data["metadata"]["config"]["excludePatterns"]
    assert "*.log" not in data["metadata"]["config"]["excludePatterns"]
    assert "Interactive Mode" in capsys.readouterr().out


@pytest.mark.unit
def test_main_interactive_cancel_writes_nothing(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    mocker: MockerFixture,
    capsys: pytest.CaptureFixture[str],
) -> None:
    project = tmp_path / "project"
    _interactive_project(project)
    monkeypatch.chdir(tmp_path)
    mocker.patch.object(cli.typer, "prompt", return_value="xml")
    answers = [True] * len(EXCLUDE_PRESET_LABELS) + [False, False, False]
    mocker.patch.object(cli.typer, "confirm", side_effect=answers)
    spy = mocker.spy(cli, "flatten_directory")

    exit_code = cli.main([str(project), "-i"])

    assert exit_code == 0
    assert "Operation cancelled" in capsys.readouterr().out
    assert not (tmp_path / "codebase.xml").exists()
    spy.assert_not_called()
