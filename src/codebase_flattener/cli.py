"""
flatten: convert a codebase into a single document for an LLM.

Overview
--------
Three commands share one executable:

1) **flatten [DIRECTORY]**: walk the directory, drop excluded paths, read
   code files (optionally stripping comments and whitespace) and write one
   XML, JSON or Markdown document with a directory tree and every file.

2) **flatten tree [DIRECTORY]**: print the directory tree only.

3) **flatten analyze [DIRECTORY]**: print codebase metrics (files per
   language, sizes, largest file, lines of code), optionally as JSON.

The format follows `--format`, else the output suffix (`.json`, `.md`,
anything else is XML). Without `--exclude`, common build and VCS folders
(`node_modules/**`, `.git/**`, `dist/**`, `build/**`, ...) are excluded.
`--preset` adds named groups of patterns on top. A scan summary (file
counts per extension, included and excluded counts) is printed before the
document is written.

Usage
-----
Run `flatten --help`, `flatten tree --help` or `flatten analyze --help`.
Common examples:
    - XML of the current directory:
        flatten . --output codebase.xml

    - Markdown, keeping comments, custom excludes:
        flatten src --format markdown --comments --exclude "**/*.lock" "tests/**"

    - Pick the format and exclude presets at a prompt:
        flatten . --interactive

    - Default excludes plus lock files and test coverage:
        flatten . --preset lock coverage

    - Tree with icons, three levels deep:
        flatten tree . --depth 3 --icons

    - Metrics as JSON:
        flatten analyze . --json
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any

import click
import typer
import yaml
from pydantic import ValidationError

from codebase_flattener import __version__
from codebase_flattener.analyzer import analyze_codebase
from codebase_flattener.config import (
    DIRECTORY_ICON,
    EXCLUDE_PRESET_LABELS,
    EXCLUDE_PRESETS,
    MAX_SCAN_DEPTH,
    OutputFormat,
)
from codebase_flattener.engine import ensure_readable_directory, flatten_directory
from codebase_flattener.exceptions import FlattenerError
from codebase_flattener.logging import logger, setup_logging
from codebase_flattener.scanner import scan_directory
from codebase_flattener.serializers import format_bytes, serialize
from codebase_flattener.settings import Settings
from codebase_flattener.snapshots import default_output_path, write_output
from codebase_flattener.tree import render_tree

if TYPE_CHECKING:
    from collections.abc import Sequence

    from codebase_flattener.config import FlattenerConfig
    from codebase_flattener.models import CodebaseAnalysis, FileStructure

SUBCOMMANDS = ("tree", "analyze")

TOP_FILE_TYPES = 10


def _add_common_arguments(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "directory",
        type=str,
        nargs="?",
        default=".",
        help="Directory to process (default: current directory).",
    )
    p.add_argument("--log-file", type=str, default=None, help="Log file path.")
    p.add_argument("--log-level", type=str, default=None, help="Minimum log level.")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")


def build_flatten_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="flatten",
        description="Convert a codebase to an AI-friendly format (xml/json/markdown).",
        epilog="Sub-commands: 'flatten tree DIR' and 'flatten analyze DIR'.",
    )
    _add_common_arguments(p)
    out = p.add_mutually_exclusive_group()
    out.add_argument(
        "-o",
        "--output",
        type=str,
        default=None,
        help="Output file (default: codebase.<ext>).",
    )
    out.add_argument(
        "--output-dir",
        type=str,
        default=None,
        help="Write a timestamped <ms>-flattened.<ext> file into this directory.",
    )
    p.add_argument(
        "-f",
        "--format",
        type=str,
        choices=["xml", "json", "markdown", "md"],
        default="",
        help="Force format (default: from the output suffix, else xml).",
    )
    p.add_argument(
        "--include",
        nargs="+",
        action="extend",
        default=[],
        help="Include patterns (accepted, no filtering effect).",
    )
    p.add_argument(
        "--exclude",
        nargs="+",
        action="extend",
        default=None,
        help="Exclude patterns, replacing the defaults.",
    )
    p.add_argument(
        "--preset",
        nargs="+",
        action="extend",
        choices=list(EXCLUDE_PRESETS),
        default=[],
        metavar="NAME",
        help=f"Add a named group of exclude patterns ({', '.join(EXCLUDE_PRESETS)}).",
    )
    p.add_argument(
        "-i",
        "--interactive",
        action="store_true",
        help="Choose the format, exclude presets, comments and minify interactively.",
    )
    p.add_argument("--comments", action="store_true", help="Keep comments in file contents.")
    p.add_argument("--minify", action="store_true", help="Minify file contents.")
    p.add_argument(
        "--tree-only",
        action="store_true",
        help="Record files without their contents.",
    )
    p.add_argument(
        "--depth",
        type=int,
        default=MAX_SCAN_DEPTH,
        help="Depth of the embedded directory tree.",
    )
    p.add_argument(
        "--config",
        type=str,
        default=None,
        help="YAML or JSON file whose keys override the options above.",
    )
    p.add_argument("--name", type=str, default=None, help="Name of the saved output.")
    p.add_argument("--description", type=str, default=None, help="Description of the saved output.")
    p.add_argument("--project-id", type=str, default=None, help="Project owning the saved output.")
    return p


def build_tree_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="flatten tree", description="Generate the directory tree only.")
    _add_common_arguments(p)
    p.add_argument("-d", "--depth", type=int, default=MAX_SCAN_DEPTH, help="Maximum depth.")
    p.add_argument("--icons", action="store_true", help="Include file type icons.")
    return p


def build_analyze_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="flatten analyze", description="Analyze a codebase without flattening.")
    _add_common_arguments(p)
    p.add_argument("--json", dest="as_json", action="store_true", help="Output as JSON.")
    return p


def parse_args(argv: Sequence[str] | None = None) -> Settings:
    """Parse a command line into `Settings`.

    The first argument selects the sub-command when it is `tree` or
    `analyze`; anything else is a plain flatten.

    Args:
        argv (Sequence[str] | None): arguments without the program name;
            defaults to `sys.argv[1:]`

    Raises:
        SystemExit: with status 2 when an argument is missing or invalid.

    Returns:
        Settings: the validated settings
    """
    args = list(sys.argv[1:] if argv is None else argv)
    command = "flatten"
    parser = build_flatten_parser()
    if args and args[0] in SUBCOMMANDS:
        command = args.pop(0)
        parser = build_tree_parser() if command == "tree" else build_analyze_parser()
    values = {k: v for k, v in vars(parser.parse_args(args)).items() if v is not None}
    try:
        return Settings(command=command, **values)
    except ValidationError as e:
        parser.error(str(e))


def load_config_overrides(config: FlattenerConfig, path: Path) -> FlattenerConfig:
    """Apply the overrides of a YAML or JSON file to `config`.

    A file that cannot be read, parsed or validated is reported as a warning
    and `config` is returned unchanged.

    Args:
        config (FlattenerConfig): the configuration built from the command line
        path (Path): the overrides file

    Returns:
        FlattenerConfig: the merged configuration
    """
    try:
        data: Any = yaml.safe_load(path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            msg = f"expected a mapping, got {type(data).__name__}"
            raise TypeError(msg)
        merged = config.with_overrides(data)
    except (OSError, yaml.YAMLError, TypeError, ValidationError) as e:
        logger.warning("config_file_ignored", path=str(path), reason=str(e))
        sys.stderr.write(f"Warning: could not load config file {path}: {e}\n")
        return config
    logger.info("config_file_loaded", path=str(path))
    return merged


def print_analysis(analysis: CodebaseAnalysis) -> None:
    print("Codebase Analysis")
    print()
    print("Structure:")
    print(f"  Files: {analysis.files.total}")
    print(f"  Directories: {analysis.directories}")
    print(f"  Size: {format_bytes(analysis.total_size)}")
    print()

    print("File Types:")
    ranked = sorted(analysis.file_types.items(), key=lambda item: item[1], reverse=True)
    for ext, count in ranked[:TOP_FILE_TYPES]:
        share = count / analysis.files.total * 100 if analysis.files.total else 0.0
        print(f"  {ext}: {count} files ({share:.1f}%)")
    print()

    print("Code Metrics:")
    print(f"  Lines of code: {analysis.lines_of_code}")
    print(f"  Average file size: {format_bytes(analysis.average_file_size)}")
    print(f"  Largest file: {analysis.largest_file.name} ({format_bytes(analysis.largest_file.size)})")

    if analysis.languages:
        print()
        print("Languages:")
        for lang in analysis.languages:
            print(f"  {lang.name}: {lang.percentage}%")


def print_scan_summary(structure: FileStructure) -> None:
    print(f"Found {structure.total_files} files in {structure.total_directories} directories")
    print()
    print("File Statistics:")
    ranked = sorted(structure.file_types.items(), key=lambda item: item[1], reverse=True)
    for ext, count in ranked[:TOP_FILE_TYPES]:
        print(f"  {ext}: {count} files")
    print(f"  Total size: {format_bytes(structure.total_size)}")
    print()
    print(f"{structure.total_files} files will be included")
    print(f"{len(structure.excluded_files)} paths will be excluded")
    print()


def prompt_config(config: FlattenerConfig) -> FlattenerConfig:
    """Ask for the format, exclude presets, comments and minify.

    The chosen presets replace the exclude patterns of `config`; every
    preset is offered checked.

    Args:
        config (FlattenerConfig): the configuration built so far, used for defaults

    Returns:
        FlattenerConfig: the configuration with the answers applied
    """
    print("Interactive Mode")
    print()
    output_format = typer.prompt(
        "Choose output format",
        default=config.output_format.value,
        type=click.Choice([f.value for f in OutputFormat]),
    )
    patterns: list[str] = []
    for name, label in EXCLUDE_PRESET_LABELS.items():
        if typer.confirm(f"Exclude {label}?", default=True):
            patterns.extend(EXCLUDE_PRESETS[name])
    include_comments = typer.confirm("Include code comments?", default=config.include_comments)
    minify_output = typer.confirm("Minify output (remove extra whitespace)?", default=config.minify_output)
    print()
    return config.with_overrides({
        "output_format": output_format,
        "exclude_patterns": tuple(dict.fromkeys(patterns)),
        "include_comments": include_comments,
        "minify_output": minify_output,
    })


def run_flatten(settings: Settings) -> int:
    root = ensure_readable_directory(settings.directory)
    config = settings.flattener_config()
    if settings.config is not None:
        config = load_config_overrides(config, settings.config)
    if settings.interactive:
        config = prompt_config(config)

    print_scan_summary(scan_directory(root, config))
    if settings.interactive and not typer.confirm("Proceed with flattening?", default=True):
        print("Operation cancelled")
        return 0

    processed = 0

    def on_progress(path: Path) -> None:
        nonlocal processed
        processed += 1
        logger.debug("file_processed", path=str(path), count=processed)

    result = flatten_directory(root, config, on_progress, tree_depth=settings.depth)
    content = serialize(result, config.output_format)

    if settings.output_dir is not None:
        out_path = default_output_path(settings.output_dir, config.output_format)
    else:
        out_path = settings.output_path(config.output_format)
    record = write_output(
        content,
        out_path,
        output_format=config.output_format,
        name=settings.name,
        description=settings.description,
        project_id=settings.project_id,
    )

    if result.skipped:
        print(f"Skipped {len(result.skipped)} unreadable entries (see log)")
    print(
        f"Wrote {record.file_path} format={config.output_format.value} "
        f"files={result.metadata.total_files} size={format_bytes(record.size)}",
    )
    return 0


def run_tree(settings: Settings) -> int:
    root = ensure_readable_directory(settings.directory)
    tree = render_tree(root, max_depth=settings.depth, include_icons=settings.icons)
    print(f"{DIRECTORY_ICON}{root.name}/")
    if tree:
        print(tree)
    return 0


def run_analyze(settings: Settings) -> int:
    analysis = analyze_codebase(settings.directory)
    if settings.as_json:
        print(analysis.model_dump_json(by_alias=True, indent=2))
    else:
        print_analysis(analysis)
    return 0


COMMANDS = {
    "flatten": run_flatten,
    "tree": run_tree,
    "analyze": run_analyze,
}


def main(argv: Sequence[str] | None = None) -> int:
    settings = parse_args(argv)
    if settings.log_file or settings.log_level.upper() != "INFO":
        setup_logging(settings.log_file or None, settings.log_level, force=True)

    try:
        return COMMANDS[settings.command](settings)
    except FlattenerError as e:
        logger.error("command_failed", command=settings.command, error=str(e))
        sys.stderr.write(f"Error: {e}\n")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
