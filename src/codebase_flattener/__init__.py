"""Flatten a codebase into one XML, JSON or Markdown document, and measure it."""

from codebase_flattener.analyzer import analyze_codebase
from codebase_flattener.config import FlattenerConfig, OutputFormat
from codebase_flattener.engine import flatten_directory
from codebase_flattener.models import CodebaseAnalysis, FileStructure, FlattenResult, ProcessedFile
from codebase_flattener.path_filter import should_exclude
from codebase_flattener.scanner import scan_directory
from codebase_flattener.serializers import serialize
from codebase_flattener.tree import render_tree

__version__ = "0.1.0"

__all__ = [
    "CodebaseAnalysis",
    "FileStructure",
    "FlattenResult",
    "FlattenerConfig",
    "OutputFormat",
    "ProcessedFile",
    "__version__",
    "analyze_codebase",
    "flatten_directory",
    "render_tree",
    "scan_directory",
    "serialize",
    "should_exclude",
]
