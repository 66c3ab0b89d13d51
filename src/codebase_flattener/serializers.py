"""Render a `FlattenResult` as XML, JSON or Markdown.

Each renderer is a pure function of the result. In the XML output every value
placed outside a CDATA section goes through `escape_xml`, while the directory
tree and file contents are wrapped in CDATA unescaped. A file content holding
a literal `]]>` therefore ends the CDATA section early and makes the document
malformed; such content is not split or escaped.

Characters XML 1.0 cannot carry at all (control characters other than tab,
newline and carriage return, such as a form feed) are dropped from every XML
value, CDATA included. JSON and Markdown keep them.
"""

from __future__ import annotations

import io
import re
from typing import TYPE_CHECKING

from codebase_flattener.config import OutputFormat
from codebase_flattener.exceptions import UnsupportedFormatError

if TYPE_CHECKING:
    from collections.abc import Callable

    from codebase_flattener.models import FlattenResult

    SerializerFn = Callable[[FlattenResult], str]

_XML_ESCAPES = (
    ("&", "&amp;"),
    ("<", "&lt;"),
    (">", "&gt;"),
    ('"', "&quot;"),
    ("'", "&apos;"),
)

_NON_XML_CHARS = re.compile("[^\t\n\r\x20-\ud7ff\ue000-\ufffd\U00010000-\U0010ffff]")

_BYTE_UNITS = ("Bytes", "KB", "MB", "GB")

SERIALIZERS: dict[OutputFormat, SerializerFn] = {}


def register_serializer(output_format: OutputFormat) -> Callable[[SerializerFn], SerializerFn]:
    """Decorator to register the renderer of an output format.

    Args:
        output_format (OutputFormat): the format handled by the decorated function

    Returns:
        Callable[[SerializerFn], SerializerFn]: a decorator storing the function in
            `SERIALIZERS` and returning it unchanged
    """

    def decorator(func: SerializerFn) -> SerializerFn:
        SERIALIZERS[output_format] = func
        return func

    return decorator


def xml_chars(text: str) -> str:
    """Drop the characters outside the XML 1.0 `Char` production."""
    return _NON_XML_CHARS.sub("", text)


def escape_xml(text: str) -> str:
    """Escape the five XML special characters, `&` first."""
    text = xml_chars(text)
    for char, entity in _XML_ESCAPES:
        text = text.replace(char, entity)
    return text


def format_bytes(size: float) -> str:
    """Format a byte count for humans.

    Args:
        size (float): number of bytes

    Returns:
        str: e.g. "0 Bytes", "512 Bytes", "1.5 KB", "2 MB"; at most two
            decimals, trailing zeros dropped
    """
    if size <= 0:
        return "0 Bytes"
    exponent = 0
    while size >= 1024 ** (exponent + 1) and exponent < len(_BYTE_UNITS) - 1:
        exponent += 1
    value = round(size / 1024**exponent, 2)
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return f"{text} {_BYTE_UNITS[exponent]}"


@register_serializer(OutputFormat.XML)
def to_xml(result: FlattenResult) -> str:
    out = io.StringIO()
    out.write('<?xml version="1.0" encoding="UTF-8"?>\n')
    out.write("<codebase>\n")
    out.write("  <metadata>\n")
    out.write(f"    <processedAt>{escape_xml(result.metadata.processed_at)}</processedAt>\n")
    out.write(f"    <totalFiles>{result.metadata.total_files}</totalFiles>\n")
    out.write(f"    <totalSize>{result.metadata.total_size}</totalSize>\n")
    out.write("  </metadata>\n")

    out.write("  <directoryTree>\n")
    out.write(f"    <![CDATA[{xml_chars(result.directory_tree)}]]>\n")
    out.write("  </directoryTree>\n")

    out.write("  <files>\n")
    for file in result.files:
        out.write("    <file>\n")
        out.write(f"      <path>{escape_xml(file.relative_path)}</path>\n")
        out.write(f"      <language>{escape_xml(file.language)}</language>\n")
        out.write(f"      <size>{file.size}</size>\n")
        out.write(f"      <lines>{file.line_count}</lines>\n")
        if file.content:
            out.write(f"      <content><![CDATA[{xml_chars(file.content)}]]></content>\n")
        out.write("    </file>\n")
    out.write("  </files>\n")
    out.write("</codebase>")
    return out.getvalue()


@register_serializer(OutputFormat.JSON)
def to_json(result: FlattenResult) -> str:
    """Dump the whole result, camelCase keys, two-space indentation."""
    return result.model_dump_json(by_alias=True, indent=2)


@register_serializer(OutputFormat.MARKDOWN)
def to_markdown(result: FlattenResult) -> str:
    out = io.StringIO()
    out.write("# Codebase Flattened Output\n\n")

    out.write("## Metadata\n\n")
    out.write(f"- **Processed At**: {result.metadata.processed_at}\n")
    out.write(f"- **Total Files**: {result.metadata.total_files}\n")
    out.write(f"- **Total Size**: {format_bytes(result.metadata.total_size)}\n\n")

    out.write("## Directory Structure\n\n")
    out.write("```\n")
    out.write(result.directory_tree)
    out.write("\n```\n\n")

    out.write("## Files\n\n")
    for file in result.files:
        out.write(f"### {file.relative_path}\n\n")
        out.write(f"- **Language**: {file.language}\n")
        out.write(f"- **Size**: {format_bytes(file.size)}\n")
        out.write(f"- **Lines**: {file.line_count}\n\n")
        if file.content:
            out.write(f"```{file.language.lower()}\n")
            out.write(file.content)
            out.write("\n```\n\n")
    return out.getvalue()


def serialize(result: FlattenResult, output_format: OutputFormat | str) -> str:
    """Render `result` in the requested format.

    Args:
        result (FlattenResult): the flatten run to render
        output_format (OutputFormat | str): "xml", "json" or "markdown"

    Raises:
        UnsupportedFormatError: if no renderer is registered for the format.

    Returns:
        str: the serialized document
    """
    try:
        key = OutputFormat(str(output_format).lower())
    except ValueError:
        raise UnsupportedFormatError(output_format=str(output_format)) from None
    renderer = SERIALIZERS.get(key)
    if renderer is None:
        raise UnsupportedFormatError(output_format=key.value)
    return renderer(result)
