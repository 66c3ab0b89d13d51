import re

import pytest
from pytest_mock import MockerFixture

from codebase_flattener import transform
from codebase_flattener.config import FlattenerConfig
from codebase_flattener.transform import (
    minify,
    register_comment_patterns,
    should_read_content,
    strip_comments,
    transform_content,
    transform_file_content,
)


@pytest.mark.unit
def test_strip_comments_removes_c_style_comments() -> None:
    source = "const a = 1; // note\n/* block\n comment */const b = 2;"

    assert strip_comments(source, "ts") == "const a = 1; \nconst b = 2;"


@pytest.mark.unit
def test_strip_comments_handles_hash_and_markup_comments() -> None:
    assert strip_comments("x = 1  # set x\ny = 2", "py") == "x = 1  \ny = 2"
    assert strip_comments("<p>a</p><!-- gone -->", "html") == "<p>a</p>"
    assert strip_comments("a { color: red; } /* c */", "css") == "a { color: red; } "


@pytest.mark.unit
def test_strip_comments_is_lexical_inside_string_literals() -> None:
    assert strip_comments('const u = "http://x";', "js") == 'const u = "http:'


@pytest.mark.unit
def test_strip_comments_leaves_unknown_extensions_untouched() -> None:
    source = "-- not a comment for us\n# nor this"

    assert strip_comments(source, "txt") == source


@pytest.mark.unit
def test_register_comment_patterns_extends_the_table(mocker: MockerFixture) -> None:
    mocker.patch.dict(transform.COMMENT_PATTERNS)
    register_comment_patterns(["SQL", "psql"], [re.compile(r"--.*$", re.MULTILINE)])

    assert strip_comments("select 1; -- one", "sql") == "select 1; "
    assert "psql" in transform.COMMENT_PATTERNS


@pytest.mark.unit
def test_minify_collapses_blank_runs_and_indentation() -> None:
    assert minify("a;\n\n\n\nb;") == "a;\n\nb;"
    assert minify("  a\n\tb  ") == "a\nb"
    assert minify("a\n\nb") == "a\n\nb"


@pytest.mark.unit
def test_transform_strips_comments_before_minifying() -> None:
    config = FlattenerConfig(include_comments=False, minify_output=True)

    assert transform_content("  x = 1 # c\n\n\n\n  y = 2\n", "py", config) == "x = 1\n\ny = 2\n"


@pytest.mark.unit
def test_transform_with_defaults_returns_content_unchanged() -> None:
    content = "// keep me\nconst a = 1;\r\n"

    assert transform_file_content("app.js", content, FlattenerConfig()) == content


@pytest.mark.unit
def test_should_read_content_only_for_code_files_outside_tree_only() -> None:
    assert should_read_content("main.py", FlattenerConfig())
    assert not should_read_content("notes.txt", FlattenerConfig())
    assert not should_read_content("main.py", FlattenerConfig(tree_only=True))


@pytest.mark.unit
def test_comment_table_argument_leaves_the_shared_table_alone() -> None:
    shared = dict(transform.COMMENT_PATTERNS)
    sql_only = {"sql": (re.compile(r"--.*$", re.MULTILINE),)}
    config = FlattenerConfig(include_comments=False)

    assert transform_file_content("q.sql", "select 1; -- one", config, sql_only) == "select 1; "
    assert transform_file_content("app.py", "x = 1  # one", config, sql_only) == "x = 1  # one"
    assert strip_comments("select 1; -- one", "sql") == "select 1; -- one"
    assert transform.COMMENT_PATTERNS == shared
