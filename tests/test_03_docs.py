"""Pytest-based JSDoc parsing and KDoc rendering tests."""

from tykon.backend.docs import NO_DESCRIPTION, doc_lines, docs_lines, render_doc
from tykon.frontend.docs import is_jsdoc, parse_jsdoc
from tykon.model import Doc, DocTag


def test_is_jsdoc() -> None:
    assert is_jsdoc("/** text */")
    assert not is_jsdoc("/* text */")
    assert not is_jsdoc("/**/")
    assert not is_jsdoc("// text")


def test_parse_description_and_tags() -> None:
    doc = parse_jsdoc(
        """/**
         * Adds two numbers.
         *
         * Works on floats too.
         * @param {number} a first operand
         * @param b second operand
         *   spanning two lines
         * @returns {number} the sum
         */"""
    )
    assert doc.description == "Adds two numbers.\n\nWorks on floats too."
    assert [t.name for t in doc.tags] == ["param", "param", "returns"]
    assert doc.tags[0].text == "a first operand"
    assert doc.tags[1].text == "b second operand\n  spanning two lines"
    assert doc.tags[2].text == "the sum"


def test_parse_single_line() -> None:
    doc = parse_jsdoc("/** Just a line. */")
    assert doc.description == "Just a line."
    assert doc.tags == []


def test_parse_bare_tag() -> None:
    doc = parse_jsdoc("/**\n * @deprecated\n */")
    assert doc.description == ""
    assert doc.tags == [DocTag("deprecated", "")]


def test_doc_lines_renames_tags() -> None:
    doc = Doc(
        description="Hello.",
        tags=[DocTag("returns", "the value"), DocTag("arg", "x thing"), DocTag("exception", "boom")],
    )
    assert doc_lines(doc) == [
        "/**",
        " * Hello.",
        " * @return the value",
        " * @param x thing",
        " * @throws boom",
        " */",
    ]


def test_doc_lines_empty_tag_text() -> None:
    lines = doc_lines(Doc(tags=[DocTag("deprecated", "")]))
    assert lines == ["/**", " * @deprecated " + NO_DESCRIPTION, " */"]


def test_doc_lines_multiline() -> None:
    doc = Doc(description="First.\n\nSecond.", tags=[DocTag("example", "a()\nb()")])
    assert doc_lines(doc) == [
        "/**",
        " * First.",
        " *",
        " * Second.",
        " * @example a()",
        " * b()",
        " */",
    ]


def test_comment_terminator_is_escaped() -> None:
    lines = doc_lines(Doc(description="glob **/*.ts"))
    assert "*/" not in "".join(lines[1:-1])


def test_docs_lines_separates_blocks() -> None:
    lines = docs_lines([Doc(description="One."), Doc(description="Two.")])
    assert lines == ["/**", " * One.", " */", "", "/**", " * Two.", " */"]


def test_render_doc() -> None:
    assert render_doc([]) == ""
    text = render_doc([Doc(description="Hi.")], "\r\n", "    ")
    assert text == "    /**\r\n     * Hi.\r\n     */\r\n"
