"""Tests for comment and whitespace stripping."""

from aerossr.bundling.minify import minify_js


class TestMinify:
    def test_collapses_whitespace(self) -> None:
        assert minify_js("var  a =  1;\n\n\nvar b\t= 2;") == "var a = 1;\nvar b = 2;"

    def test_strips_comments(self) -> None:
        code = "var a = 1; // note\nvar b = 2; /* block */ var c;"
        assert minify_js(code) == "var a = 1;\nvar b = 2; var c;"

    def test_block_comment_with_line_break_keeps_one_newline(self) -> None:
        assert minify_js("a /* multi\nline */ b") == "a\nb"

    def test_trims_ends(self) -> None:
        assert minify_js("\n\n  x  \n") == "x"

    def test_string_contents_are_preserved(self) -> None:
        code = 'var s = "a  //  b";   var t = `x\n\n  /* y */`;'
        assert minify_js(code) == 'var s = "a  //  b"; var t = `x\n\n  /* y */`;'

    def test_escaped_quotes(self) -> None:
        code = "var s = 'it\\'s   fine';  // done"
        assert minify_js(code) == "var s = 'it\\'s   fine';"

    def test_nested_template_literal(self) -> None:
        code = "var s = `${ `a    b` }  c`;   var t = `${ {k: '}'}.k }`;"
        assert minify_js(code) == "var s = `${ `a    b` }  c`; var t = `${ {k: '}'}.k }`;"

    def test_empty(self) -> None:
        assert minify_js("") == ""
