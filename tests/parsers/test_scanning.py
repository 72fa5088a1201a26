"""Tests for the bracket- and string-aware argument scanner."""

from __future__ import annotations

import pytest

from hookindex.parsers.scanning import JS_DIALECT, PHP_DIALECT, ArgumentScanner, ExtractionError

php = ArgumentScanner(PHP_DIALECT)
js = ArgumentScanner(JS_DIALECT)


def _span(scanner: ArgumentScanner, text: str) -> str | None:
    return scanner.extract_span(text, text.index("(") + 1)


def test_extract_span_ignores_brackets_inside_strings() -> None:
    text = "do_action( 'a)b', array( 1, 2 ) ); $rest = 1;"
    assert _span(php, text) == " 'a)b', array( 1, 2 ) "


def test_extract_span_steps_over_comments() -> None:
    text = "do_action( 'a' /* ) */ , $b );"
    span = _span(php, text)
    assert span == " 'a' /* ) */ , $b "
    assert php.split_arguments(span) == ["'a'", "$b"]


def test_extract_span_returns_none_when_unbalanced() -> None:
    assert _span(php, "do_action( 'x', $y") is None


def test_extract_span_respects_scan_limit() -> None:
    scanner = ArgumentScanner(PHP_DIALECT, scan_limit=10)
    text = "f(" + "a" * 50 + ")"
    assert _span(scanner, text) is None
    assert _span(php, text) == "a" * 50


def test_php_attribute_is_not_a_comment() -> None:
    text = "f( #[Attr] 'x' )"
    assert _span(php, text) == " #[Attr] 'x' "


def test_skip_string_handles_interpolated_braces() -> None:
    text = '"a {$b["}"]} c"'
    assert php.skip_string(text, 0) == len(text) - 1


def test_deeply_nested_template_literals_do_not_raise() -> None:
    unbalanced = "addAction( `" + "${`" * 700 + "`, 'ns', cb );"
    assert _span(js, unbalanced) is None

    nested = "`" + "${`" * 700 + "x" + "`}" * 700 + "`"
    assert js.skip_string(nested, 0) == len(nested) - 1
    assert _span(js, "addAction( " + nested + " );") == " " + nested + " "


def test_split_arguments_respects_nesting() -> None:
    assert php.split_arguments("'a', array( 'x', 'y' ), $c") == ["'a'", "array( 'x', 'y' )", "$c"]
    assert php.split_arguments("   ") == []


def test_split_top_level_rejects_broken_input() -> None:
    with pytest.raises(ExtractionError):
        php.split_top_level("'abc", ",")
    with pytest.raises(ExtractionError):
        php.split_top_level("a )", ",")


@pytest.mark.parametrize(
    ("expression", "expected"),
    [
        ("'init'", ("init", False)),
        ("'foo_' . $bar", ("foo_{dynamic}", True)),
        ('"foo_" . $bar', ("foo_{dynamic}", True)),
        ("'pre_' . $name . '_suffix'", ("pre_{dynamic}_suffix", True)),
        ('"save_post_{$post->post_type}"', ("save_post_{dynamic}", True)),
        ('"pre_option_$option"', ("pre_option_{dynamic}", True)),
        ("'no_$interpolation'", ("no_$interpolation", False)),
        ("sprintf( 'x_%s', $y )", ("{dynamic}", True)),
    ],
)
def test_classify_php_names(expression: str, expected: tuple) -> None:
    assert php.classify_name(expression) == expected


@pytest.mark.parametrize(
    ("expression", "expected"),
    [
        ("'blocks.registerBlockType'", ("blocks.registerBlockType", False)),
        ("`editor.${ name }.label`", ("editor.{dynamic}.label", True)),
        ("'blocks.' + type", ("blocks.{dynamic}", True)),
        ("hookName", ("{dynamic}", True)),
    ],
)
def test_classify_js_names(expression: str, expected: tuple) -> None:
    assert js.classify_name(expression) == expected


@pytest.mark.parametrize("expression", ["", "''", "'abc", "'a' . "])
def test_classify_rejects_unusable_names(expression: str) -> None:
    with pytest.raises(ExtractionError):
        php.classify_name(expression)


def test_literal_value() -> None:
    assert php.literal_value("'core/paragraph'") == "core/paragraph"
    assert php.literal_value("'it\\'s'") == "it's"
    assert php.literal_value('"a_$b"') is None
    assert php.literal_value("$x") is None
    assert js.literal_value("`plain`") == "plain"
