# tests/test_codec.py
from __future__ import annotations

import pytest

from strings_sync.codec import parse, render_statement, serialize
from strings_sync.errors import FormatError


SAMPLE = (
    "/* Title of the app */\n"
    '"app.title" = "Demo";\n'
    "\n"
    "// greeting\n"
    "\n"
    '"hello" = "Hello";\n'
    '"quote" = "Say \\"hi\\"\\n";\n'
)


# ---------------------------
# round-trip
# ---------------------------

@pytest.mark.parametrize(
    "text",
    [
        "",
        "\n\n",
        "/* only a comment */\n",
        SAMPLE,
        '"a" = "b";',                                   # 没有结尾换行
        '"a" = "b";\r\n"c" = "d";\r\n',                 # CRLF
        '"a"="b" ;\n\n\n"c"   =   "d";   \n',           # 不规则空白
        '"a" = "b";   // trailing note\n"c" = "d";\n',  # 行尾注释
        '\ufeff"bom" = "yes";\n',
        "/*\n * multi\n * line\n */\n\"k\" = \"v\";\n\n// end\n",
        '"dup" = "1";\n"dup" = "2";\n',
        '"u" = "\\U00e9\\u00e8";\n',
    ],
)
def test_round_trip_is_byte_identical(text):
    assert serialize(parse(text)) == text


# ---------------------------
# parse
# ---------------------------

def test_parse_entries_lines_and_comments():
    cat = parse(SAMPLE, locale="en")

    assert cat.locale == "en"
    assert [e.key for e in cat.entries] == ["app.title", "hello", "quote"]
    assert [e.line for e in cat.entries] == [2, 6, 7]

    # 紧贴语句的注释提升为 comment；隔了空行的不算
    assert cat.entries[0].comment == "Title of the app"
    assert cat.entries[1].comment is None
    assert cat.entries[2].comment is None

    assert cat.entries[2].value == 'Say "hi"\n'
    assert cat.entries[1].raw_leading_trivia == "\n// greeting\n\n"


def test_parse_comment_on_previous_statement_line_is_not_promoted():
    cat = parse('"a" = "1"; // about a\n"b" = "2";\n')
    assert cat.entries[1].comment is None


def test_parse_multiline_block_comment_is_cleaned():
    cat = parse("/*\n * First line\n * Second line\n */\n\"k\" = \"v\";\n")
    assert cat.entries[0].comment == "First line\nSecond line"


def test_parse_decodes_escapes():
    cat = parse('"k" = "tab\\tnl\\nbs\\\\ q\\\' u\\U00e9";\n')
    assert cat.entries[0].value == "tab\tnl\nbs\\ q' u\u00e9"


def test_parse_combines_surrogate_pair_escapes():
    cat = parse('"smile" = "\\UD83D\\UDE00";\n')
    assert cat.entries[0].value == "\U0001F600"

    # 小写 \u 与混写同样合并；单独的高位代理原样保留
    assert parse('"k" = "\\ud83d\\UDE00!";\n').entries[0].value == "\U0001F600!"
    assert parse('"k" = "\\UD83Dx";\n').entries[0].value == "\ud83dx"


def test_parse_keeps_duplicate_keys():
    cat = parse('"K" = "1";\n"K" = "2";\n')
    assert [e.value for e in cat.entries] == ["1", "2"]
    assert cat.key_index() == {"K": [0, 1]}
    assert cat.first("K").value == "1"


def test_parse_empty_and_comment_only_files():
    assert parse("").entries == []
    cat = parse("// nothing here\n")
    assert cat.entries == []
    assert cat.trailing_trivia == "// nothing here\n"


# ---------------------------
# errors
# ---------------------------

def test_unterminated_string_reports_start_line():
    with pytest.raises(FormatError) as ei:
        parse('"a" = "b";\n"c" = "d\n', file_path="x.strings")
    assert ei.value.line == 2
    assert ei.value.file == "x.strings"
    assert "unterminated string" in ei.value.message


def test_unterminated_block_comment():
    with pytest.raises(FormatError) as ei:
        parse('"a" = "b";\n\n/* oops\n')
    assert ei.value.line == 3
    assert "block comment" in ei.value.message


def test_statement_that_is_not_key_value():
    with pytest.raises(FormatError) as ei:
        parse('"a" = "b";\nfoo = "bar";\n')
    assert ei.value.line == 2
    assert str(ei.value).startswith("line 2:")


def test_missing_semicolon():
    with pytest.raises(FormatError) as ei:
        parse('"a" = "b"\n"c" = "d";\n')
    assert ei.value.line == 2


# ---------------------------
# serialize
# ---------------------------

def test_modified_entry_is_rerendered_and_neighbours_untouched():
    cat = parse('"a" = "1";   // keep\n"b" = "2";\n')
    cat.entries[1].value = 'x"y\n'

    assert serialize(cat) == '"a" = "1";   // keep\n"b" = "x\\"y\\n";\n'


def test_reverting_a_value_restores_original_statement():
    text = '"a"="1";\n'
    cat = parse(text)
    cat.entries[0].value = "2"
    cat.entries[0].value = "1"
    assert serialize(cat) == text


def test_render_statement_escapes():
    assert render_statement('k"', "a\\b\tc") == '"k\\"" = "a\\\\b\\tc";'


def test_render_statement_escapes_nul():
    assert render_statement("k", "a\0b") == '"k" = "a\\0b";'
    # 写出去再读回来还是同一个值
    assert parse(render_statement("k", "a\0b") + "\n").entries[0].value == "a\0b"
