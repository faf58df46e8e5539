# tests/test_merge.py
from __future__ import annotations

from strings_sync.codec import parse, serialize
from strings_sync.merge import harvest_from_catalog, merge
from strings_sync.models import HarvestedEntry


def _h(key, value=None, comment=None):
    return HarvestedEntry(key=key, value=key if value is None else value, comment=comment)


def test_merge_into_empty_source_catalog_keeps_order():
    cat = parse("", locale="en")
    cat, report = merge(cat, [_h("A", "a"), _h("B", "b"), _h("C", "c")], source_locale="en")

    assert report.added_keys == ["A", "B", "C"]
    assert [e.key for e in cat.entries] == ["A", "B", "C"]
    assert serialize(cat) == '"A" = "a";\n"B" = "b";\n"C" = "c";\n'
    assert report.message() == 'Adding missing keys ["A", "B", "C"].'


def test_merge_non_source_locale_gets_empty_values_but_keeps_comment():
    cat = parse('"x" = "X";\n', locale="de")
    cat, report = merge(cat, [_h("y", "Y", "Shown on login")], source_locale="en")

    assert report.added_keys == ["y"]
    assert cat.first("y").value == ""
    assert serialize(cat) == '"x" = "X";\n\n/* Shown on login */\n"y" = "";\n'


def test_merge_is_non_destructive():
    text = '/* keep me */\n"K" = "existing";\n'
    cat = parse(text, locale="en")
    cat, report = merge(cat, [_h("K", "harvested", "other comment")], source_locale="en")

    assert not report.changed
    assert report.added_keys == []
    assert cat.first("K").value == "existing"
    assert cat.first("K").comment == "keep me"
    assert serialize(cat) == text


def test_merge_is_non_destructive_for_target_locale():
    text = '/* keep me */\n"K" = "vorhanden";\n"E" = "";\n'
    cat = parse(text, locale="de")
    harvested = [
        HarvestedEntry("K", "harvested", "other comment", translations=(("de", "neu"),)),
        HarvestedEntry("E", "E", translations=(("de", "gefüllt"),)),
    ]
    cat, report = merge(cat, harvested, source_locale="en")

    assert not report.changed
    assert cat.first("K").value == "vorhanden"
    # 已存在但为空的 value 也不动：留给 translate
    assert cat.first("E").value == ""
    assert serialize(cat) == text


def test_merge_uses_inline_translation_for_target_locale():
    cat = parse("", locale="de")
    cat, _ = merge(cat, [HarvestedEntry("T", "Title", translations=(("en", "Title"), ("de", "Titel")))], source_locale="en")
    assert serialize(cat) == '"T" = "Titel";\n'


def test_merge_is_idempotent():
    harvested = [_h("A", "a", "c1"), _h("B", "b")]
    cat, first = merge(parse('"Z" = "z";', locale="en"), harvested, source_locale="en")
    once = serialize(cat)

    cat, second = merge(cat, harvested, source_locale="en")
    assert first.added_keys == ["A", "B"]
    assert second.added_keys == []
    assert serialize(cat) == once


def test_merge_appends_after_file_without_trailing_newline():
    cat = parse('"x" = "1";', locale="en")
    cat, _ = merge(cat, [_h("y", "2", "Note")], source_locale="en")
    assert serialize(cat) == '"x" = "1";\n\n/* Note */\n"y" = "2";\n'


def test_merge_appends_after_trailing_comment():
    cat = parse('"x" = "1";\n\n// footer\n', locale="en")
    cat, _ = merge(cat, [_h("y", "2")], source_locale="en")
    assert serialize(cat) == '"x" = "1";\n\n// footer\n\n"y" = "2";\n'
    # 重新解析：footer 不会变成 y 的注释
    assert parse(serialize(cat)).first("y").comment is None


def test_merge_adds_duplicate_harvest_keys_once():
    cat = parse("", locale="en")
    cat, report = merge(cat, [_h("A", "first"), _h("A", "second")], source_locale="en")
    assert report.added_keys == ["A"]
    assert cat.first("A").value == "first"


def test_comment_with_block_terminator_rendered_as_line_comments():
    cat = parse("", locale="en")
    cat, _ = merge(cat, [_h("A", "a", "uses */ inside")], source_locale="en")
    assert serialize(cat) == '// uses */ inside\n"A" = "a";\n'


def test_harvest_from_catalog():
    cat = parse('/* c */\n"a" = "1";\n"b" = "";\n', locale="en")
    assert harvest_from_catalog(cat) == [
        HarvestedEntry(key="a", value="1", comment="c"),
        HarvestedEntry(key="b", value="", comment=None),
    ]
