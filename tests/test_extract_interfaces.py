# tests/test_extract_interfaces.py
from __future__ import annotations

import pytest

from strings_sync.config import parse_config
from strings_sync.errors import FormatError
from strings_sync.extract.interfaces import class_for_tag, harvest_interface
from strings_sync.sink import PrintLevel
from strings_sync.tasks import run_interfaces


STORYBOARD = '''<?xml version="1.0" encoding="UTF-8"?>
<document type="com.apple.InterfaceBuilder3.CocoaTouch.Storyboard.XIB" version="3.0">
    <scenes>
        <scene sceneID="s1">
            <objects>
                <viewController id="vc1" sceneMemberID="viewController">
                    <view key="view" contentMode="scaleToFill" id="v1">
                        <subviews>
                            <label text="Hello" id="abc-12-xyz"/>
                            <button id="btn-1">
                                <state key="normal" title="Tap me"/>
                            </button>
                            <textField placeholder="Email" id="tf-1"/>
                            <textView id="tv-1">
                                <string key="text">Long "quoted" text</string>
                            </textView>
                        </subviews>
                    </view>
                    <navigationItem key="navigationItem" title="Settings" id="nav-1"/>
                </viewController>
            </objects>
        </scene>
    </scenes>
</document>
'''


def test_harvest_interface_keys_values_and_comments():
    entries = harvest_interface(STORYBOARD)

    assert [(e.key, e.value) for e in entries] == [
        ("abc-12-xyz.text", "Hello"),
        ("btn-1.normalTitle", "Tap me"),
        ("tf-1.placeholder", "Email"),
        ("tv-1.text", 'Long "quoted" text'),
        ("nav-1.title", "Settings"),
    ]
    assert entries[0].comment == 'Class = "UILabel"; text = "Hello"; ObjectID = "abc-12-xyz";'
    assert entries[1].comment == 'Class = "UIButton"; normalTitle = "Tap me"; ObjectID = "btn-1";'
    assert entries[3].comment == 'Class = "UITextView"; text = "Long \\"quoted\\" text"; ObjectID = "tv-1";'


def test_class_for_unknown_tag():
    assert class_for_tag("stackView") == "UIStackView"


def test_invalid_xml_raises_format_error():
    with pytest.raises(FormatError) as ei:
        harvest_interface("<document>\n<label text='x'>\n</document>", file_path="Main.storyboard")
    assert ei.value.line >= 1
    assert ei.value.file == "Main.storyboard"


def test_run_interfaces_merges_into_existing_locale_files(tmp_path, sink, write_strings):
    base = tmp_path / "Base.lproj"
    base.mkdir()
    layout = base / "Main.storyboard"
    layout.write_text(STORYBOARD, encoding="utf-8")

    en = write_strings("en", "Main.strings", "")
    de = write_strings("de", "Main.strings", '/* keep */\n"abc-12-xyz.text" = "Hallo";\n')

    cfg = parse_config({}, project_root=tmp_path)
    added = run_interfaces(cfg, sink)

    assert added == 5 + 4
    en_text = en.read_text(encoding="utf-8")
    assert '"abc-12-xyz.text" = "Hello";' in en_text
    assert '/* Class = "UILabel"; text = "Hello"; ObjectID = "abc-12-xyz"; */' in en_text

    de_text = de.read_text(encoding="utf-8")
    assert de_text.startswith('/* keep */\n"abc-12-xyz.text" = "Hallo";\n')
    assert '"nav-1.title" = "";' in de_text

    assert not (base / "Main.strings").exists()
    last = sink.records[-1]
    assert last.level == PrintLevel.SUCCESS
    assert last.message == "Successfully updated strings file(s) of Storyboard or XIB file."
    assert last.file == str(layout.resolve())
