# tests/test_sink.py
from __future__ import annotations

import io

from strings_sync.sink import DiagnosticSink, PrintLevel


def test_xcode_output_format():
    stream = io.StringIO()
    sink = DiagnosticSink(stream=stream, xcode_output=True)
    sink.emit("Found empty value for key 'K'.", PrintLevel.WARNING, file="/p/en.lproj/L.strings", line=15)
    sink.emit("done", PrintLevel.SUCCESS)

    assert stream.getvalue().splitlines() == [
        "/p/en.lproj/L.strings:15: warning: strings_sync: Found empty value for key 'K'.",
        "success: strings_sync: done",
    ]


def test_human_format_and_verbose_filter():
    stream = io.StringIO()
    sink = DiagnosticSink(stream=stream)
    sink.emit("hidden", PrintLevel.VERBOSE)
    sink.emit("oops", PrintLevel.ERROR, file="a.strings")

    lines = stream.getvalue().splitlines()
    assert len(lines) == 1
    assert lines[0].endswith("❌ a.strings: oops")
    # verbose 不打印，但仍然记录
    assert [d.message for d in sink.records] == ["hidden", "oops"]
    assert sink.has_errors


def test_buffered_sink_flushes_in_order():
    sink = DiagnosticSink(stream=io.StringIO())
    a, b = sink.buffer(), sink.buffer()
    b.emit("b1")
    a.emit("a1")
    a.emit("a2")
    assert sink.records == []

    a.flush()
    b.flush()
    assert [d.message for d in sink.records] == ["a1", "a2", "b1"]
    assert sink.count(PrintLevel.INFO) == 3


def test_lone_surrogate_does_not_break_console_output():
    raw = io.BytesIO()
    stream = io.TextIOWrapper(raw, encoding="utf-8")
    sink = DiagnosticSink(stream=stream, xcode_output=True)
    sink.emit('Adding missing keys ["\ud83d lone"].')

    assert raw.getvalue().decode("utf-8") == 'info: strings_sync: Adding missing keys ["\\ud83d lone"].\n'
    # records 保留原文
    assert sink.records[0].message == 'Adding missing keys ["\ud83d lone"].'
