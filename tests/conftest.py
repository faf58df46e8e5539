import sys
from pathlib import Path

import pytest


# Ensure 'src/' is on sys.path so 'strings_sync' can be imported when running tests from repo root.
REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_DIR = REPO_ROOT / "src"
if SRC_DIR.exists():
    sys.path.insert(0, str(SRC_DIR))


@pytest.fixture
def chdir_tmp(tmp_path, monkeypatch):
    """切到临时目录执行（避免污染仓库）。"""
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def sink():
    """不输出到控制台的诊断 sink；断言读 sink.records。"""
    import io

    from strings_sync.sink import DiagnosticSink

    return DiagnosticSink(stream=io.StringIO(), verbose=True)


@pytest.fixture
def write_strings(tmp_path):
    """write_strings("de", "Localizable.strings", text) -> 写入 <tmp>/<locale>.lproj/<name>"""

    def _write(locale, name, text, *, root=None):
        d = (root or tmp_path) / f"{locale}.lproj"
        d.mkdir(parents=True, exist_ok=True)
        p = d / name
        p.write_bytes(text.encode("utf-8"))
        return p.resolve()

    return _write
