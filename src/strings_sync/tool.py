#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
strings_sync tool.py
CLI 入口：参数解析 + action 路由 + exit code
- init / lint / normalize / code / interfaces / translate
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from . import config as cfg_mod
from . import tasks
from .errors import ConfigError
from .sink import DiagnosticSink

BOX_TOOL = {
    "id": "ios.strings_sync",
    "name": "strings_sync",
    "category": "iOS",
    "summary": "Xcode .strings 多语言同步：lint / 源语言 key 同步 / 代码与 storyboard 提取 / AI 补翻译",
    "usage": [
        "strings_sync init",
        "strings_sync lint",
        "strings_sync lint --xcode-output --fail-on-warnings",
        "strings_sync normalize",
        "strings_sync code",
        "strings_sync interfaces",
        "strings_sync translate",
        "strings_sync --project-root path/to/project --config strings_sync.yaml lint",
    ],
    "options": [
        {"flag": "action", "desc": "子命令：init/lint/normalize/code/interfaces/translate"},
        {"flag": "--project-root", "desc": "项目根目录（默认当前目录）"},
        {"flag": "--config", "desc": "配置文件路径（默认 strings_sync.yaml，基于 project-root）"},
        {"flag": "--verbose", "desc": "输出 verbose 级别信息"},
        {"flag": "--xcode-output", "desc": "按 Xcode 可识别的 file:line: warning: 格式输出"},
        {"flag": "--dry-run", "desc": "预览模式（不写入任何文件）"},
        {"flag": "--fail-on-warnings", "desc": "lint：有 warning 时以非 0 退出"},
        {"flag": "--api-key", "desc": "OpenAI API key（或环境变量 OPENAI_API_KEY）"},
        {"flag": "--model", "desc": "翻译模型（CLI 优先；不传则用配置/默认）"},
    ],
    "examples": [
        {"cmd": "strings_sync init", "desc": "生成/校验配置文件（保留模板注释）"},
        {"cmd": "strings_sync lint", "desc": "检查重复 key 与空 value"},
        {"cmd": "strings_sync normalize", "desc": "把源语言的 key 追加到其它语言（不删除、不覆盖）"},
        {"cmd": "strings_sync code", "desc": "从 *.swift 提取 NSLocalizedString 到 Localizable.strings"},
        {"cmd": "strings_sync interfaces", "desc": "从 Base.lproj 的 storyboard/xib 提取到各语言 .strings"},
        {"cmd": "strings_sync translate --model gpt-4o-mini", "desc": "用 OpenAI 补齐其它语言的空 value"},
    ],
    "dependencies": [
        "PyYAML>=6.0",
        "openai>=1.0.0",
    ],
    "docs": "README.md",
}


EXIT_OK = 0
EXIT_FAIL = 1
EXIT_BAD = 2


MENU = [
    ("init",       "生成/校验配置"),
    ("lint",       "检查重复 key / 空 value"),
    ("normalize",  "源语言 key 同步到其它语言"),
    ("code",       "从 Swift 代码提取 key"),
    ("interfaces", "从 storyboard/xib 提取 key"),
    ("translate",  "AI 补齐空 value"),
]


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="strings_sync",
        description="Xcode .strings：lint / normalize / 代码与界面提取 / 翻译",
    )
    p.add_argument("action", nargs="?", choices=[k for k, _ in MENU], help="命令")
    p.add_argument("--project-root", default=".", help="项目根目录（默认当前目录）")
    p.add_argument("--config", default=cfg_mod.CONFIG_FILE, help="配置文件路径（默认 strings_sync.yaml）")

    # 输出
    p.add_argument("--verbose", action="store_true", help="输出 verbose 级别信息")
    p.add_argument("--xcode-output", action="store_true", help="Xcode 格式输出（file:line: warning: ...）")

    # 通用写入控制
    p.add_argument("--dry-run", action="store_true", help="预览模式（不写入任何文件）")
    p.add_argument("--fail-on-warnings", action="store_true", help="lint：有 warning 时返回 1")

    # 翻译参数
    p.add_argument("--api-key", default=None, help="OpenAI API key（或环境变量 OPENAI_API_KEY）")
    p.add_argument("--model", default=None, help="模型（CLI 优先；不传则用配置/默认）")
    return p


def main(argv: Optional[List[str]] = None, *, sink: Optional[DiagnosticSink] = None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    args = build_parser().parse_args(argv)

    project_root = Path(args.project_root).expanduser().resolve()

    cfg_path = Path(args.config).expanduser()
    if not cfg_path.is_absolute():
        cfg_path = (project_root / cfg_path).resolve()

    action = args.action
    if not action:
        print("❌ 请指定 action。可选：")
        for k, desc in MENU:
            print(f"  - {k:<12} {desc}")
        return EXIT_BAD

    if sink is None:
        sink = DiagnosticSink(verbose=args.verbose, xcode_output=args.xcode_output)
    dry = bool(args.dry_run)

    if action == "init":
        try:
            tasks.run_init(project_root=project_root, cfg_path=cfg_path, sink=sink)
            return EXIT_OK
        except (ConfigError, OSError) as e:
            print(str(e))
            return EXIT_BAD

    # 其余 action 需要合法 cfg（不存在则全部默认值）
    try:
        cfg = cfg_mod.load_config(cfg_path, project_root=project_root)
    except ConfigError as e:
        print(str(e))
        return EXIT_BAD

    if action == "lint":
        summary = tasks.run_lint(cfg, sink)
        if args.fail_on_warnings and summary.issues:
            return EXIT_FAIL
    elif action == "normalize":
        tasks.run_normalize(cfg, sink, dry_run=dry)
    elif action == "code":
        tasks.run_code(cfg, sink, dry_run=dry)
    elif action == "interfaces":
        tasks.run_interfaces(cfg, sink, dry_run=dry)
    elif action == "translate":
        try:
            provider = tasks.translate_provider(cfg, api_key=args.api_key, model=args.model)
        except ConfigError as e:
            print(str(e))
            return EXIT_BAD
        tasks.run_translate(cfg, sink, provider, dry_run=dry)

    return EXIT_FAIL if sink.has_errors else EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
