from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

from .errors import ConfigError
from .extract.code import FOUNDATION, REWRITE_TARGETS
from .lint import LintOptions

CONFIG_FILE = "strings_sync.yaml"
DEFAULT_TEMPLATE_NAME = "strings_sync.yaml"     # 内置模板文件（带注释）


# ----------------------------
# 数据模型（按 strings_sync.yaml schema）
# ----------------------------
@dataclass(frozen=True)
class NormalizeOptions:
    paths: Tuple[str, ...] = (".",)


@dataclass(frozen=True)
class CodeOptions:
    code_paths: Tuple[str, ...] = (".",)
    localizable_paths: Tuple[str, ...] = (".",)
    # 额外识别的本地化函数名（与 NSLocalizedString 同签名），如 "L10nString"
    custom_function: Optional[str] = None
    # 把 BartyCrouch.translate(...) 改写成 NSLocalizedString(...)
    rewrite_translate_calls: bool = False
    # 改写目标：foundation -> NSLocalizedString(...)；swiftgenStructured -> L10n.Xxx.yyy
    rewrite_target: str = FOUNDATION


@dataclass(frozen=True)
class InterfacesOptions:
    paths: Tuple[str, ...] = (".",)


@dataclass(frozen=True)
class TranslateOptions:
    model: str = "gpt-4o-mini"
    batch_size: int = 25
    timeout: float = 60.0
    retries: int = 2
    prompt_en: str = ""


@dataclass(frozen=True)
class StringsSyncConfig:
    project_root: Path
    lang_root: Path                 # 绝对路径：*.lproj 所在根目录
    source_locale: str = "en"
    max_workers: int = 0            # 0 = 自动

    lint: LintOptions = field(default_factory=LintOptions)
    normalize: NormalizeOptions = field(default_factory=NormalizeOptions)
    code: CodeOptions = field(default_factory=CodeOptions)
    interfaces: InterfacesOptions = field(default_factory=InterfacesOptions)
    translate: TranslateOptions = field(default_factory=TranslateOptions)

    def resolve(self, rel: str) -> Path:
        p = Path(rel).expanduser()
        return p if p.is_absolute() else (self.project_root / p).resolve()


# ----------------------------
# 内置模板
# ----------------------------
def _pkg_file(name: str) -> Path:
    return Path(__file__).with_name(name)


def init_config(project_root: Path, cfg_path: Path) -> bool:
    """cfg 不存在：用内置模板生成（保留注释），返回 True；已存在则只校验，返回 False。"""
    project_root = project_root.resolve()
    cfg_path = cfg_path.resolve()

    if cfg_path.exists():
        load_config(cfg_path, project_root=project_root)
        return False

    tpl = _pkg_file(DEFAULT_TEMPLATE_NAME)
    if not tpl.exists():
        raise FileNotFoundError(f"内置默认配置模板不存在：{tpl}")

    tpl_text = tpl.read_text(encoding="utf-8")
    parse_config(yaml.safe_load(tpl_text) or {}, project_root=project_root)  # 模板自身也要合法

    cfg_path.parent.mkdir(parents=True, exist_ok=True)
    cfg_path.write_text(tpl_text, encoding="utf-8")
    return True


# ----------------------------
# load_config：不存在则全部取默认值
# ----------------------------
def load_config(cfg_path: Path, *, project_root: Optional[Path] = None) -> StringsSyncConfig:
    cfg_path = cfg_path.resolve()
    project_root = (project_root or cfg_path.parent).resolve()

    if not cfg_path.exists():
        return parse_config({}, project_root=project_root)

    try:
        raw = yaml.safe_load(cfg_path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(
            f"配置文件无法解析为 YAML：{cfg_path}\n"
            f"原因：{e}\n"
            f"解决方法：修复 YAML 格式或删除后运行 `strings_sync init` 重新生成。"
        ) from None

    try:
        return parse_config(raw, project_root=project_root)
    except ConfigError as e:
        raise ConfigError(
            f"配置文件校验失败：{cfg_path}\n"
            f"原因：{e}\n"
            f"解决方法：修复配置字段/类型，或运行 `strings_sync init` 参考模板。"
        ) from None


# ----------------------------
# parse_config：字段 + 类型校验
# ----------------------------
def _section(raw: Dict[str, Any], name: str) -> Dict[str, Any]:
    sec = raw.get(name)
    if sec is None:
        return {}
    if not isinstance(sec, dict):
        raise ConfigError(f"{name} 必须是 object")
    return sec


def _bool(sec: Dict[str, Any], key: str, default: bool, where: str) -> bool:
    v = sec.get(key, default)
    if not isinstance(v, bool):
        raise ConfigError(f"{where}.{key} 必须是 true/false，当前：{v!r}")
    return v


def _int(sec: Dict[str, Any], key: str, default: int, where: str) -> int:
    v = sec.get(key, default)
    # bool 是 int 的子类，单独排除
    if isinstance(v, bool) or not isinstance(v, int) or v < 0:
        raise ConfigError(f"{where}.{key} 必须是非负整数，当前：{v!r}")
    return v


def _float(sec: Dict[str, Any], key: str, default: float, where: str) -> float:
    v = sec.get(key, default)
    if isinstance(v, bool) or not isinstance(v, (int, float)) or v <= 0:
        raise ConfigError(f"{where}.{key} 必须是正数，当前：{v!r}")
    return float(v)


def _str(sec: Dict[str, Any], key: str, default: Optional[str], where: str, *, allow_empty: bool = False) -> Optional[str]:
    v = sec.get(key, default)
    if v is None:
        return None
    if not isinstance(v, str) or (not allow_empty and not v.strip()):
        raise ConfigError(f"{where}.{key} 必须是非空字符串，当前：{v!r}")
    return v.strip() if not allow_empty else v


def _paths(sec: Dict[str, Any], key: str, where: str) -> Tuple[str, ...]:
    v = sec.get(key, ["."])
    if isinstance(v, str):
        v = [v]
    if not isinstance(v, list) or not v or any(not isinstance(x, str) or not x.strip() for x in v):
        raise ConfigError(f"{where}.{key} 必须是非空字符串数组，当前：{v!r}")
    return tuple(x.strip() for x in v)


def parse_config(raw: Any, *, project_root: Path) -> StringsSyncConfig:
    if not isinstance(raw, dict):
        raise ConfigError("配置顶层必须是 object")

    lang_root = _str(raw, "lang_root", ".", "config")
    source_locale = _str(raw, "source_locale", "en", "config")
    max_workers = _int(raw, "max_workers", 0, "config")

    lint = _section(raw, "lint")
    normalize = _section(raw, "normalize")
    code = _section(raw, "code")
    interfaces = _section(raw, "interfaces")
    translate = _section(raw, "translate")

    batch_size = _int(translate, "batch_size", 25, "translate")
    if batch_size == 0:
        raise ConfigError("translate.batch_size 必须 >= 1")

    rewrite_target = _str(code, "rewrite_target", FOUNDATION, "code")
    if rewrite_target not in REWRITE_TARGETS:
        raise ConfigError(f"code.rewrite_target 只能是 {' / '.join(REWRITE_TARGETS)}，当前：{rewrite_target!r}")

    project_root = project_root.resolve()
    lang_root_path = Path(str(lang_root)).expanduser()
    if not lang_root_path.is_absolute():
        lang_root_path = (project_root / lang_root_path).resolve()

    return StringsSyncConfig(
        project_root=project_root,
        lang_root=lang_root_path,
        source_locale=str(source_locale),
        max_workers=max_workers,
        lint=LintOptions(
            duplicate_keys=_bool(lint, "duplicateKeys", True, "lint"),
            empty_values=_bool(lint, "emptyValues", True, "lint"),
        ),
        normalize=NormalizeOptions(paths=_paths(normalize, "paths", "normalize")),
        code=CodeOptions(
            code_paths=_paths(code, "code_paths", "code"),
            localizable_paths=_paths(code, "localizable_paths", "code"),
            custom_function=_str(code, "custom_function", None, "code"),
            rewrite_translate_calls=_bool(code, "rewrite_translate_calls", False, "code"),
            rewrite_target=str(rewrite_target),
        ),
        interfaces=InterfacesOptions(paths=_paths(interfaces, "paths", "interfaces")),
        translate=TranslateOptions(
            model=str(_str(translate, "model", "gpt-4o-mini", "translate")),
            batch_size=batch_size,
            timeout=_float(translate, "timeout", 60.0, "translate"),
            retries=_int(translate, "retries", 2, "translate"),
            prompt_en=str(_str(translate, "prompt_en", "", "translate", allow_empty=True) or ""),
        ),
    )
