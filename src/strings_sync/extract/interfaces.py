from __future__ import annotations

import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

from ..errors import FormatError
from ..models import HarvestedEntry

INTERFACE_SUFFIXES = (".storyboard", ".xib")

# 可本地化的属性（按输出顺序）
LOCALIZABLE_ATTRS = ("text", "title", "placeholder", "headerTitle", "footerTitle")

# storyboard 标签名 -> UIKit 类名；其它标签按 UI + 首字母大写推导
_CLASS_BY_TAG: Dict[str, str] = {
    "label": "UILabel",
    "button": "UIButton",
    "textField": "UITextField",
    "textView": "UITextView",
    "searchBar": "UISearchBar",
    "segmentedControl": "UISegmentedControl",
    "navigationItem": "UINavigationItem",
    "barButtonItem": "UIBarButtonItem",
    "tabBarItem": "UITabBarItem",
    "tableViewSection": "UITableViewSection",
    "menuItem": "NSMenuItem",
    "textFieldCell": "NSTextFieldCell",
    "buttonCell": "NSButtonCell",
}


def class_for_tag(tag: str) -> str:
    cls = _CLASS_BY_TAG.get(tag)
    if cls:
        return cls
    return "UI" + tag[:1].upper() + tag[1:]


def _quote(s: str) -> str:
    return s.replace("\\", "\\\\").replace('"', '\\"')


def _element_texts(el: ET.Element) -> List[Tuple[str, str]]:
    found: List[Tuple[str, str]] = []
    seen = set()
    for attr in LOCALIZABLE_ATTRS:
        v = el.get(attr)
        if v:
            found.append((attr, v))
            seen.add(attr)

    for child in el:
        if child.tag == "state" and child.get("key") == "normal" and child.get("title"):
            found.append(("normalTitle", child.get("title") or ""))
        elif child.tag == "string" and child.get("key") in LOCALIZABLE_ATTRS:
            attr = child.get("key") or ""
            if attr not in seen and child.text:
                found.append((attr, child.text))
                seen.add(attr)
    return found


def harvest_interface(xml_text: str, *, file_path: Optional[Union[str, Path]] = None) -> List[HarvestedEntry]:
    """
    storyboard / xib -> 条目列表（文档顺序）。
    key = <ObjectID>.<attr>，comment 与 ibtool 导出的格式一致。
    """
    try:
        root = ET.fromstring(xml_text)
    except ET.ParseError as e:
        line = e.position[0] if getattr(e, "position", None) else 1
        raise FormatError(f"invalid XML: {e}", line=line, file=file_path) from None

    out: List[HarvestedEntry] = []
    for el in root.iter():
        oid = el.get("id")
        if not oid:
            continue
        cls = class_for_tag(el.tag)
        for attr, value in _element_texts(el):
            out.append(
                HarvestedEntry(
                    key=f"{oid}.{attr}",
                    value=value,
                    comment=f'Class = "{cls}"; {attr} = "{_quote(value)}"; ObjectID = "{oid}";',
                )
            )
    return out
