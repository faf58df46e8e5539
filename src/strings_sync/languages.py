from __future__ import annotations

from typing import Dict, List, Optional, Tuple

# (Swift enum case, locale code, English name)
# case 名用于解析 BartyCrouch.translate(translations: [.english: "..."])；name 用于翻译提示词
LANGUAGES: List[Tuple[str, str, str]] = [
    ("afrikaans", "af", "Afrikaans"),
    ("arabic", "ar", "Arabic"),
    ("bulgarian", "bg", "Bulgarian"),
    ("bangla", "bn", "Bangla"),
    ("bosnian", "bs", "Bosnian"),
    ("catalan", "ca", "Catalan"),
    ("czech", "cs", "Czech"),
    ("welsh", "cy", "Welsh"),
    ("danish", "da", "Danish"),
    ("german", "de", "German"),
    ("greek", "el", "Greek"),
    ("english", "en", "English"),
    ("spanish", "es", "Spanish"),
    ("estonian", "et", "Estonian"),
    ("persian", "fa", "Persian"),
    ("finnish", "fi", "Finnish"),
    ("filipino", "fil", "Filipino"),
    ("fijian", "fj", "Fijian"),
    ("french", "fr", "French"),
    ("hebrew", "he", "Hebrew"),
    ("hindi", "hi", "Hindi"),
    ("croatian", "hr", "Croatian"),
    ("haitianCreole", "ht", "Haitian Creole"),
    ("hungarian", "hu", "Hungarian"),
    ("indonesian", "id", "Indonesian"),
    ("icelandic", "is", "Icelandic"),
    ("italian", "it", "Italian"),
    ("japanese", "ja", "Japanese"),
    ("korean", "ko", "Korean"),
    ("lithuanian", "lt", "Lithuanian"),
    ("latvian", "lv", "Latvian"),
    ("malagasy", "mg", "Malagasy"),
    ("malay", "ms", "Malay"),
    ("maltese", "mt", "Maltese"),
    ("hmongDaw", "mww", "Hmong Daw"),
    ("norwegian", "nb", "Norwegian Bokmål"),
    ("dutch", "nl", "Dutch"),
    ("queretaroOtomi", "otq", "Querétaro Otomi"),
    ("polish", "pl", "Polish"),
    ("portuguese", "pt", "Portuguese"),
    ("romanian", "ro", "Romanian"),
    ("russian", "ru", "Russian"),
    ("slovak", "sk", "Slovak"),
    ("slovenian", "sl", "Slovenian"),
    ("samoan", "sm", "Samoan"),
    ("serbianCyrillic", "sr-Cyrl", "Serbian (Cyrillic)"),
    ("serbianLatin", "sr-Latn", "Serbian (Latin)"),
    ("swedish", "sv", "Swedish"),
    ("kiswahili", "sw", "Kiswahili"),
    ("tamil", "ta", "Tamil"),
    ("telugu", "te", "Telugu"),
    ("thai", "th", "Thai"),
    ("klingon", "tlh", "Klingon"),
    ("tongan", "to", "Tongan"),
    ("turkish", "tr", "Turkish"),
    ("tahitian", "ty", "Tahitian"),
    ("ukrainian", "uk", "Ukrainian"),
    ("urdu", "ur", "Urdu"),
    ("vietnamese", "vi", "Vietnamese"),
    ("yucatecMaya", "yua", "Yucatec Maya"),
    ("cantoneseTraditional", "yue", "Cantonese (Traditional)"),
    ("chineseSimplified", "zh-Hans", "Chinese (Simplified)"),
    ("chineseTraditional", "zh-Hant", "Chinese (Traditional)"),
]

_CASE_TO_CODE: Dict[str, str] = {case: code for case, code, _ in LANGUAGES}
_CODE_TO_NAME: Dict[str, str] = {code.lower(): name for _, code, name in LANGUAGES}


def code_for_case(case: str) -> Optional[str]:
    return _CASE_TO_CODE.get(case)


def _normalize(locale: str) -> str:
    return locale.replace("_", "-").strip()


def language_name(locale: str) -> str:
    """
    zh-Hans -> "Chinese (Simplified)"；pt-BR -> "Portuguese (BR)"；
    未知 code 原样返回（模型一般也认识 BCP-47）。
    """
    code = _normalize(locale)
    name = _CODE_TO_NAME.get(code.lower())
    if name:
        return name
    base, _, region = code.partition("-")
    name = _CODE_TO_NAME.get(base.lower())
    if name and region:
        return f"{name} ({region})"
    return name or locale


def matches(locale: str, code: str) -> bool:
    """en-GB 也算 en（translate 调用里通常只写语言不写地区）。"""
    a, b = _normalize(locale).lower(), _normalize(code).lower()
    return a == b or a.split("-", 1)[0] == b
