# python
"""
sitesmith/lang.py
Guess the language tag a prompt is written in, so generated copy matches it.
"""
import re
from typing import Optional

SUPPORTED_LANGUAGES = ("en", "ru", "zh", "es", "ja")

# checked in order: Japanese text containing kanji is reported as zh
_PATTERNS = (
    ("ru", re.compile(r"[а-яА-ЯЁё]")),
    ("zh", re.compile(r"[\u4e00-\u9fa5]")),
    ("ja", re.compile(r"[\u3040-\u30ff\u31f0-\u31ff]")),
    ("es", re.compile(r"[áéíóúñ¡¿]")),
)


def detect_language(text: Optional[str], default: str = "en") -> str:
    if not text:
        return default
    for code, pattern in _PATTERNS:
        if pattern.search(text):
            return code
    return default
