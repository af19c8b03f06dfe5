# ipocraft/utils/slug.py
import re
from typing import Callable

_WHITESPACE = re.compile(r"\s+")
_NON_WORD = re.compile(r"[^\w-]+")


def generate_slug(name: str, suffix: str = "") -> str:
    """
    이름 → URL 슬러그

    "Tata Technologies Ltd." → "tata-technologies-ltd" (+ suffix)
    """
    slug = _WHITESPACE.sub("-", name.lower().strip())
    slug = _NON_WORD.sub("", slug)
    return slug + suffix


def unique_slug(base: str, exists: Callable[[str], bool]) -> str:
    """이미 있으면 -2, -3 ... 을 붙여서 비어 있는 슬러그 반환"""
    candidate = base
    counter = 2
    while exists(candidate):
        candidate = f"{base}-{counter}"
        counter += 1
    return candidate
