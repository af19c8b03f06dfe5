# ipocraft/utils/coercion.py
"""
느슨한 타입의 원본 값(DB 행, 관리자 폼)을 정규화하는 함수 모음

모든 함수는 예외 없이 None / False 로 떨어집니다.
"""
import math
import re
from decimal import Decimal
from typing import Any, Optional

_TRUE_STRINGS = {"true", "1"}
_LEADING_NUMBER = re.compile(r"^\s*[-+]?(\d+(\.\d*)?|\.\d+)([eE][-+]?\d+)?")


def coerce_flag(value: Any) -> bool:
    """
    True / "true" / "1" / 1 만 참으로 취급 (문자열은 정확히 일치할 때만)

    그 외 (False, "false", 0, None, "", 임의 문자열)는 모두 거짓.
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float, Decimal)):
        return value == 1
    if isinstance(value, str):
        return value in _TRUE_STRINGS
    return False


def to_nullable_number(value: Any) -> Optional[float]:
    """숫자로 변환, 실패하거나 NaN/무한대면 None"""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def to_nullable_text(value: Any) -> Optional[str]:
    """공백 제거 후 빈 문자열이면 None"""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def parse_leading_float(value: Any, default: float = 0.0) -> float:
    """
    앞부분 숫자만 읽어서 float 로 ("12.5x" → 12.5)

    숫자로 시작하지 않으면 default.
    """
    number = to_nullable_number(value)
    if number is not None:
        return number
    if value is None:
        return default
    match = _LEADING_NUMBER.match(str(value))
    if not match:
        return default
    return float(match.group(0))
