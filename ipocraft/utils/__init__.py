# ipocraft/utils/__init__.py
from .timezone_utils import TimezoneHelper, now_utc, today_ist
from .coercion import coerce_flag, to_nullable_number, to_nullable_text, parse_leading_float

__all__ = [
    'TimezoneHelper', 'now_utc', 'today_ist',
    'coerce_flag', 'to_nullable_number', 'to_nullable_text', 'parse_leading_float',
]
