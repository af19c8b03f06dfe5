from .ipo_schema import (
    IPOType,
    IPOStatus,
    AllotmentBadge,
    TrendDirection,
    SortKey,
    GmpHistoryPoint,
    GmpTrend,
    IPORecord,
    IPOView,
)

__all__ = [
    "IPOType",
    "IPOStatus",
    "AllotmentBadge",
    "TrendDirection",
    "SortKey",
    "GmpHistoryPoint",
    "GmpTrend",
    "IPORecord",
    "IPOView",
]
