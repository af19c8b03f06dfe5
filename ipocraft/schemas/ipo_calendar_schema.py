# ipocraft/schemas/ipo_calendar_schema.py
from pydantic import BaseModel, Field
from typing import Dict, List

from ipocraft.schemas.ipo_schema import IPOView


class IPOCalendarResponse(BaseModel):
    """상태별 IPO 일정 (청약 시작일 오름차순)"""
    upcoming: List[IPOView] = Field(default_factory=list, description="청약 예정")
    open: List[IPOView] = Field(default_factory=list, description="청약 중")
    closed: List[IPOView] = Field(default_factory=list, description="청약 마감 (상장 전)")
    listed: List[IPOView] = Field(default_factory=list, description="상장 완료")
    total_count: int = Field(..., description="전체 항목 수", example=45)


class IPOCalendarMonthlyResponse(BaseModel):
    """이번 달 IPO 일정 응답"""
    month: str = Field(..., description="조회 월", example="2026-03")
    items: List[IPOView] = Field(..., description="IPO 일정 목록")
    total_count: int = Field(..., description="이번 달 IPO 개수", example=12)


class IPOCalendarStatistics(BaseModel):
    """IPO 통계 정보"""
    total_ipos: int = Field(..., description="전체 IPO 개수", example=45)
    this_month: int = Field(..., description="이번 달 청약 시작 IPO 개수", example=12)
    next_month: int = Field(..., description="다음 달 청약 시작 IPO 개수", example=8)
    by_status: Dict[str, int] = Field(..., description="상태별 개수", example={"Open": 3, "Upcoming": 5})
    by_type: Dict[str, int] = Field(..., description="유형별 개수", example={"mainboard": 20, "sme": 25})
    avg_price_range: Dict[str, float] = Field(..., description="평균 공모가 범위", example={"low": 118.5, "high": 124.3})
    opening_7days: int = Field(..., description="향후 7일 내 청약 시작 IPO 개수", example=3)
