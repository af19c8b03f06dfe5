# ipocraft/api/endpoints/ipo_calendar_endpoint.py
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from typing import Optional
import logging

from ipocraft.schemas.ipo_calendar_schema import (
    IPOCalendarResponse,
    IPOCalendarMonthlyResponse,
    IPOCalendarStatistics
)
from ipocraft.services.cache_service import SnapshotCache
from ipocraft.services.ipo_calendar_service import IPOCalendarService
from ipocraft.dependencies import get_db, get_snapshot_cache, get_request_clock, RequestClock

logger = logging.getLogger(__name__)

# IPO 캘린더 라우터 생성
router = APIRouter(
    tags=["IPO Calendar"],
    responses={
        404: {"description": "요청한 IPO 데이터를 찾을 수 없습니다"},
        500: {"description": "서버 내부 오류"}
    }
)


@router.get(
    "/",
    response_model=IPOCalendarResponse,
    summary="IPO 캘린더 전체 조회",
    description="IPO 일정을 상태별(Upcoming/Open/Closed/Listed)로 묶어 청약 시작일 순으로 조회합니다."
)
async def get_ipo_calendar(
    db: Session = Depends(get_db),
    cache: Optional[SnapshotCache] = Depends(get_snapshot_cache),
    clock: RequestClock = Depends(get_request_clock),
):
    """
    **IPO 캘린더 전체 조회**

    **주요 기능:**
    - 📅 상태별 그룹 (날짜로 계산한 상태 기준)
    - 📊 청약 시작일 오름차순 (시작일 미정은 맨 뒤)
    """
    try:
        service = IPOCalendarService(db, cache)
        groups = service.get_calendar(today=clock.today, now=clock.now)

        return IPOCalendarResponse(
            **groups,
            total_count=sum(len(items) for items in groups.values())
        )

    except ValueError as e:
        raise HTTPException(
            status_code=400,
            detail=f"잘못된 요청: {str(e)}"
        )
    except Exception as e:
        logger.error(f"IPO 캘린더 조회 실패: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=500,
            detail="IPO 캘린더 조회 중 오류가 발생했습니다"
        )


@router.get(
    "/monthly",
    response_model=IPOCalendarMonthlyResponse,
    summary="이번 달 IPO 일정 조회",
    description="현재 월(인도 시간 기준)에 청약이 시작되는 IPO 만 조회합니다. 특정 연월을 지정할 수도 있습니다."
)
async def get_monthly_ipos(
    year: Optional[int] = Query(None, description="연도 (미지정 시 현재)", example=2026),
    month: Optional[int] = Query(None, ge=1, le=12, description="월 (미지정 시 현재)", example=3),
    db: Session = Depends(get_db),
    cache: Optional[SnapshotCache] = Depends(get_snapshot_cache),
    clock: RequestClock = Depends(get_request_clock),
):
    """
    **이번 달 IPO 일정 조회**

    **사용 예시:**
    GET /api/v1/ipo-calendar/monthly
    GET /api/v1/ipo-calendar/monthly?year=2026&month=3
    """
    try:
        service = IPOCalendarService(db, cache)

        # 조회 월 결정
        if year is None or month is None:
            year, month = clock.today.year, clock.today.month
        items = service.get_monthly_ipos(year=year, month=month, today=clock.today, now=clock.now)

        return IPOCalendarMonthlyResponse(
            month=f"{year}-{month:02d}",
            items=items,
            total_count=len(items)
        )

    except ValueError as e:
        raise HTTPException(
            status_code=400,
            detail=f"잘못된 요청: {str(e)}"
        )
    except Exception as e:
        logger.error(f"월별 IPO 조회 실패: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=500,
            detail="월별 IPO 조회 중 오류가 발생했습니다"
        )


@router.get(
    "/statistics",
    response_model=IPOCalendarStatistics,
    summary="IPO 통계 정보",
    description="IPO 캘린더의 다양한 통계 정보를 제공합니다."
)
async def get_ipo_statistics(
    db: Session = Depends(get_db),
    cache: Optional[SnapshotCache] = Depends(get_snapshot_cache),
    clock: RequestClock = Depends(get_request_clock),
):
    """
    **IPO 통계 정보**

    **제공 정보:**
    - 📊 전체 IPO 개수
    - 📅 이번 달 / 다음 달 청약 시작 IPO 개수
    - 🏷️ 상태별 / 유형별(mainboard, sme) 분포
    - 💰 평균 공모가 범위 (상장 전)
    - ⏰ 향후 7일 내 청약 시작 IPO 개수
    """
    try:
        service = IPOCalendarService(db, cache)
        stats = service.get_statistics(today=clock.today, now=clock.now)

        return IPOCalendarStatistics(**stats)

    except ValueError as e:
        raise HTTPException(
            status_code=400,
            detail=f"잘못된 요청: {str(e)}"
        )
    except Exception as e:
        logger.error(f"IPO 통계 조회 실패: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=500,
            detail="IPO 통계 조회 중 오류가 발생했습니다"
        )
