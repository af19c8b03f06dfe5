# ipocraft/api/endpoints/admin_endpoint.py
from fastapi import APIRouter, Depends, HTTPException, Path
from sqlalchemy.orm import Session
from typing import Optional
import logging

from ipocraft.schemas.ipo_schema import (
    AdminStatistics,
    GmpUpdate,
    GmpUpdateResponse,
    IPOCreate,
    IPOListResponse,
    IPORecord,
    IPOUpdate,
)
from ipocraft.schemas.broker_schema import (
    BrokerCreate,
    BrokerListResponse,
    BrokerResponse,
    BrokerUpdate,
)
from ipocraft.services.broker_service import BrokerService
from ipocraft.services.cache_service import SnapshotCache
from ipocraft.services.exceptions import BrokerNotFoundError, DuplicateSlugError, IPONotFoundError
from ipocraft.services.ipo_admin_service import IPOAdminService
from ipocraft.services.ipo_listing_service import IPOListingService, ListingFilter
from ipocraft.dependencies import get_db, get_snapshot_cache, get_request_clock, RequestClock

logger = logging.getLogger(__name__)

# 관리자 라우터 (인증은 앞단 프록시에서 처리)
router = APIRouter(
    tags=["Admin"],
    responses={
        400: {"description": "잘못된 요청"},
        404: {"description": "대상을 찾을 수 없습니다"},
        409: {"description": "슬러그 중복"},
        500: {"description": "서버 내부 오류"}
    }
)


def _handle_error(action: str, e: Exception) -> HTTPException:
    """서비스 예외 → HTTP 에러"""
    if isinstance(e, (IPONotFoundError, BrokerNotFoundError)):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, DuplicateSlugError):
        return HTTPException(status_code=409, detail=str(e))
    if isinstance(e, ValueError):
        return HTTPException(status_code=400, detail=f"잘못된 요청: {str(e)}")
    logger.error(f"{action} 실패: {str(e)}", exc_info=True)
    return HTTPException(status_code=500, detail=f"{action} 중 오류가 발생했습니다")


# =========================
# IPO
# =========================

@router.get("/ipos", response_model=IPOListResponse, summary="관리자 IPO 목록")
async def admin_list_ipos(
    search: Optional[str] = None,
    status: Optional[str] = None,
    db: Session = Depends(get_db),
    clock: RequestClock = Depends(get_request_clock),
):
    """관리자 대시보드 목록 (캐시 미사용, 최신 등록순)"""
    try:
        options = ListingFilter(search_text=search, status_filter=status)
        items = IPOListingService(db).get_listing(options, today=clock.today, now=clock.now)
        return IPOListResponse(items=items, total_count=len(items), status=status, search=search)
    except Exception as e:
        raise _handle_error("관리자 IPO 목록 조회", e)


@router.post("/ipos", response_model=IPORecord, status_code=201, summary="IPO 등록")
async def admin_create_ipo(
    payload: IPOCreate,
    db: Session = Depends(get_db),
    cache: Optional[SnapshotCache] = Depends(get_snapshot_cache),
    clock: RequestClock = Depends(get_request_clock),
):
    """
    **IPO 등록**

    - 슬러그는 회사명으로 자동 생성 ("{name}-ipo", 중복 시 -2, -3 ...)
    - GMP 가 입력되면 첫 GMP 이력도 함께 기록
    """
    try:
        ipo = IPOAdminService(db, cache).create_ipo(payload, now=clock.now)
        return IPORecord.model_validate(ipo)
    except Exception as e:
        raise _handle_error("IPO 등록", e)


@router.put("/ipos/{ipo_id}", response_model=IPORecord, summary="IPO 수정")
async def admin_update_ipo(
    payload: IPOUpdate,
    ipo_id: int = Path(..., ge=1, description="IPO ID"),
    db: Session = Depends(get_db),
    cache: Optional[SnapshotCache] = Depends(get_snapshot_cache),
    clock: RequestClock = Depends(get_request_clock),
):
    """
    **IPO 수정**

    보낸 필드만 반영합니다. 슬러그는 바뀌지 않습니다.
    GMP 가 이전 값과 다를 때만 GMP 이력이 추가됩니다.
    """
    try:
        ipo, _ = IPOAdminService(db, cache).update_ipo(ipo_id, payload, now=clock.now)
        return IPORecord.model_validate(ipo)
    except Exception as e:
        raise _handle_error("IPO 수정", e)


@router.patch("/ipos/{ipo_id}/gmp", response_model=GmpUpdateResponse, summary="GMP 갱신")
async def admin_update_gmp(
    payload: GmpUpdate,
    ipo_id: int = Path(..., ge=1, description="IPO ID"),
    db: Session = Depends(get_db),
    cache: Optional[SnapshotCache] = Depends(get_snapshot_cache),
    clock: RequestClock = Depends(get_request_clock),
):
    """GMP 만 갱신 (외부 GMP 갱신 작업용)"""
    try:
        ipo, recorded = IPOAdminService(db, cache).update_gmp(ipo_id, payload.gmp, now=clock.now)
        return GmpUpdateResponse(ipo_id=ipo.id, gmp=float(ipo.gmp), history_recorded=recorded)
    except Exception as e:
        raise _handle_error("GMP 갱신", e)


@router.delete("/ipos/{ipo_id}", summary="IPO 삭제")
async def admin_delete_ipo(
    ipo_id: int = Path(..., ge=1, description="IPO ID"),
    db: Session = Depends(get_db),
    cache: Optional[SnapshotCache] = Depends(get_snapshot_cache),
):
    """IPO 삭제 (GMP 이력 포함)"""
    try:
        IPOAdminService(db, cache).delete_ipo(ipo_id)
        return {"success": True, "message": f"IPO {ipo_id} 삭제 완료"}
    except Exception as e:
        raise _handle_error("IPO 삭제", e)


@router.get("/stats", response_model=AdminStatistics, summary="관리자 통계")
async def admin_statistics(
    db: Session = Depends(get_db),
    clock: RequestClock = Depends(get_request_clock),
):
    """전체/청약 중/상장 IPO 수, 증권사 수, 평균 GMP"""
    try:
        return IPOAdminService(db).get_statistics(today=clock.today, now=clock.now)
    except Exception as e:
        raise _handle_error("관리자 통계 조회", e)


# =========================
# 증권사
# =========================

@router.get("/brokers", response_model=BrokerListResponse, summary="관리자 증권사 목록")
async def admin_list_brokers(db: Session = Depends(get_db)):
    try:
        brokers = BrokerService(db).get_all_brokers()
        return BrokerListResponse(
            items=[BrokerResponse.model_validate(b) for b in brokers],
            total_count=len(brokers)
        )
    except Exception as e:
        raise _handle_error("관리자 증권사 목록 조회", e)


@router.post("/brokers", response_model=BrokerResponse, status_code=201, summary="증권사 등록")
async def admin_create_broker(payload: BrokerCreate, db: Session = Depends(get_db)):
    try:
        broker = BrokerService(db).create_broker(payload)
        return BrokerResponse.model_validate(broker)
    except Exception as e:
        raise _handle_error("증권사 등록", e)


@router.put("/brokers/{broker_id}", response_model=BrokerResponse, summary="증권사 수정")
async def admin_update_broker(
    payload: BrokerUpdate,
    broker_id: int = Path(..., ge=1, description="증권사 ID"),
    db: Session = Depends(get_db),
):
    try:
        broker = BrokerService(db).update_broker(broker_id, payload)
        return BrokerResponse.model_validate(broker)
    except Exception as e:
        raise _handle_error("증권사 수정", e)


@router.delete("/brokers/{broker_id}", summary="증권사 삭제")
async def admin_delete_broker(
    broker_id: int = Path(..., ge=1, description="증권사 ID"),
    db: Session = Depends(get_db),
):
    try:
        BrokerService(db).delete_broker(broker_id)
        return {"success": True, "message": f"증권사 {broker_id} 삭제 완료"}
    except Exception as e:
        raise _handle_error("증권사 삭제", e)
