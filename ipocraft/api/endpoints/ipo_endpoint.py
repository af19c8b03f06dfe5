# ipocraft/api/endpoints/ipo_endpoint.py
from fastapi import APIRouter, Depends, HTTPException, Query, Path
from sqlalchemy.orm import Session
from typing import Optional
import logging

from ipocraft.schemas.ipo_schema import IPODetailResponse, IPOListResponse, SortKey
from ipocraft.services.cache_service import SnapshotCache
from ipocraft.services.exceptions import IPONotFoundError
from ipocraft.services.ipo_listing_service import IPOListingService, ListingFilter
from ipocraft.dependencies import get_db, get_snapshot_cache, get_request_clock, RequestClock

logger = logging.getLogger(__name__)

# IPO 라우터 생성
router = APIRouter(
    tags=["IPO"],
    responses={
        404: {"description": "요청한 IPO 를 찾을 수 없습니다"},
        500: {"description": "서버 내부 오류"}
    }
)


def _listing_response(
    db: Session,
    cache: Optional[SnapshotCache],
    clock: RequestClock,
    options: ListingFilter,
    limit: Optional[int],
) -> IPOListResponse:
    service = IPOListingService(db, cache)
    items = service.get_listing(options, today=clock.today, now=clock.now, limit=limit)
    return IPOListResponse(
        items=items,
        total_count=len(items),
        status=options.status_filter,
        ipo_type=options.type_filter,
        sort=options.sort_key,
        active_only=options.active_only,
        search=options.search_text,
    )


@router.get(
    "/",
    response_model=IPOListResponse,
    summary="IPO 목록",
    description="최신 등록순 IPO 목록. 상태(날짜 기준 계산)/유형/검색어 필터를 지원합니다."
)
async def list_ipos(
    status: Optional[str] = Query(None, description="Upcoming | Open | Closed | Listed | All"),
    type: Optional[str] = Query(None, description="mainboard | sme"),
    search: Optional[str] = Query(None, description="이름/슬러그 검색"),
    limit: Optional[int] = Query(None, ge=1, le=500, description="최대 조회 개수"),
    db: Session = Depends(get_db),
    cache: Optional[SnapshotCache] = Depends(get_snapshot_cache),
    clock: RequestClock = Depends(get_request_clock),
):
    """
    **IPO 목록**

    - 상태 필터는 저장된 status 가 아니라 날짜로 계산한 상태 기준
    - 각 항목에 배정 배지, GMP 추세 포함
    """
    try:
        options = ListingFilter(search_text=search, status_filter=status, type_filter=type)
        return _listing_response(db, cache, clock, options, limit)

    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"잘못된 요청: {str(e)}")
    except Exception as e:
        logger.error(f"IPO 목록 조회 실패: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="IPO 목록 조회 중 오류가 발생했습니다")


@router.get(
    "/gmp",
    response_model=IPOListResponse,
    summary="GMP 테이블",
    description="GMP 페이지용 목록. 정렬(gmp/sub/closing)과 청약 중만 보기 옵션을 지원합니다."
)
async def get_gmp_table(
    status: Optional[str] = Query(None, description="upcoming | open | closed | listed"),
    sort: Optional[SortKey] = Query(None, description="gmp: GMP 높은 순, sub: 청약 배수 높은 순, closing: 마감 임박 순"),
    active: bool = Query(False, description="true 면 청약 중(Open)만"),
    type: Optional[str] = Query(None, description="mainboard | sme"),
    search: Optional[str] = Query(None, description="이름/슬러그 검색"),
    db: Session = Depends(get_db),
    cache: Optional[SnapshotCache] = Depends(get_snapshot_cache),
    clock: RequestClock = Depends(get_request_clock),
):
    """
    **GMP 테이블**

    사용 예시:
    GET /api/v1/ipos/gmp?sort=gmp
    GET /api/v1/ipos/gmp?status=open&type=sme
    GET /api/v1/ipos/gmp?active=1&sort=closing
    """
    try:
        options = ListingFilter(
            search_text=search,
            status_filter=status,
            type_filter=type,
            active_only=active,
            sort_key=sort,
        )
        return _listing_response(db, cache, clock, options, None)

    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"잘못된 요청: {str(e)}")
    except Exception as e:
        logger.error(f"GMP 테이블 조회 실패: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="GMP 테이블 조회 중 오류가 발생했습니다")


@router.get(
    "/{slug}",
    response_model=IPODetailResponse,
    summary="IPO 상세",
    description="슬러그로 IPO 상세를 조회합니다. GMP 추세와 차트용 시계열을 포함합니다."
)
async def get_ipo_detail(
    slug: str = Path(..., description="IPO 슬러그", example="tata-technologies-ipo"),
    db: Session = Depends(get_db),
    clock: RequestClock = Depends(get_request_clock),
):
    try:
        service = IPOListingService(db)
        return service.get_detail(slug, today=clock.today, now=clock.now)

    except IPONotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"잘못된 요청: {str(e)}")
    except Exception as e:
        logger.error(f"IPO 상세 조회 실패: {slug} - {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="IPO 상세 조회 중 오류가 발생했습니다")
