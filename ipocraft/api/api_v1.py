from fastapi import APIRouter
from ipocraft.config import settings

# 도메인별 엔드포인트 라우터 imports
from .endpoints import (
    # IPO
    ipo_endpoint,
    ipo_calendar_endpoint,

    # 증권사 비교
    broker_endpoint,

    # 관리자
    admin_endpoint,
)

# API v1 메인 라우터 생성
api_router = APIRouter()

# 라우터 설정 구성 (각 도메인의 prefix, 설명, 카테고리 지정)
ROUTER_CONFIGS = [
    # IPO API
    {
        "router": ipo_endpoint.router,
        "prefix": "/ipos",
        "tag": "IPO",
        "category": "IPO",
        "description": "IPO 목록 / GMP 테이블 / IPO 상세 (상태, 배정 배지, GMP 추세 포함)"
    },
    {
        "router": ipo_calendar_endpoint.router,
        "prefix": "/ipo-calendar",
        "tag": "IPO Calendar",
        "category": "IPO",
        "description": "IPO 캘린더 API - 상태별 일정, 월별 일정, 통계"
    },

    # 증권사 API
    {
        "router": broker_endpoint.router,
        "prefix": "/brokers",
        "tag": "Brokers",
        "category": "증권사",
        "description": "증권사 수수료 비교 목록"
    },

    # 관리자 API
    {
        "router": admin_endpoint.router,
        "prefix": "/admin",
        "tag": "Admin",
        "category": "관리자",
        "description": "IPO / 증권사 등록·수정·삭제, GMP 갱신, 대시보드 통계"
    },
]

# 라우터 등록 (각 엔드포인트 모듈의 자체 태그 사용)
for config in ROUTER_CONFIGS:
    api_router.include_router(
        config["router"],
        prefix=config["prefix"],
    )


# ========== API 정보 엔드포인트 ==========

@api_router.get("/", tags=["API Info"], summary="API v1 정보")
async def api_v1_info():
    """
    API v1 기본 정보와 사용 가능한 엔드포인트 목록을 반환합니다.

    Returns:
        dict: API 버전, 설명, 사용 가능한 엔드포인트 목록
    """
    available_endpoints = {}
    for config in ROUTER_CONFIGS:
        key = config["prefix"].lstrip("/") or "root"
        available_endpoints[key] = {
            "description": config["description"],
            "prefix": f"{settings.api_v1_prefix}{config['prefix']}",
            "tag": config.get("tag"),
            "category": config.get("category"),
        }

    # 카테고리 매핑
    categories = {}
    for config in ROUTER_CONFIGS:
        categories.setdefault(config["category"], []).append(config["prefix"].lstrip("/"))

    return {
        "service": settings.app_name,
        "version": settings.app_version,
        "description": "IPO 정보 포털 API (GMP, 청약 현황, 일정, 증권사 비교)",
        "base_url": settings.api_v1_prefix,
        "total_endpoints": len(ROUTER_CONFIGS),
        "categories": categories,
        "available_endpoints": available_endpoints,
        "documentation": {
            "swagger_ui": "/docs",
            "redoc": "/redoc",
            "openapi_json": "/openapi.json"
        }
    }


@api_router.get("/health", tags=["API Info"], summary="API 상태 확인")
async def health_check():
    """
    API 서버의 상태를 확인합니다.
    """
    return {
        "status": "healthy",
        "service": settings.app_name,
        "version": settings.app_version,
        "timezone": settings.market_timezone,
        "docs": "/docs",
    }
