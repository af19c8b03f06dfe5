from fastapi import FastAPI, Depends, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import logging
import logging.config
import time

from .config import settings, get_log_config
from .database import test_db_connection, create_tables
from .dependencies import verify_db_connection
from .services.cache_service import SnapshotCache

# 로깅 설정
logging.config.dictConfig(get_log_config())
logger = logging.getLogger(__name__)

# =========================
# FastAPI 생명주기 관리
# =========================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    FastAPI 앱 생명주기 관리

    시작 시: 테이블 확인, 스냅샷 캐시(Redis) 연결
    종료 시: Redis 연결 정리
    """
    logger.info("=" * 60)
    logger.info(f"🚀 {settings.app_name} 시작")
    logger.info("=" * 60)

    # 1. 테이블 생성/확인
    if settings.auto_create_tables:
        create_tables()
        logger.info("✅ [1/2] 테이블 확인")
    else:
        logger.info("⏭️ [1/2] 테이블 자동 생성 비활성화")

    # 2. 스냅샷 캐시 (Redis 없으면 DB 직접 조회)
    app.state.snapshot_cache = None
    if settings.cache_enabled:
        app.state.snapshot_cache = SnapshotCache.from_url(
            settings.redis_connection_url,
            ttl_seconds=settings.cache_ttl_seconds
        )
    cache_state = "enabled" if app.state.snapshot_cache else "disabled"
    logger.info(f"✅ [2/2] 스냅샷 캐시: {cache_state}")

    yield

    # ========================================
    # 종료 처리
    # ========================================
    logger.info("🛑 앱 종료 - 리소스 정리")
    if app.state.snapshot_cache:
        app.state.snapshot_cache.close()
        logger.info("✅ Redis 연결 종료")

# =========================
# FastAPI 애플리케이션 생성
# =========================

app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="IPOCraft API - IPO GMP, subscription, calendar and broker comparison",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
    redirect_slashes=False
)

# =========================
# CORS 설정
# =========================

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

# =========================
# 미들웨어
# =========================

@app.middleware("http")
async def api_logging_middleware(request: Request, call_next):
    """API 요청/응답 로깅"""
    start_time = time.time()

    client_ip = request.client.host if request.client else "unknown"
    method = request.method
    url = str(request.url)

    logger.info(f"📥 {method} {url} - IP: {client_ip}")

    try:
        response = await call_next(request)
        process_time = time.time() - start_time

        status_emoji = "✅" if response.status_code < 400 else "❌"
        logger.info(f"{status_emoji} {method} {url} - {response.status_code} ({process_time:.3f}s)")

        return response

    except Exception as e:
        process_time = time.time() - start_time
        logger.error(f"💥 {method} {url} - ERROR ({process_time:.3f}s): {str(e)}")
        raise

# =========================
# 기본 엔드포인트
# =========================

@app.get("/", tags=["Root"])
async def root():
    """루트 경로 - API 정보"""
    return {
        "message": f"Welcome to {settings.app_name}!",
        "version": settings.app_version,
        "docs": "/docs",
        "endpoints": {
            "rest_api": f"{settings.api_v1_prefix}/*",
            "health": "/health"
        },
        "status": "running"
    }

@app.get("/health", tags=["Health"])
async def health_check():
    """헬스체크"""
    db_status = "connected" if test_db_connection() else "disconnected"

    return {
        "status": "healthy" if db_status == "connected" else "unhealthy",
        "app_name": settings.app_name,
        "version": settings.app_version,
        "database": db_status,
    }

@app.get("/health/detailed", tags=["Health"])
async def detailed_health_check(request: Request, _: None = Depends(verify_db_connection)):
    """상세 헬스체크"""
    cache = getattr(request.app.state, "snapshot_cache", None)

    return {
        "status": "healthy",
        "app_name": settings.app_name,
        "version": settings.app_version,
        "database": "connected",
        "cache": cache.get_status() if cache else "disabled",
    }

# =========================
# API 라우터 등록
# =========================

from .api.api_v1 import api_router

app.include_router(api_router, prefix=settings.api_v1_prefix)

# =========================
# 전역 예외 처리
# =========================

@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """전역 예외 처리기"""
    logger.error(f"예상하지 못한 에러: {str(exc)}", exc_info=True)

    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal Server Error",
            "detail": str(exc) if settings.debug else "서버 오류가 발생했습니다.",
            "type": type(exc).__name__
        }
    )

# =========================
# 디버그 엔드포인트 (개발 환경)
# =========================

if settings.debug:
    @app.get("/debug/info", tags=["Debug"])
    async def debug_info():
        """디버그 정보"""
        return {
            "settings": {
                "db_host": settings.db_host,
                "db_port": settings.db_port,
                "db_name": settings.db_name,
                "debug": settings.debug,
                "log_level": settings.log_level,
                "market_timezone": settings.market_timezone,
                "cache_ttl_seconds": settings.cache_ttl_seconds,
            },
        }
