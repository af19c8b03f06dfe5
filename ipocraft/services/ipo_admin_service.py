# ipocraft/services/ipo_admin_service.py
from sqlalchemy.orm import Session
from sqlalchemy import func
from typing import Optional, Tuple
from datetime import date, datetime
import logging

from ipocraft.models.ipo_model import IPO
from ipocraft.models.gmp_history_model import GmpHistory
from ipocraft.models.broker_model import Broker
from ipocraft.schemas.ipo_schema import (
    AdminStatistics,
    IPOCreate,
    IPOStatus,
    IPOType,
    IPOUpdate,
    IPOWriteBase,
)
from ipocraft.services.cache_service import SnapshotCache
from ipocraft.services.exceptions import IPONotFoundError
from ipocraft.services.ipo_listing_service import IPOListingService
from ipocraft.utils.gmp_trend import plan_gmp_history_point
from ipocraft.utils.slug import generate_slug, unique_slug
from ipocraft.utils.timezone_utils import TimezoneHelper

logger = logging.getLogger(__name__)

IPO_SLUG_SUFFIX = "-ipo"


class IPOAdminService:
    """
    관리자 IPO 등록/수정/삭제 서비스

    - 슬러그는 등록 시에만 생성 (수정 시 절대 재생성하지 않음)
    - GMP 값이 실제로 바뀐 경우에만 gmp_history 에 1건 추가
    - 모든 쓰기 후 스냅샷 캐시 삭제
    """

    def __init__(self, db: Session, cache: Optional[SnapshotCache] = None):
        self.db = db
        self.cache = cache

    def _get_or_raise(self, ipo_id: int) -> IPO:
        ipo = self.db.get(IPO, ipo_id)
        if ipo is None:
            raise IPONotFoundError(f"IPO를 찾을 수 없습니다: id={ipo_id}")
        return ipo

    def _slug_exists(self, slug: str) -> bool:
        return self.db.query(IPO.id).filter(IPO.slug == slug).first() is not None

    def _apply_fields(self, ipo: IPO, payload: IPOWriteBase, fields: set) -> None:
        """요청 필드를 ORM 객체에 반영 (allotment_status 'out' → allotment_out)"""
        data = payload.model_dump(include=fields)
        if "ipo_type" in data and data["ipo_type"] is not None:
            data["ipo_type"] = IPOType(data["ipo_type"]).value

        for key, value in data.items():
            if key == "ipo_type" and value is None:
                continue
            setattr(ipo, key, value)

        if "allotment_status" in data and "allotment_out" not in data:
            ipo.allotment_out = (data["allotment_status"] or "").lower() == "out"
        if ipo.allotment_out is None:
            ipo.allotment_out = False

    def _record_gmp_change(self, ipo: IPO, previous_gmp, now: datetime) -> bool:
        point = plan_gmp_history_point(ipo.id, previous_gmp, ipo.gmp, now)
        if point is None:
            return False
        self.db.add(GmpHistory(ipo_id=point.ipo_id, gmp=point.gmp, created_at=point.observed_at))
        logger.info(f"📈 GMP 이력 추가: ipo_id={ipo.id} {previous_gmp} → {point.gmp}")
        return True

    def _invalidate_cache(self) -> None:
        if self.cache is not None:
            self.cache.invalidate()

    @staticmethod
    def _history_timestamp(now: Optional[datetime]) -> datetime:
        # gmp_history.created_at 은 naive UTC 로 저장
        now = now or TimezoneHelper.now_utc()
        return TimezoneHelper.ensure_utc(now).replace(tzinfo=None)

    # =========================
    # 쓰기
    # =========================

    def create_ipo(self, payload: IPOCreate, now: Optional[datetime] = None) -> IPO:
        """IPO 등록 (GMP 가 있으면 첫 이력도 함께 기록)"""
        now = self._history_timestamp(now)
        base_slug = generate_slug(payload.name, IPO_SLUG_SUFFIX)
        if base_slug == IPO_SLUG_SUFFIX:
            raise ValueError("회사명으로 슬러그를 만들 수 없습니다")

        ipo = IPO(
            name=payload.name,
            slug=unique_slug(base_slug, self._slug_exists),
            ipo_type=IPOType.MAINBOARD.value,
            created_at=now,
            updated_at=now,
        )
        self._apply_fields(ipo, payload, payload.model_fields_set)

        try:
            self.db.add(ipo)
            self.db.flush()
            self._record_gmp_change(ipo, None, now)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(ipo)
        self._invalidate_cache()
        logger.info(f"✅ IPO 등록: id={ipo.id} slug={ipo.slug}")
        return ipo

    def update_ipo(self, ipo_id: int, payload: IPOUpdate, now: Optional[datetime] = None) -> Tuple[IPO, bool]:
        """
        IPO 수정 (보낸 필드만)

        Returns:
            (IPO, GMP 이력 추가 여부)
        """
        now = self._history_timestamp(now)
        ipo = self._get_or_raise(ipo_id)
        previous_gmp = ipo.gmp

        self._apply_fields(ipo, payload, payload.model_fields_set)
        ipo.updated_at = now

        try:
            recorded = self._record_gmp_change(ipo, previous_gmp, now)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(ipo)
        self._invalidate_cache()
        logger.info(f"✅ IPO 수정: id={ipo.id} slug={ipo.slug}")
        return ipo, recorded

    def update_gmp(self, ipo_id: int, gmp: float, now: Optional[datetime] = None) -> Tuple[IPO, bool]:
        """GMP 만 갱신 (외부 GMP 갱신 작업이 호출)"""
        return self.update_ipo(ipo_id, IPOUpdate(gmp=gmp), now=now)

    def delete_ipo(self, ipo_id: int) -> None:
        """IPO 삭제 (GMP 이력도 함께 삭제)"""
        ipo = self._get_or_raise(ipo_id)
        try:
            self.db.delete(ipo)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self._invalidate_cache()
        logger.info(f"🗑️ IPO 삭제: id={ipo_id}")

    # =========================
    # 통계
    # =========================

    def get_statistics(self, today: Optional[date] = None, now: Optional[datetime] = None) -> AdminStatistics:
        """관리자 대시보드 통계 (상태는 날짜로 계산한 값 기준)"""
        views = IPOListingService(self.db).get_views(today=today, now=now)
        total = len(views)
        active = sum(1 for v in views if v.lifecycle_status == IPOStatus.OPEN)
        listed = sum(1 for v in views if v.lifecycle_status == IPOStatus.LISTED)
        avg_gmp = sum(v.gmp or 0 for v in views) / (total or 1)
        total_brokers = self.db.query(func.count(Broker.id)).scalar() or 0

        return AdminStatistics(
            total_ipos=total,
            active_ipos=active,
            listed_ipos=listed,
            total_brokers=total_brokers,
            avg_gmp=round(avg_gmp, 2),
        )
