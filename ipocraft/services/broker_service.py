# ipocraft/services/broker_service.py
from sqlalchemy.orm import Session
from typing import List
import logging

from ipocraft.models.broker_model import Broker
from ipocraft.schemas.broker_schema import BrokerCreate, BrokerUpdate
from ipocraft.services.exceptions import BrokerNotFoundError, DuplicateSlugError
from ipocraft.utils.slug import generate_slug

logger = logging.getLogger(__name__)


class BrokerService:
    """증권사 비교 목록 서비스"""

    def __init__(self, db: Session):
        self.db = db

    def get_active_brokers(self) -> List[Broker]:
        """공개 목록 (노출 중인 것만, sort_order 오름차순)"""
        return (
            self.db.query(Broker)
            .filter(Broker.is_active.is_(True))
            .order_by(Broker.sort_order.asc(), Broker.id.asc())
            .all()
        )

    def get_all_brokers(self) -> List[Broker]:
        """관리자 목록 (비활성 포함)"""
        return self.db.query(Broker).order_by(Broker.sort_order.asc(), Broker.id.asc()).all()

    def _get_or_raise(self, broker_id: int) -> Broker:
        broker = self.db.get(Broker, broker_id)
        if broker is None:
            raise BrokerNotFoundError(f"증권사를 찾을 수 없습니다: id={broker_id}")
        return broker

    def _ensure_slug_free(self, slug: str, exclude_id: int = None) -> None:
        query = self.db.query(Broker.id).filter(Broker.slug == slug)
        if exclude_id is not None:
            query = query.filter(Broker.id != exclude_id)
        if query.first() is not None:
            raise DuplicateSlugError(f"이미 사용 중인 슬러그입니다: {slug}")

    def create_broker(self, payload: BrokerCreate) -> Broker:
        slug = payload.slug or generate_slug(payload.name)
        if not slug:
            raise ValueError("슬러그를 만들 수 없습니다")
        self._ensure_slug_free(slug)

        broker = Broker(**payload.model_dump(exclude={"slug"}), slug=slug)
        try:
            self.db.add(broker)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(broker)
        logger.info(f"✅ 증권사 등록: id={broker.id} slug={broker.slug}")
        return broker

    def update_broker(self, broker_id: int, payload: BrokerUpdate) -> Broker:
        broker = self._get_or_raise(broker_id)
        data = payload.model_dump(include=payload.model_fields_set)

        # 이름/슬러그/정렬/노출 여부는 None 이면 기존 값 유지
        for key in ("name", "slug", "sort_order", "is_active"):
            if key in data and data[key] is None:
                data.pop(key)
        if "slug" in data:
            self._ensure_slug_free(data["slug"], exclude_id=broker_id)

        for key, value in data.items():
            setattr(broker, key, value)
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(broker)
        logger.info(f"✅ 증권사 수정: id={broker.id}")
        return broker

    def delete_broker(self, broker_id: int) -> None:
        broker = self._get_or_raise(broker_id)
        try:
            self.db.delete(broker)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        logger.info(f"🗑️ 증권사 삭제: id={broker_id}")
