# ipocraft/models/broker_model.py
from sqlalchemy import Column, Integer, String, Boolean, DateTime, Text, Index
from sqlalchemy.sql import func

from ipocraft.models.base import BaseModel


class Broker(BaseModel):
    """
    증권사 비교 테이블 ORM 모델

    수수료 필드는 모두 표시용 문자열입니다 ("₹20/order", "Free" 등).
    """
    __tablename__ = "brokers"

    id = Column(Integer, primary_key=True, autoincrement=True,
                comment="자동 증가 Primary Key")
    name = Column(String(255), nullable=False,
                  comment="증권사명")
    slug = Column(String(255), nullable=False, unique=True,
                  comment="URL 슬러그")
    logo_url = Column(String(500), nullable=True,
                      comment="로고 URL")

    # 수수료 (표시용)
    account_opening = Column(String(100), nullable=True, comment="계좌 개설 비용")
    account_maintenance = Column(String(100), nullable=True, comment="계좌 유지 비용")
    equity_delivery = Column(String(100), nullable=True, comment="현물 수수료")
    equity_intraday = Column(String(100), nullable=True, comment="당일매매 수수료")
    futures = Column(String(100), nullable=True, comment="선물 수수료")
    options = Column(String(100), nullable=True, comment="옵션 수수료")

    cta_url = Column(String(500), nullable=True,
                     comment="계좌 개설 링크")
    notes = Column(Text, nullable=True,
                   comment="비고")
    sort_order = Column(Integer, nullable=False, default=0,
                        comment="정렬 순서 (오름차순)")
    is_active = Column(Boolean, nullable=False, default=True,
                       comment="노출 여부")

    created_at = Column(DateTime, nullable=False, server_default=func.now(),
                        comment="생성 시간")

    __table_args__ = (
        Index("idx_brokers_active_sort", "is_active", "sort_order"),
    )

    def __repr__(self):
        return f"<Broker(id={self.id}, slug='{self.slug}', sort_order={self.sort_order}, is_active={self.is_active})>"
