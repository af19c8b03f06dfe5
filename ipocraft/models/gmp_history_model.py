# ipocraft/models/gmp_history_model.py
from sqlalchemy import Column, Integer, Numeric, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship
from datetime import datetime

from ipocraft.models.base import BaseModel


class GmpHistory(BaseModel):
    """
    GMP 이력 테이블 ORM 모델

    실제 테이블명: gmp_history
    관리자가 GMP 값을 바꿀 때마다 한 줄씩 추가됩니다 (수정/삭제 없음).
    """
    __tablename__ = "gmp_history"

    id = Column(Integer, primary_key=True, autoincrement=True,
                comment="자동 증가 Primary Key")
    ipo_id = Column(Integer, ForeignKey("ipos.id", ondelete="CASCADE"), nullable=False,
                    comment="IPO ID")
    gmp = Column(Numeric(12, 2), nullable=False,
                 comment="관측된 GMP")
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow,
                        comment="관측 시간 (UTC)")

    ipo = relationship("IPO", back_populates="gmp_history")

    __table_args__ = (
        Index("idx_gmp_history_ipo_created", "ipo_id", "created_at"),
    )

    def __repr__(self):
        return f"<GmpHistory(ipo_id={self.ipo_id}, gmp={self.gmp}, created_at={self.created_at})>"

    def to_dict(self):
        """딕셔너리로 변환"""
        return {
            "ipo_id": self.ipo_id,
            "gmp": float(self.gmp) if self.gmp is not None else None,
            "observed_at": self.created_at.isoformat() if self.created_at else None,
        }
