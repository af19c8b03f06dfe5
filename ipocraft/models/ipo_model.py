# ipocraft/models/ipo_model.py
from sqlalchemy import Column, String, Date, Numeric, DateTime, Integer, Boolean, Text, Index
from sqlalchemy.orm import relationship
from datetime import datetime

from ipocraft.models.base import BaseModel


class IPO(BaseModel):
    """IPO 테이블 모델 (Mainboard / SME)"""

    __tablename__ = "ipos"

    # 기본 키 (자동 증가)
    id = Column(Integer, primary_key=True, autoincrement=True, comment="고유 ID")

    # 기본 정보
    name = Column(String(255), nullable=False, comment="회사명")
    slug = Column(String(255), nullable=False, unique=True, index=True, comment="URL 슬러그 (생성 시 1회만 발급)")
    exchange = Column(String(50), nullable=True, comment="거래소 (NSE, BSE 등)")
    sector = Column(String(100), nullable=True, comment="업종")
    ipo_type = Column(String(20), nullable=False, default="mainboard", comment="mainboard | sme")
    status = Column(String(30), nullable=True, comment="관리자가 입력한 상태 (날짜 정보가 없을 때만 사용)")

    # 가격 정보
    price_min = Column(Numeric(12, 2), nullable=True, comment="공모가 하단")
    price_max = Column(Numeric(12, 2), nullable=True, comment="공모가 상단")
    lot_size = Column(Integer, nullable=True, comment="최소 청약 주식 수")
    gmp = Column(Numeric(12, 2), nullable=True, comment="최신 GMP 스냅샷")
    issue_size = Column(String(100), nullable=True, comment="공모 규모 (표시용)")

    # 일정
    open_date = Column(Date, nullable=True, index=True, comment="청약 시작일")
    close_date = Column(Date, nullable=True, index=True, comment="청약 마감일")
    allotment_date = Column(Date, nullable=True, comment="배정일")
    refund_date = Column(Date, nullable=True, comment="환불일")
    listing_date = Column(Date, nullable=True, comment="상장일")

    # 배정
    allotment_out = Column(Boolean, nullable=False, default=False, comment="배정 결과 공개 여부")
    allotment_status = Column(String(30), nullable=True, comment="배정 상태 텍스트 (out / awaited)")
    allotment_link = Column(String(500), nullable=True, comment="배정 결과 조회 링크")

    # 청약 경쟁률 (숫자 또는 '12.5x' 같은 텍스트)
    sub_total = Column(String(50), nullable=True, comment="전체 청약 배수")
    sub_qib = Column(String(50), nullable=True, comment="QIB 청약 배수")
    sub_nii = Column(String(50), nullable=True, comment="NII 청약 배수")
    sub_rii = Column(String(50), nullable=True, comment="RII 청약 배수")
    sub_bhni = Column(String(50), nullable=True, comment="bHNI 청약 배수")
    sub_shni = Column(String(50), nullable=True, comment="sHNI 청약 배수")
    subscription_updated_at = Column(String(50), nullable=True, comment="청약 현황 갱신 시각 (표시용)")

    # 상장 결과
    listing_price = Column(Numeric(12, 2), nullable=True, comment="상장가")
    listing_gain_percent = Column(Numeric(8, 2), nullable=True, comment="상장 수익률 (%)")

    # 회사 정보
    about_company = Column(Text, nullable=True, comment="회사 소개")
    lead_managers = Column(Text, nullable=True, comment="주관사")
    registrar = Column(String(255), nullable=True, comment="명의개서 대리인")
    objectives = Column(Text, nullable=True, comment="공모 목적")
    company_strengths = Column(Text, nullable=True, comment="강점")
    company_risks = Column(Text, nullable=True, comment="리스크")

    # 지분 / 배정 비율 (%)
    promoter_holding_pre = Column(Numeric(6, 2), nullable=True, comment="공모 전 대주주 지분")
    promoter_holding_post = Column(Numeric(6, 2), nullable=True, comment="공모 후 대주주 지분")
    reservation_qib = Column(Numeric(6, 2), nullable=True, comment="QIB 배정 비율")
    reservation_nii = Column(Numeric(6, 2), nullable=True, comment="NII 배정 비율")
    reservation_rii = Column(Numeric(6, 2), nullable=True, comment="RII 배정 비율")
    reservation_employee = Column(Numeric(6, 2), nullable=True, comment="임직원 배정 비율")

    # 공모 문서 / 발행 정보
    drhp_link = Column(String(500), nullable=True, comment="DRHP 링크")
    rhp_link = Column(String(500), nullable=True, comment="RHP 링크")
    listing_exchange = Column(String(100), nullable=True, comment="상장 거래소")
    face_value = Column(String(50), nullable=True, comment="액면가 (표시용)")
    fresh_issue = Column(String(100), nullable=True, comment="신주 발행 규모 (표시용)")

    # 청약 로트 표
    retail_min_lots = Column(Integer, nullable=True)
    retail_min_shares = Column(Integer, nullable=True)
    retail_min_amount = Column(Numeric(14, 2), nullable=True)
    retail_max_lots = Column(Integer, nullable=True)
    retail_max_shares = Column(Integer, nullable=True)
    retail_max_amount = Column(Numeric(14, 2), nullable=True)
    shni_lots = Column(Integer, nullable=True)
    shni_shares = Column(Integer, nullable=True)
    shni_amount = Column(Numeric(14, 2), nullable=True)
    bhni_lots = Column(Integer, nullable=True)
    bhni_shares = Column(Integer, nullable=True)
    bhni_amount = Column(Numeric(14, 2), nullable=True)

    # 밸류에이션
    eps_pre = Column(Numeric(12, 2), nullable=True, comment="공모 전 EPS")
    eps_post = Column(Numeric(12, 2), nullable=True, comment="공모 후 EPS")
    pe_pre = Column(Numeric(12, 2), nullable=True, comment="공모 전 P/E")
    pe_post = Column(Numeric(12, 2), nullable=True, comment="공모 후 P/E")
    roce = Column(Numeric(8, 2), nullable=True, comment="ROCE (%)")
    debt_equity = Column(Numeric(8, 2), nullable=True, comment="부채비율")
    pat_margin = Column(Numeric(8, 2), nullable=True, comment="순이익률 (%)")
    market_cap = Column(Numeric(16, 2), nullable=True, comment="시가총액 (₹ Cr)")

    # 연락처
    company_address = Column(Text, nullable=True)
    company_phone = Column(String(50), nullable=True)
    company_email = Column(String(255), nullable=True)
    company_website = Column(String(500), nullable=True)
    registrar_phone = Column(String(50), nullable=True)
    registrar_email = Column(String(255), nullable=True)
    registrar_website = Column(String(500), nullable=True)

    # 메타데이터
    created_at = Column(DateTime, default=datetime.utcnow, index=True, comment="생성 시간")
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, comment="수정 시간")

    # GMP 이력 (IPO 삭제 시 함께 삭제)
    gmp_history = relationship(
        "GmpHistory",
        back_populates="ipo",
        cascade="all, delete-orphan",
        order_by="GmpHistory.created_at",
    )

    __table_args__ = (
        Index("idx_ipos_type_open", "ipo_type", "open_date"),
    )

    def __repr__(self):
        return f"<IPO(id={self.id}, slug={self.slug}, type={self.ipo_type}, open={self.open_date})>"
