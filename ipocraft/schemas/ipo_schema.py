# ipocraft/schemas/ipo_schema.py
from pydantic import BaseModel, Field, field_validator
from typing import Any, List, Optional
from datetime import date, datetime
from enum import Enum

from ipocraft.utils.coercion import coerce_flag, to_nullable_number, to_nullable_text


# =========================
# 열거형
# =========================

class IPOType(str, Enum):
    """상장 시장 구분"""
    MAINBOARD = "mainboard"
    SME = "sme"


class IPOStatus(str, Enum):
    """날짜로 계산한 IPO 진행 상태"""
    UPCOMING = "Upcoming"
    OPEN = "Open"
    CLOSED = "Closed"
    LISTED = "Listed"


class AllotmentBadge(str, Enum):
    """배정 배지"""
    ALLOTMENT_OUT = "Allotment Out"
    ALLOTMENT_AWAITED = "Allotment Awaited"


class TrendDirection(str, Enum):
    UP = "up"
    DOWN = "down"


class SortKey(str, Enum):
    """GMP 테이블 정렬 기준"""
    GMP = "gmp"
    SUB = "sub"
    CLOSING = "closing"


_NUMERIC_FIELDS = ("price_min", "price_max", "gmp", "listing_price", "listing_gain_percent")
_SUBSCRIPTION_FIELDS = ("sub_total", "sub_qib", "sub_nii", "sub_rii", "sub_bhni", "sub_shni")
_TEXT_FIELDS = (
    "exchange", "sector", "status", "issue_size", "allotment_status", "allotment_link",
    "subscription_updated_at", "about_company", "lead_managers", "registrar",
)
_DATE_FIELDS = ("open_date", "close_date", "allotment_date", "refund_date", "listing_date")

# 상세 페이지 공시 항목
_DISCLOSURE_NUMERIC_FIELDS = (
    "promoter_holding_pre", "promoter_holding_post",
    "reservation_qib", "reservation_nii", "reservation_rii", "reservation_employee",
    "retail_min_amount", "retail_max_amount", "shni_amount", "bhni_amount",
    "eps_pre", "eps_post", "pe_pre", "pe_post", "roce", "debt_equity", "pat_margin", "market_cap",
)
_DISCLOSURE_COUNT_FIELDS = (
    "retail_min_lots", "retail_min_shares", "retail_max_lots", "retail_max_shares",
    "shni_lots", "shni_shares", "bhni_lots", "bhni_shares",
)
_DISCLOSURE_TEXT_FIELDS = (
    "objectives", "company_strengths", "company_risks",
    "drhp_link", "rhp_link", "listing_exchange", "face_value", "fresh_issue",
    "company_address", "company_phone", "company_email", "company_website",
    "registrar_phone", "registrar_email", "registrar_website",
)


def _blank_to_none(v):
    if isinstance(v, str) and not v.strip():
        return None
    return v


def _subscription_text(v):
    """청약 배수는 숫자/텍스트 모두 허용, 문자열로 보관"""
    if v is None or isinstance(v, bool):
        return None
    if isinstance(v, float) and v.is_integer():
        v = int(v)
    return to_nullable_text(v)


# =========================
# GMP
# =========================

class GmpHistoryPoint(BaseModel):
    """GMP 관측값 1건"""
    ipo_id: int = Field(..., description="IPO ID", example=12)
    gmp: Optional[float] = Field(None, description="관측된 GMP (숫자가 아니면 None)", example=120.0)
    observed_at: Optional[datetime] = Field(None, description="관측 시간")

    model_config = {"from_attributes": True}

    @field_validator('gmp', mode='before')
    @classmethod
    def parse_gmp(cls, v):
        """숫자가 아닌 값은 None (추세 계산에서 제외)"""
        return to_nullable_number(v)

    @classmethod
    def from_orm_row(cls, row) -> "GmpHistoryPoint":
        """gmp_history 행 → 관측값"""
        return cls(ipo_id=row.ipo_id, gmp=row.gmp, observed_at=row.created_at)


class GmpTrend(BaseModel):
    """GMP 추세 요약 (화면 표시용)"""
    latest: Optional[float] = Field(None, description="최신 GMP (이력 없으면 IPO의 gmp 값)")
    previous: Optional[float] = Field(None, description="직전 GMP")
    change_percent: Optional[float] = Field(None, description="직전 대비 변화율 (%)")
    trend_direction: Optional[TrendDirection] = Field(None, description="up | down")
    high: Optional[float] = Field(None, description="이력 최고값")
    low: Optional[float] = Field(None, description="이력 최저값")
    percent_vs_issue_price: Optional[float] = Field(None, description="공모가 대비 GMP 비율 (%)")
    last_updated_at: Optional[datetime] = Field(None, description="최신 관측 시간")
    last_updated_relative: str = Field("Updated —", description="상대 시간 문구", example="Updated 5 mins ago")
    points_count: int = Field(0, description="유효한 관측값 개수")


class GmpSeriesPoint(BaseModel):
    """차트용 GMP 시계열 포인트"""
    gmp: float
    observed_at: datetime


# =========================
# 공시 항목 (상세 페이지 / 관리자 폼 공통)
# =========================

class IPODisclosure(BaseModel):
    """회사 소개, 배정 비율, 청약 로트 표, 밸류에이션, 연락처"""
    objectives: Optional[str] = Field(None, description="공모 목적")
    company_strengths: Optional[str] = Field(None, description="강점")
    company_risks: Optional[str] = Field(None, description="리스크")

    promoter_holding_pre: Optional[float] = Field(None, description="공모 전 대주주 지분 (%)", example=91.2)
    promoter_holding_post: Optional[float] = Field(None, description="공모 후 대주주 지분 (%)", example=68.4)

    reservation_qib: Optional[float] = Field(None, description="QIB 배정 비율 (%)", example=50)
    reservation_nii: Optional[float] = Field(None, description="NII 배정 비율 (%)", example=15)
    reservation_rii: Optional[float] = Field(None, description="RII 배정 비율 (%)", example=35)
    reservation_employee: Optional[float] = Field(None, description="임직원 배정 비율 (%)")

    drhp_link: Optional[str] = Field(None, description="DRHP 문서 링크")
    rhp_link: Optional[str] = Field(None, description="RHP 문서 링크")
    listing_exchange: Optional[str] = Field(None, description="상장 거래소", example="BSE, NSE")
    face_value: Optional[str] = Field(None, description="액면가 (표시용)", example="₹5 per share")
    fresh_issue: Optional[str] = Field(None, description="신주 발행 규모 (표시용)")

    # 청약 로트 표
    retail_min_lots: Optional[int] = None
    retail_min_shares: Optional[int] = None
    retail_min_amount: Optional[float] = None
    retail_max_lots: Optional[int] = None
    retail_max_shares: Optional[int] = None
    retail_max_amount: Optional[float] = None
    shni_lots: Optional[int] = None
    shni_shares: Optional[int] = None
    shni_amount: Optional[float] = None
    bhni_lots: Optional[int] = None
    bhni_shares: Optional[int] = None
    bhni_amount: Optional[float] = None

    # 밸류에이션
    eps_pre: Optional[float] = None
    eps_post: Optional[float] = None
    pe_pre: Optional[float] = None
    pe_post: Optional[float] = None
    roce: Optional[float] = None
    debt_equity: Optional[float] = None
    pat_margin: Optional[float] = None
    market_cap: Optional[float] = Field(None, description="시가총액 (₹ Cr)")

    # 연락처
    company_address: Optional[str] = None
    company_phone: Optional[str] = None
    company_email: Optional[str] = None
    company_website: Optional[str] = None
    registrar_phone: Optional[str] = None
    registrar_email: Optional[str] = None
    registrar_website: Optional[str] = None


# =========================
# IPO 레코드 (정규화된 읽기 모델)
# =========================

class IPORecord(IPODisclosure):
    """
    DB 행을 정규화한 IPO 레코드

    숫자 필드는 관대하게 (변환 실패 시 None), 날짜는 엄격하게 검증합니다.
    allotment_out 은 True/"true"/"1"/1 만 참.
    """
    id: int = Field(..., description="고유 ID", example=1)
    name: str = Field(..., description="회사명", example="Tata Technologies")
    slug: str = Field(..., description="URL 슬러그", example="tata-technologies-ipo")
    ipo_type: IPOType = Field(IPOType.MAINBOARD, description="mainboard | sme")
    exchange: Optional[str] = Field(None, description="거래소", example="NSE")
    sector: Optional[str] = Field(None, description="업종")
    status: Optional[str] = Field(None, description="관리자 입력 상태 (날짜 정보가 없을 때만 사용)")

    price_min: Optional[float] = Field(None, description="공모가 하단", example=475.0)
    price_max: Optional[float] = Field(None, description="공모가 상단", example=500.0)
    lot_size: Optional[int] = Field(None, description="최소 청약 주식 수", example=30)
    gmp: Optional[float] = Field(None, description="최신 GMP 스냅샷", example=120.0)
    issue_size: Optional[str] = Field(None, description="공모 규모")

    open_date: Optional[date] = Field(None, description="청약 시작일")
    close_date: Optional[date] = Field(None, description="청약 마감일")
    allotment_date: Optional[date] = Field(None, description="배정일")
    refund_date: Optional[date] = Field(None, description="환불일")
    listing_date: Optional[date] = Field(None, description="상장일")

    allotment_out: bool = Field(False, description="배정 결과 공개 여부")
    allotment_status: Optional[str] = Field(None, description="배정 상태 텍스트")
    allotment_link: Optional[str] = Field(None, description="배정 결과 조회 링크")

    sub_total: Optional[str] = Field(None, description="전체 청약 배수", example="12.5")
    sub_qib: Optional[str] = None
    sub_nii: Optional[str] = None
    sub_rii: Optional[str] = None
    sub_bhni: Optional[str] = None
    sub_shni: Optional[str] = None
    subscription_updated_at: Optional[str] = None

    listing_price: Optional[float] = None
    listing_gain_percent: Optional[float] = None
    about_company: Optional[str] = None
    lead_managers: Optional[str] = None
    registrar: Optional[str] = None

    created_at: Optional[datetime] = Field(None, description="생성 시간")
    updated_at: Optional[datetime] = Field(None, description="수정 시간")

    model_config = {"from_attributes": True}

    @field_validator(*_NUMERIC_FIELDS, *_DISCLOSURE_NUMERIC_FIELDS, mode='before')
    @classmethod
    def parse_number(cls, v):
        return to_nullable_number(v)

    @field_validator('lot_size', mode='before')
    @classmethod
    def parse_lot_size(cls, v):
        """양의 정수만 허용"""
        number = to_nullable_number(v)
        if number is None or number <= 0 or not number.is_integer():
            return None
        return int(number)

    @field_validator(*_DISCLOSURE_COUNT_FIELDS, mode='before')
    @classmethod
    def parse_count(cls, v):
        """로트/주식 수는 0 이상 정수만, 아니면 None"""
        number = to_nullable_number(v)
        if number is None or number < 0 or not number.is_integer():
            return None
        return int(number)

    @field_validator(*_SUBSCRIPTION_FIELDS, mode='before')
    @classmethod
    def parse_subscription(cls, v):
        return _subscription_text(v)

    @field_validator(*_TEXT_FIELDS, *_DISCLOSURE_TEXT_FIELDS, mode='before')
    @classmethod
    def parse_text(cls, v):
        return to_nullable_text(v)

    @field_validator(*_DATE_FIELDS, mode='before')
    @classmethod
    def parse_date(cls, v):
        """빈 값은 None, 그 외 날짜가 아니면 검증 에러"""
        v = _blank_to_none(v)
        if isinstance(v, datetime):
            return v.date()
        return v

    @field_validator('allotment_out', mode='before')
    @classmethod
    def parse_allotment_out(cls, v):
        return coerce_flag(v)

    @field_validator('ipo_type', mode='before')
    @classmethod
    def parse_ipo_type(cls, v):
        if v is None or (isinstance(v, str) and not v.strip()):
            return IPOType.MAINBOARD
        if isinstance(v, str):
            return v.strip().lower()
        return v


# =========================
# 응답 스키마
# =========================

class IPOView(IPORecord):
    """화면용 IPO (상태/배지/추세 포함)"""
    lifecycle_status: IPOStatus = Field(..., description="날짜 기준 상태")
    allotment_badge: Optional[AllotmentBadge] = Field(None, description="배정 배지")
    allotment_check_url: Optional[str] = Field(None, description="배정 결과가 나온 경우에만 노출되는 조회 링크")
    gmp_trend: GmpTrend = Field(default_factory=GmpTrend, description="GMP 추세")


class IPODetailResponse(IPOView):
    """IPO 상세 (차트 데이터 포함)"""
    gmp_series: List[GmpSeriesPoint] = Field(default_factory=list, description="GMP 시계열 (오래된 순)")
    min_investment: Optional[float] = Field(None, description="최소 청약 금액 (상단가 × 로트)")


class IPOListResponse(BaseModel):
    """IPO 목록 응답"""
    items: List[IPOView] = Field(..., description="IPO 목록")
    total_count: int = Field(..., description="필터 적용 후 개수", example=24)
    status: Optional[str] = Field(None, description="적용된 상태 필터")
    ipo_type: Optional[str] = Field(None, description="적용된 유형 필터")
    sort: Optional[SortKey] = Field(None, description="적용된 정렬")
    active_only: bool = Field(False, description="청약 중만 보기")
    search: Optional[str] = Field(None, description="검색어")


# =========================
# 관리자 요청 스키마
# =========================

class IPOWriteBase(IPODisclosure):
    """IPO 등록/수정 공통 필드"""
    exchange: Optional[str] = None
    sector: Optional[str] = None
    ipo_type: Optional[IPOType] = None
    status: Optional[str] = None
    price_min: Optional[float] = None
    price_max: Optional[float] = None
    lot_size: Optional[int] = Field(None, gt=0)
    gmp: Optional[float] = None
    issue_size: Optional[str] = None
    open_date: Optional[date] = None
    close_date: Optional[date] = None
    allotment_date: Optional[date] = None
    refund_date: Optional[date] = None
    listing_date: Optional[date] = None
    allotment_out: Optional[bool] = None
    allotment_status: Optional[str] = None
    allotment_link: Optional[str] = None
    sub_total: Optional[str] = None
    sub_qib: Optional[str] = None
    sub_nii: Optional[str] = None
    sub_rii: Optional[str] = None
    sub_bhni: Optional[str] = None
    sub_shni: Optional[str] = None
    subscription_updated_at: Optional[str] = None
    listing_price: Optional[float] = None
    listing_gain_percent: Optional[float] = None
    about_company: Optional[str] = None
    lead_managers: Optional[str] = None
    registrar: Optional[str] = None

    @field_validator(*_DATE_FIELDS, 'price_min', 'price_max', 'lot_size', 'gmp',
                     'listing_price', 'listing_gain_percent',
                     *_DISCLOSURE_NUMERIC_FIELDS, *_DISCLOSURE_COUNT_FIELDS, mode='before')
    @classmethod
    def empty_to_none(cls, v):
        """폼에서 온 빈 문자열은 None"""
        return _blank_to_none(v)

    @field_validator(*_TEXT_FIELDS, *_DISCLOSURE_TEXT_FIELDS, mode='before')
    @classmethod
    def clean_text(cls, v):
        return to_nullable_text(v)

    @field_validator(*_SUBSCRIPTION_FIELDS, mode='before')
    @classmethod
    def clean_subscription(cls, v):
        return _subscription_text(v)

    @field_validator('allotment_out', mode='before')
    @classmethod
    def parse_allotment_out(cls, v):
        if v is None:
            return None
        return coerce_flag(v)

    @field_validator('ipo_type', mode='before')
    @classmethod
    def parse_ipo_type(cls, v):
        if isinstance(v, str):
            return v.strip().lower() or None
        return v


class IPOCreate(IPOWriteBase):
    """IPO 등록 요청"""
    name: str = Field(..., min_length=1, description="회사명", example="Tata Technologies")

    @field_validator('name')
    @classmethod
    def clean_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError('회사명은 필수입니다')
        return v


class IPOUpdate(IPOWriteBase):
    """IPO 수정 요청 (보낸 필드만 반영, 슬러그는 변경 불가)"""
    name: Optional[str] = Field(None, description="회사명 (보내지 않으면 유지, null 불가)")

    @field_validator('name')
    @classmethod
    def clean_name(cls, v):
        # 명시적으로 보낸 null 만 여기로 들어옴 (미전송은 기본값이라 검증 안 함)
        if v is None:
            raise ValueError('회사명은 비워둘 수 없습니다')
        v = v.strip()
        if not v:
            raise ValueError('회사명은 비워둘 수 없습니다')
        return v


class GmpUpdate(BaseModel):
    """GMP 단독 갱신 요청 (외부 갱신 작업용)"""
    gmp: float = Field(..., description="새 GMP", example=135.0)


class GmpUpdateResponse(BaseModel):
    """GMP 갱신 결과"""
    ipo_id: int
    gmp: float
    history_recorded: bool = Field(..., description="이력이 추가되었는지 (값이 같으면 False)")


class AdminStatistics(BaseModel):
    """관리자 대시보드 통계"""
    total_ipos: int = Field(..., example=40)
    active_ipos: int = Field(..., description="청약 중 (Open)", example=3)
    listed_ipos: int = Field(..., example=22)
    total_brokers: int = Field(..., example=8)
    avg_gmp: float = Field(..., description="평균 GMP (없는 값은 0으로 계산)", example=56.0)
