# ipocraft/schemas/broker_schema.py
from pydantic import BaseModel, Field, field_validator
from typing import List, Optional
from datetime import datetime
from urllib.parse import urlparse

from ipocraft.utils.coercion import to_nullable_text

_FEE_FIELDS = (
    "logo_url", "account_opening", "account_maintenance", "equity_delivery",
    "equity_intraday", "futures", "options", "notes",
)


def _validate_cta_url(v):
    """http/https 주소만 허용"""
    v = to_nullable_text(v)
    if v is None:
        return None
    parsed = urlparse(v)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError('CTA URL은 http:// 또는 https:// 주소여야 합니다')
    return v


class BrokerBase(BaseModel):
    """증권사 기본 스키마 (수수료는 표시용 문자열)"""
    logo_url: Optional[str] = Field(None, description="로고 URL")
    account_opening: Optional[str] = Field(None, description="계좌 개설 비용", example="Free")
    account_maintenance: Optional[str] = Field(None, description="계좌 유지 비용", example="₹300/yr")
    equity_delivery: Optional[str] = Field(None, description="현물 수수료", example="₹0")
    equity_intraday: Optional[str] = Field(None, description="당일매매 수수료", example="₹20/order")
    futures: Optional[str] = Field(None, description="선물 수수료")
    options: Optional[str] = Field(None, description="옵션 수수료")
    cta_url: Optional[str] = Field(None, description="계좌 개설 링크", example="https://zerodha.com/open-account")
    notes: Optional[str] = Field(None, description="비고")

    @field_validator(*_FEE_FIELDS, mode='before')
    @classmethod
    def clean_text(cls, v):
        return to_nullable_text(v)

    @field_validator('cta_url', mode='before')
    @classmethod
    def check_cta_url(cls, v):
        return _validate_cta_url(v)


class BrokerCreate(BrokerBase):
    """증권사 등록 요청 (슬러그 미입력 시 이름으로 생성)"""
    name: str = Field(..., min_length=1, description="증권사명", example="Zerodha")
    slug: Optional[str] = Field(None, description="URL 슬러그")
    sort_order: int = Field(0, description="정렬 순서")
    is_active: bool = Field(True, description="노출 여부")

    @field_validator('name')
    @classmethod
    def clean_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError('증권사명은 필수입니다')
        return v

    @field_validator('slug', mode='before')
    @classmethod
    def clean_slug(cls, v):
        return to_nullable_text(v)

    @field_validator('sort_order', mode='before')
    @classmethod
    def parse_sort_order(cls, v):
        """숫자가 아니면 0"""
        try:
            return int(str(v).strip())
        except (TypeError, ValueError):
            return 0


class BrokerUpdate(BrokerBase):
    """증권사 수정 요청 (보낸 필드만 반영)"""
    name: Optional[str] = None
    slug: Optional[str] = None
    sort_order: Optional[int] = None
    is_active: Optional[bool] = None

    @field_validator('name', 'slug', mode='before')
    @classmethod
    def clean_identity(cls, v):
        return to_nullable_text(v)


class BrokerResponse(BrokerBase):
    """증권사 응답 스키마"""
    id: int = Field(..., description="고유 ID", example=1)
    name: str
    slug: str
    sort_order: int = 0
    is_active: bool = True
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}

    @field_validator('cta_url', mode='before')
    @classmethod
    def check_cta_url(cls, v):
        # 저장된 값은 그대로 노출
        return to_nullable_text(v)


class BrokerListResponse(BaseModel):
    """증권사 목록 응답"""
    items: List[BrokerResponse] = Field(..., description="증권사 목록")
    total_count: int = Field(..., description="전체 개수", example=8)
