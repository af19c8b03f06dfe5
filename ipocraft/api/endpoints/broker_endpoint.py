# ipocraft/api/endpoints/broker_endpoint.py
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
import logging

from ipocraft.schemas.broker_schema import BrokerListResponse, BrokerResponse
from ipocraft.services.broker_service import BrokerService
from ipocraft.dependencies import get_db

logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["Brokers"],
    responses={500: {"description": "서버 내부 오류"}}
)


@router.get(
    "/",
    response_model=BrokerListResponse,
    summary="증권사 비교 목록",
    description="노출 중인 증권사를 정렬 순서대로 반환합니다."
)
async def list_brokers(db: Session = Depends(get_db)):
    try:
        brokers = BrokerService(db).get_active_brokers()
        return BrokerListResponse(
            items=[BrokerResponse.model_validate(b) for b in brokers],
            total_count=len(brokers)
        )
    except Exception as e:
        logger.error(f"증권사 목록 조회 실패: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="증권사 목록 조회 중 오류가 발생했습니다")
