# ipocraft/services/cache_service.py
import json
import logging
from typing import List, Optional, Tuple

import redis

from ipocraft.schemas.ipo_schema import GmpHistoryPoint, IPORecord

logger = logging.getLogger(__name__)

SNAPSHOT_KEY = "ipocraft:ipo_snapshot"


class SnapshotCache:
    """
    IPO 원본 스냅샷 Redis 캐시

    상태/배지/추세 같은 계산 결과는 절대 저장하지 않습니다 (날짜가 바뀌면 달라짐).
    정규화된 IPO 레코드와 GMP 이력만 짧게 보관하고, 관리자 수정 시 바로 삭제합니다.
    Redis 오류는 모두 캐시 미스로 처리합니다.
    """

    def __init__(self, redis_client: redis.Redis, ttl_seconds: int = 60):
        self.redis_client = redis_client
        self.ttl_seconds = ttl_seconds
        self.stats = {"hits": 0, "misses": 0, "errors": 0}

    @classmethod
    def from_url(cls, redis_url: str, ttl_seconds: int = 60) -> Optional["SnapshotCache"]:
        """Redis 연결 후 캐시 생성 (연결 실패 시 None)"""
        try:
            client = redis.Redis.from_url(
                redis_url,
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
            )
            client.ping()
            logger.info("✅ 스냅샷 캐시 Redis 연결 성공")
            return cls(client, ttl_seconds)
        except redis.RedisError as e:
            logger.warning(f"⚠️ Redis 연결 실패 - 캐시 없이 동작: {e}")
            return None

    def get_snapshot(self) -> Optional[Tuple[List[IPORecord], List[GmpHistoryPoint]]]:
        try:
            raw = self.redis_client.get(SNAPSHOT_KEY)
        except redis.RedisError as e:
            self.stats["errors"] += 1
            logger.warning(f"⚠️ 스냅샷 캐시 조회 실패: {e}")
            return None

        if not raw:
            self.stats["misses"] += 1
            return None

        payload = json.loads(raw)
        records = [IPORecord.model_validate(item) for item in payload.get("ipos", [])]
        points = [GmpHistoryPoint.model_validate(item) for item in payload.get("history", [])]
        self.stats["hits"] += 1
        return records, points

    def set_snapshot(self, records: List[IPORecord], points: List[GmpHistoryPoint]) -> None:
        payload = {
            "ipos": [r.model_dump(mode="json") for r in records],
            "history": [p.model_dump(mode="json") for p in points],
        }
        try:
            self.redis_client.setex(SNAPSHOT_KEY, self.ttl_seconds, json.dumps(payload))
        except redis.RedisError as e:
            self.stats["errors"] += 1
            logger.warning(f"⚠️ 스냅샷 캐시 저장 실패: {e}")

    def invalidate(self) -> None:
        try:
            self.redis_client.delete(SNAPSHOT_KEY)
            logger.debug("🧹 스냅샷 캐시 삭제")
        except redis.RedisError as e:
            self.stats["errors"] += 1
            logger.warning(f"⚠️ 스냅샷 캐시 삭제 실패: {e}")

    def close(self) -> None:
        self.redis_client.close()

    def get_status(self) -> dict:
        return {"ttl_seconds": self.ttl_seconds, **self.stats}
