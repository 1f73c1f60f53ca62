# app/common/ratelimit.py
import logging
import time

import redis
from django.conf import settings

from app.common.exceptions import RateLimited
from app.common.redis_client import get_redis

logger = logging.getLogger(__name__)


def client_ip(request) -> str:
    # 프록시 뒤라면 x-forwarded-for 첫 번째 값
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()

    real_ip = request.headers.get("X-Real-Ip")
    if real_ip:
        return real_ip.strip()

    return request.META.get("REMOTE_ADDR") or "unknown"


def _window_key(bucket: str, identifier: str, window_sec: int, now: float) -> str:
    return f"ratelimit:{bucket}:{identifier}:{int(now // window_sec)}"


def check_rate_limit(request, bucket: str) -> None:
    """
    bucket별 고정 윈도우 카운터. 한도를 넘으면 RateLimited.
    Redis가 죽어 있으면 요청은 통과시킨다.
    """
    if not getattr(settings, "RATELIMIT_ENABLED", True):
        return

    limit, window_sec = settings.RATELIMITS[bucket]
    identifier = client_ip(request)
    now = time.time()
    key = _window_key(bucket, identifier, window_sec, now)

    try:
        r = get_redis()
        count = r.incr(key)
        if count == 1:
            r.expire(key, window_sec)
    except redis.RedisError as e:
        logger.warning("rate limit check failed (%s): %s", bucket, e)
        return

    if count > limit:
        retry_after = max(1, int(window_sec - (now % window_sec)))
        logger.info("rate limit hit bucket=%s ip=%s", bucket, identifier)
        raise RateLimited(retry_after=retry_after)
