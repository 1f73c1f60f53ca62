# app/common/redis_client.py
import redis
from django.conf import settings

_redis = None


def get_redis() -> redis.Redis:
    """
    요청 제한 카운터용 공유 클라이언트 (프로세스당 1개).
    채널 레이어와 같은 REDIS_URL 을 쓴다.
    """
    global _redis
    if _redis is None:
        timeout = settings.REDIS_SOCKET_TIMEOUT
        # 요청 제한 체크가 요청을 붙잡고 있지 않도록 짧게
        _redis = redis.Redis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            socket_connect_timeout=timeout,
            socket_timeout=timeout,
        )
    return _redis
