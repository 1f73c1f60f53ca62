# app/matches/events.py
import logging

import redis
from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer

logger = logging.getLogger(__name__)


def group_name(match_code: str) -> str:
    return f"match_{match_code}"


def broadcast(match, event_type: str, payload=None) -> None:
    """
    매치 로비(ws)에 붙어 있는 클라이언트에게 상태 변화 알림.
    DB 쪽 처리는 이미 끝난 뒤라, 전송 실패는 로그만 남긴다.
    """
    layer = get_channel_layer()
    if layer is None:
        return

    try:
        async_to_sync(layer.group_send)(
            group_name(match.match_code),
            {
                "type": "match.event",  # handler: match_event
                "event": event_type,
                "matchId": str(match.id),
                "matchCode": match.match_code,
                "status": match.status,
                "payload": payload or {},
            },
        )
    except (redis.RedisError, OSError) as e:
        logger.warning("match event %s for %s not delivered: %s", event_type, match.match_code, e)
