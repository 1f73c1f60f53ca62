# app/config/ws_player_middleware.py
import uuid
from urllib.parse import parse_qs

from channels.db import database_sync_to_async

from app.users.models import User


@database_sync_to_async
def get_player(user_id: str):
    """
    userId(UUID)로 플레이어 조회.
    형식이 틀리거나 없으면 None.
    """
    try:
        uuid.UUID(str(user_id))
    except ValueError:
        return None
    return User.objects.filter(id=user_id).first()


class PlayerMiddleware:
    """
    ws://.../?userId=<uuid> 로 들어오는 플레이어를 scope['player']에 세팅
    """

    def __init__(self, inner):
        self.inner = inner

    async def __call__(self, scope, receive, send):
        query_string = scope.get("query_string", b"").decode()
        qs = parse_qs(query_string)
        user_id = (qs.get("userId") or [None])[0]

        scope["player"] = await get_player(user_id) if user_id else None

        return await self.inner(scope, receive, send)


def PlayerMiddlewareStack(inner):
    return PlayerMiddleware(inner)
