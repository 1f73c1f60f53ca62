from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncJsonWebsocketConsumer

from app.matches import repository, services
from app.matches.events import group_name
from app.matches.models import MatchParticipant


@database_sync_to_async
def _load_lobby_state(match_code: str, user_id):
    """
    접속 시점 로비 상태. 만료 검사도 여기서 같이 한다.
    """
    match = repository.get_match_by_code(match_code)
    if not match:
        return None

    services.check_and_update_expiry(match)

    participants = repository.get_participants(match)
    role = next((p.role for p in participants if p.user_id == user_id), None)
    return {
        "matchId": str(match.id),
        "matchCode": match.match_code,
        "status": match.status,
        "role": role,
        "hasOpponent": any(p.role == MatchParticipant.ROLE_OPPONENT for p in participants),
        "linkedCount": sum(1 for p in participants if p.session_id is not None),
    }


class MatchLobbyConsumer(AsyncJsonWebsocketConsumer):
    """
    매치 로비 알림 채널 (서버 -> 클라 단방향)
      - URL: ws://<host>/ws/match/<matchCode>/?userId=<uuid>
      - 접속하면 lobby-state 한 번, 이후 상태가 바뀔 때마다
        opponent-joined / match-completed / match-expired
      - Envelope:
        {
          "type": "...",
          "matchCode": "...",
          "status": "pending|completed|expired",
          "payload": {...}
        }
    """

    async def connect(self):
        self.match_code = repository.normalize_code(
            self.scope["url_route"]["kwargs"]["match_code"]
        )
        self.room_group_name = group_name(self.match_code)

        player = self.scope.get("player")
        if not player:
            # 4401 Unauthorized (앱에서 처리하기 쉬움)
            await self.close(code=4401)
            return
        self.user_id = player.id

        state = await _load_lobby_state(self.match_code, self.user_id)
        if state is None:
            await self.close(code=4404)
            return

        await self.channel_layer.group_add(self.room_group_name, self.channel_name)
        await self.accept()

        await self.send_json(
            {
                "type": "lobby-state",
                "matchCode": self.match_code,
                "status": state["status"],
                "payload": state,
            }
        )

    async def disconnect(self, close_code):
        # connect 실패한 케이스 방어
        room = getattr(self, "room_group_name", None)
        if not room or not getattr(self, "user_id", None):
            return
        await self.channel_layer.group_discard(room, self.channel_name)

    async def receive_json(self, content, **kwargs):
        # 클라가 보낼 수 있는 건 연결 확인용 ping 뿐
        if isinstance(content, dict) and content.get("type") == "ping":
            await self.send_json({"type": "pong", "matchCode": self.match_code})

    # ---- group handlers ----

    async def match_event(self, event):
        await self.send_json(
            {
                "type": event.get("event"),
                "matchCode": event.get("matchCode"),
                "status": event.get("status"),
                "payload": event.get("payload") or {},
            }
        )
