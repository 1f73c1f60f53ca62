# app/config/asgi.py
import os
from django.core.asgi import get_asgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "app.config.settings")

# 앱 레지스트리가 먼저 떠야 아래 import 들이 모델을 쓸 수 있음
django_asgi_app = get_asgi_application()

from channels.routing import ProtocolTypeRouter, URLRouter
from channels.security.websocket import AllowedHostsOriginValidator

from app.config.ws_player_middleware import PlayerMiddlewareStack
from app.matches.routing import websocket_urlpatterns as match_lobby_routes

application = ProtocolTypeRouter(
    {
        "http": django_asgi_app,
        # 매치 로비 알림 (ws/match/<code>/?userId=)
        "websocket": AllowedHostsOriginValidator(
            PlayerMiddlewareStack(URLRouter(match_lobby_routes))
        ),
    }
)
