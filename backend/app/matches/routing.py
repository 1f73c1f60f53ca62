# app/matches/routing.py
from django.urls import re_path
from .consumers import MatchLobbyConsumer

websocket_urlpatterns = [
    re_path(r"^ws/match/(?P<match_code>[A-Za-z0-9]+)/?$", MatchLobbyConsumer.as_asgi()),
]
