# app/matches/urls.py
from django.urls import path
from .views import (
    MatchCreateView,
    MatchDetailView,
    MatchHistoryView,
    MatchJoinView,
    MatchLinkSessionView,
)

urlpatterns = [
    path("create", MatchCreateView.as_view()),
    path("create/", MatchCreateView.as_view()),
    path("join", MatchJoinView.as_view()),
    path("join/", MatchJoinView.as_view()),
    path("link-session", MatchLinkSessionView.as_view()),
    path("link-session/", MatchLinkSessionView.as_view()),
    path("history", MatchHistoryView.as_view()),
    path("history/", MatchHistoryView.as_view()),
    # 코드 조회는 맨 마지막 (위 경로들과 안 겹치게)
    path("<str:code>", MatchDetailView.as_view()),
    path("<str:code>/", MatchDetailView.as_view()),
]
