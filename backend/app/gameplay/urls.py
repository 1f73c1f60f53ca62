# app/gameplay/urls.py
from django.urls import path
from .views import GradeView, SessionView, HistoryView

urlpatterns = [
    path("grade", GradeView.as_view()),
    path("session", SessionView.as_view()),
    path("history", HistoryView.as_view()),
]
