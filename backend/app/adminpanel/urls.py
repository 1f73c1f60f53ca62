# app/adminpanel/urls.py
from django.urls import path
from .views import AdminAuthView, MatchAnalyticsView

urlpatterns = [
    path("auth", AdminAuthView.as_view()),
    path("auth/", AdminAuthView.as_view()),
    path("matches/analytics", MatchAnalyticsView.as_view()),
    path("matches/analytics/", MatchAnalyticsView.as_view()),
]
