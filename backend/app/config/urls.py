# app/config/urls.py
from django.contrib import admin
from django.urls import path, include


urlpatterns = [
    path("admin/", admin.site.urls),
    path("api/user", include("app.users.urls")),
    path("api/prompts/", include("app.prompts.urls")),
    path("api/", include("app.gameplay.urls")),  # /grade, /session, /history
    path("api/match/", include("app.matches.urls")),
    path("api/admin/", include("app.adminpanel.urls")),
]
