# app/users/urls.py
from django.urls import path
from .views import UserView

urlpatterns = [
    path("", UserView.as_view()),  # /api/user
    path("/", UserView.as_view()),
]
