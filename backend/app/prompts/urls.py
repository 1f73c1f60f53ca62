# app/prompts/urls.py
from django.urls import path
from .views import RandomPromptView, PromptDetailView

urlpatterns = [
    path("random", RandomPromptView.as_view()),
    path("<str:prompt_id>", PromptDetailView.as_view()),
]
