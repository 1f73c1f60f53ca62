"""Shared fixtures: players, graded sessions, matches and a quiet channel layer."""

from datetime import timedelta

import pytest
from django.utils import timezone
from rest_framework.test import APIClient

from app.gameplay.models import GameSession
from app.matches import events
from app.matches.models import Match
from app.prompts.catalog import get_prompt_by_id
from app.users.models import User

PROMPT_ID = "family-dinner-immigration"
POSITION = "left"


@pytest.fixture(autouse=True)
def _isolated_settings(settings):
    settings.RATELIMIT_ENABLED = False
    settings.CHANNEL_LAYERS = {"default": {"BACKEND": "channels.layers.InMemoryChannelLayer"}}
    settings.ADMIN_DASHBOARD_PASSWORD = "letmein"
    settings.ANTHROPIC_API_KEY = "test-key"


@pytest.fixture
def api_client() -> APIClient:
    return APIClient()


@pytest.fixture
def make_user(db):
    def _make(**kwargs) -> User:
        return User.objects.create_player(**kwargs)

    return _make


@pytest.fixture
def make_session(db):
    def _make(user, prompt_id=PROMPT_ID, position=POSITION, score=70, detected=False, scored=True):
        prompt = get_prompt_by_id(prompt_id)
        return GameSession.objects.create(
            user=user,
            completed_at=timezone.now() if scored else None,
            prompt_id=prompt_id,
            prompt_scenario=prompt.scenario if prompt else "retired scenario",
            prompt_category=prompt.category if prompt else "retired",
            position_assigned=position,
            user_response="We should look after each other before we look at borders.",
            char_count=58,
            detected=detected if scored else None,
            score=score if scored else None,
            feedback="Solid grasp of the values." if scored else "",
            rubric_understanding=45 if scored else None,
            rubric_authenticity=15 if scored else None,
            rubric_execution=10 if scored else None,
            ai_comparison_response="An AI take on the same dinner." if scored else "",
        )

    return _make


@pytest.fixture
def creator(make_user) -> User:
    return make_user()


@pytest.fixture
def opponent(make_user) -> User:
    return make_user()


@pytest.fixture
def creator_session(make_session, creator) -> GameSession:
    return make_session(creator, score=80)


@pytest.fixture
def opponent_session(make_session, opponent) -> GameSession:
    return make_session(opponent, score=60, detected=True)


@pytest.fixture
def age_match():
    """Push a match's clock back so it looks `hours` old."""

    def _age(match: Match, hours: float) -> Match:
        created = timezone.now() - timedelta(hours=hours)
        Match.objects.filter(id=match.id).update(
            created_at=created, expires_at=created + timedelta(hours=24)
        )
        match.refresh_from_db()
        return match

    return _age


@pytest.fixture
def sent_events(monkeypatch):
    sent = []

    def _record(match, event_type, payload=None):
        sent.append((match.match_code, event_type, payload or {}))

    monkeypatch.setattr(events, "broadcast", _record)
    return sent
