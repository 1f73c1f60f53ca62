"""Admin token exchange and the match analytics endpoint."""

import pytest
from rest_framework_simplejwt.tokens import AccessToken

from app.matches import services
from app.matches.models import Match

pytestmark = pytest.mark.django_db

ANALYTICS = "/api/admin/matches/analytics"


def _login(api_client, password="letmein"):
    return api_client.post("/api/admin/auth", {"password": password}, format="json")


def test_login_issues_admin_token(api_client) -> None:
    resp = _login(api_client)

    assert resp.status_code == 200
    token = AccessToken(resp.json()["data"]["token"])
    assert token["admin"] is True


def test_login_rejects_wrong_password(api_client) -> None:
    resp = _login(api_client, "guess")

    assert resp.status_code == 401
    assert resp.json()["error"]["code"] == "UNAUTHORIZED"


def test_login_without_configured_password(api_client, settings) -> None:
    settings.ADMIN_DASHBOARD_PASSWORD = ""

    resp = _login(api_client, "anything")

    assert resp.status_code == 500
    assert resp.json()["error"]["code"] == "ADMIN_NOT_CONFIGURED"


def test_analytics_requires_admin_token(api_client) -> None:
    missing = api_client.get(ANALYTICS)
    assert missing.status_code == 401
    assert missing.json()["error"]["code"] == "UNAUTHORIZED"

    forged = api_client.get(ANALYTICS, HTTP_AUTHORIZATION="Bearer not.a.token")
    assert forged.status_code == 401
    assert forged.json()["error"]["code"] == "INVALID_TOKEN"

    plain = AccessToken()
    not_admin = api_client.get(ANALYTICS, HTTP_AUTHORIZATION=f"Bearer {plain}")
    assert not_admin.status_code == 401


def test_analytics_numbers(
    api_client, creator, creator_session, opponent, make_user, make_session, age_match
) -> None:
    # 완료 1 (80 vs 80 무승부), 만료 1, 대기 1
    done = services.create_match(user_id=creator.id, session_id=creator_session.id).match
    services.join_match(match_code=done.match_code, user_id=opponent.id)
    services.link_session(
        match_id=done.id, session_id=make_session(opponent, score=80).id, user_id=opponent.id
    )
    stale = services.create_match(user_id=creator.id, session_id=make_session(creator).id).match
    age_match(stale, hours=25)
    services.create_match(user_id=creator.id, session_id=make_session(creator).id)
    make_user()  # 매치 없는 플레이어

    token = _login(api_client).json()["data"]["token"]
    resp = api_client.get(ANALYTICS, HTTP_AUTHORIZATION=f"Bearer {token}")

    data = resp.json()["data"]
    assert resp.status_code == 200
    assert data["totalMatches"] == 3
    assert data["byStatus"] == {"pending": 1, "completed": 1, "expired": 1}
    assert data["completionRate"] == pytest.approx(33.33)
    assert data["avgScoreGap"] == 0.0
    assert data["tieRate"] == 100.0
    assert data["participationRate"] == pytest.approx(66.67)
    assert Match.objects.get(id=stale.id).status == Match.STATUS_EXPIRED
