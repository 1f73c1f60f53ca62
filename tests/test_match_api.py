"""HTTP boundary for /api/match/*: envelope, status codes and rate limiting."""

import uuid

import pytest
import redis

from app.common import ratelimit
from app.matches.models import Match

pytestmark = pytest.mark.django_db


def _error_code(resp) -> str:
    return resp.json()["error"]["code"]


def _create(api_client, user, session, **extra):
    body = {"sessionId": str(session.id), "userId": str(user.id), **extra}
    return api_client.post("/api/match/create", body, format="json")


def _join(api_client, code, user):
    return api_client.post("/api/match/join", {"matchCode": code, "userId": str(user.id)}, format="json")


def _link(api_client, match_id, session, user):
    body = {"matchId": match_id, "sessionId": str(session.id), "userId": str(user.id)}
    return api_client.post("/api/match/link-session", body, format="json")


def test_create_then_reuse(api_client, creator, creator_session) -> None:
    first = _create(api_client, creator, creator_session)
    assert first.status_code == 201
    body = first.json()
    assert body["success"] is True
    assert body["error"] is None
    assert body["data"]["existingMatch"] is False
    assert len(body["data"]["matchCode"]) == 8

    again = _create(api_client, creator, creator_session)
    assert again.status_code == 200
    assert again.json()["data"]["matchId"] == body["data"]["matchId"]
    assert again.json()["data"]["existingMatch"] is True

    forced = _create(api_client, creator, creator_session, forceNew=True)
    assert forced.status_code == 201
    assert forced.json()["data"]["matchId"] != body["data"]["matchId"]


def test_create_error_statuses(api_client, creator, opponent, creator_session) -> None:
    missing = api_client.post("/api/match/create", {"userId": str(creator.id)}, format="json")
    assert missing.status_code == 400
    assert _error_code(missing) == "VALIDATION_ERROR"

    unknown = api_client.post(
        "/api/match/create", {"sessionId": str(uuid.uuid4()), "userId": str(creator.id)}, format="json"
    )
    assert unknown.status_code == 404
    assert _error_code(unknown) == "SESSION_NOT_FOUND"

    not_yours = _create(api_client, opponent, creator_session)
    assert not_yours.status_code == 403
    assert _error_code(not_yours) == "FORBIDDEN"

    bad_id = api_client.post(
        "/api/match/create", {"sessionId": "not-a-uuid", "userId": str(creator.id)}, format="json"
    )
    assert bad_id.status_code == 400


def test_join_status_codes(api_client, creator, creator_session, opponent, make_user, age_match) -> None:
    code = _create(api_client, creator, creator_session).json()["data"]["matchCode"]

    assert _join(api_client, "ZZZZ2345", opponent).status_code == 404

    self_join = _join(api_client, code, creator)
    assert self_join.status_code == 403
    assert _error_code(self_join) == "SELF_JOIN"

    joined = _join(api_client, code.lower(), opponent)
    assert joined.status_code == 200
    assert joined.json()["data"]["position"] == "left"
    assert joined.json()["data"]["promptId"] == "family-dinner-immigration"
    assert joined.json()["data"]["alreadyJoined"] is False

    assert _join(api_client, code, opponent).json()["data"]["alreadyJoined"] is True

    taken = _join(api_client, code, make_user())
    assert taken.status_code == 400
    assert _error_code(taken) == "CHALLENGE_ALREADY_ACCEPTED"

    age_match(Match.objects.get(match_code=code), hours=25)
    gone = _join(api_client, code, opponent)
    assert gone.status_code == 410
    assert _error_code(gone) == "MATCH_EXPIRED"


def test_link_and_detail_flow(api_client, creator, creator_session, opponent, opponent_session, make_session) -> None:
    data = _create(api_client, creator, creator_session).json()["data"]
    code, match_id = data["matchCode"], data["matchId"]

    pending = api_client.get(f"/api/match/{code}")
    assert pending.status_code == 200
    assert pending.json()["data"]["isCompleted"] is False
    assert pending.json()["data"]["match"]["status"] == "pending"

    _join(api_client, code, opponent)

    wrong = _link(api_client, match_id, make_session(opponent, position="right"), opponent)
    assert wrong.status_code == 400
    assert _error_code(wrong) == "POSITION_MISMATCH"

    first = _link(api_client, match_id, creator_session, creator)
    assert first.json()["data"] == {"matchCompleted": False, "matchCode": code}

    second = _link(api_client, match_id, opponent_session, opponent)
    assert second.json()["data"] == {"matchCompleted": True, "matchCode": code}

    # 먼저 끝난 뒤 들어온 같은 세션 재연결은 성공
    relink = _link(api_client, match_id, creator_session, creator)
    assert relink.status_code == 200
    assert relink.json()["data"] == {"matchCompleted": True, "matchCode": code}

    late = _link(api_client, match_id, make_session(opponent), opponent)
    assert late.status_code == 400
    assert _error_code(late) == "MATCH_COMPLETED"

    done = api_client.get(f"/api/match/{code}/")
    body = done.json()["data"]
    assert body["isCompleted"] is True
    assert body["match"]["winner"] == "creator"
    assert len(body["match"]["participants"]) == 2


def test_link_failures_are_400_with_stable_codes(
    api_client, creator, creator_session, opponent, make_user, make_session, age_match
) -> None:
    data = _create(api_client, creator, creator_session).json()["data"]
    match_id = data["matchId"]
    _join(api_client, data["matchCode"], opponent)

    outsider = make_user()
    stranger = _link(api_client, match_id, make_session(outsider), outsider)
    assert stranger.status_code == 400
    assert _error_code(stranger) == "NOT_A_PARTICIPANT"

    not_yours = _link(api_client, match_id, creator_session, opponent)
    assert not_yours.status_code == 400
    assert _error_code(not_yours) == "FORBIDDEN"

    unknown = _link(api_client, str(uuid.uuid4()), creator_session, creator)
    assert unknown.status_code == 400
    assert _error_code(unknown) == "MATCH_NOT_FOUND"

    age_match(Match.objects.get(id=match_id), hours=25)
    expired = _link(api_client, match_id, make_session(opponent), opponent)
    assert expired.status_code == 400
    assert _error_code(expired) == "MATCH_EXPIRED"


def test_detail_unknown_code_and_expiry(api_client, creator, creator_session, age_match) -> None:
    assert api_client.get("/api/match/ZZZZ2345").status_code == 404

    code = _create(api_client, creator, creator_session).json()["data"]["matchCode"]
    age_match(Match.objects.get(match_code=code), hours=25)

    resp = api_client.get(f"/api/match/{code}")
    assert resp.status_code == 200
    assert resp.json()["data"]["match"]["status"] == "expired"
    assert resp.json()["data"]["isCompleted"] is False


def test_history_endpoint(api_client, creator, make_session) -> None:
    for _ in range(3):
        _create(api_client, creator, make_session(creator))

    resp = api_client.get("/api/match/history", {"userId": str(creator.id), "limit": 2})
    body = resp.json()["data"]
    assert resp.status_code == 200
    assert (len(body["matches"]), body["total"], body["hasMore"]) == (2, 3, True)

    capped = api_client.get("/api/match/history", {"userId": str(creator.id), "limit": 1000})
    assert len(capped.json()["data"]["matches"]) == 3

    assert api_client.get("/api/match/history").status_code == 400
    assert api_client.get("/api/match/history", {"userId": str(uuid.uuid4())}).status_code == 404


class _FakeRedis:
    def __init__(self):
        self.counts = {}

    def incr(self, key):
        self.counts[key] = self.counts.get(key, 0) + 1
        return self.counts[key]

    def expire(self, key, seconds):
        return True


def test_rate_limit_returns_429(monkeypatch, settings, api_client, opponent) -> None:
    settings.RATELIMIT_ENABLED = True
    settings.RATELIMITS = {**settings.RATELIMITS, "match": (2, 60)}
    fake = _FakeRedis()
    monkeypatch.setattr(ratelimit, "get_redis", lambda: fake)

    codes = [_join(api_client, "ZZZZ2345", opponent).status_code for _ in range(3)]

    assert codes == [404, 404, 429]
    limited = _join(api_client, "ZZZZ2345", opponent)
    assert _error_code(limited) == "RATE_LIMITED"
    assert int(limited["Retry-After"]) >= 1


def test_rate_limit_fails_open_when_redis_is_down(monkeypatch, settings, api_client, opponent) -> None:
    class _DownRedis:
        def incr(self, key):
            raise redis.ConnectionError("down")

    settings.RATELIMIT_ENABLED = True
    monkeypatch.setattr(ratelimit, "get_redis", lambda: _DownRedis())

    assert _join(api_client, "ZZZZ2345", opponent).status_code == 404
