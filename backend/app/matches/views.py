# app/matches/views.py
from django.conf import settings
from rest_framework.views import APIView

from app.common.exceptions import DomainError, ValidationFailed
from app.common.params import parse_page, require
from app.common.ratelimit import check_rate_limit
from app.common.responses import ok
from app.gameplay.services import get_user
from app.matches import results, services
from app.matches.models import Match


def _as_bool(value) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes")
    return bool(value)


class MatchCreateView(APIView):
    """
    POST /api/match/create
    body: { "sessionId": "uuid", "userId": "uuid", "forceNew"?: bool }
    같은 세션으로 pending 매치가 있으면 그걸 돌려줌 (existingMatch=true)
    """

    def post(self, request):
        check_rate_limit(request, "match:create")

        session_id = require(request.data, "sessionId", "session_id")
        user_id = require(request.data, "userId", "user_id")
        force_new = _as_bool(request.data.get("forceNew", False))

        result = services.create_match(
            user_id=user_id, session_id=session_id, force_new=force_new
        )
        return ok(result.to_dict(), http_status=200 if result.existing else 201)


class MatchJoinView(APIView):
    """
    POST /api/match/join
    body: { "matchCode": "ABCD2345", "userId": "uuid" }
    """

    def post(self, request):
        check_rate_limit(request, "match")

        match_code = require(request.data, "matchCode", "match_code")
        user_id = require(request.data, "userId", "user_id")

        result = services.join_match(match_code=match_code, user_id=user_id)
        return ok(result.to_dict())


class MatchLinkSessionView(APIView):
    """
    POST /api/match/link-session
    body: { "sessionId": "uuid", "matchId": "uuid", "userId": "uuid" }
    채점 끝난 세션을 매치에 연결. 양쪽 다 연결되면 completed
    연결 실패는 전부 400 (code 는 그대로 유지)
    """

    def post(self, request):
        check_rate_limit(request, "match")

        session_id = require(request.data, "sessionId", "session_id")
        match_id = require(request.data, "matchId", "match_id")
        user_id = require(request.data, "userId", "user_id")

        try:
            data = services.link_session(
                match_id=match_id, session_id=session_id, user_id=user_id
            )
        except DomainError as exc:
            if exc.status_code >= 500:
                raise
            raise ValidationFailed(exc.message, code=exc.code) from exc
        return ok(data)


class MatchHistoryView(APIView):
    # GET /api/match/history?userId=&limit=&offset=
    def get(self, request):
        check_rate_limit(request, "match")

        user_id = request.query_params.get("userId")
        if not user_id:
            raise ValidationFailed("userId is required")

        limit, offset = parse_page(
            request.query_params,
            default_limit=settings.MATCH_HISTORY_DEFAULT_LIMIT,
            max_limit=settings.MATCH_HISTORY_MAX_LIMIT,
        )
        user = get_user(user_id)
        return ok(results.get_match_history(user, limit, offset))


class MatchDetailView(APIView):
    """
    GET /api/match/<code>
    completed 면 맞대결 결과 전체, 아니면 로비 정보
    """

    def get(self, request, code):
        check_rate_limit(request, "match")

        match = services.get_match_by_code(code)
        services.refresh_status(match)

        if match.status == Match.STATUS_COMPLETED:
            return ok({"match": results.get_match_results(match), "isCompleted": True})
        return ok({"match": results.get_match_overview(match), "isCompleted": False})
