# app/gameplay/views.py
import ipaddress

from django.conf import settings
from rest_framework.views import APIView

from app.common.exceptions import NotFound, ValidationFailed
from app.common.params import parse_page, require
from app.common.ratelimit import check_rate_limit, client_ip
from app.common.responses import ok
from app.gameplay.grader import grade_response
from app.gameplay.serializers import GameSessionSerializer
from app.gameplay.services import (
    get_session,
    get_user,
    get_user_history,
    save_game_session,
    validate_submission,
)
from app.prompts.catalog import get_prompt_by_id


def _valid_ip(raw: str):
    try:
        return str(ipaddress.ip_address(raw))
    except ValueError:
        return None


class GradeView(APIView):
    """
    POST /api/grade
    body: { userId, promptId, position, userResponse, durationSeconds? }
    채점 후 세션 저장까지 한 번에
    """

    def post(self, request):
        check_rate_limit(request, "grade")

        user_id = require(request.data, "userId", "user_id")
        prompt_id = require(request.data, "promptId", "prompt_id")
        position = require(request.data, "position")
        user_response = require(request.data, "userResponse", "user_response")

        duration = request.data.get("durationSeconds")
        if duration is not None:
            try:
                duration = max(0, int(duration))
            except (TypeError, ValueError):
                raise ValidationFailed("durationSeconds must be an integer")

        prompt = get_prompt_by_id(prompt_id)
        if not prompt:
            raise NotFound("Prompt not found", code="PROMPT_NOT_FOUND")
        validate_submission(prompt, position, user_response)
        user = get_user(user_id)

        grading = grade_response(prompt.scenario, position, user_response)

        session = save_game_session(
            user=user,
            prompt=prompt,
            position=position,
            user_response=user_response,
            grading=grading,
            ip_address=_valid_ip(client_ip(request)),
            user_agent=request.headers.get("User-Agent", ""),
            duration_seconds=duration,
        )

        return ok(
            {
                "sessionId": str(session.id),
                "result": grading.to_dict(),
                "aiResponse": grading.ai_response,
            }
        )


class SessionView(APIView):
    # GET /api/session?sessionId=
    def get(self, request):
        check_rate_limit(request, "session")

        session_id = request.query_params.get("sessionId")
        if not session_id:
            raise ValidationFailed("sessionId parameter is required")

        session = get_session(session_id)
        prompt = get_prompt_by_id(session.prompt_id)

        data = GameSessionSerializer(session).data
        data["prompt"] = (
            prompt.to_dict()
            if prompt
            else {
                # 카탈로그에서 빠진 시나리오면 저장된 스냅샷으로
                "id": session.prompt_id,
                "category": session.prompt_category,
                "scenario": session.prompt_scenario,
                "positions": [],
                "charLimit": 500,
            }
        )
        return ok({"session": data})


class HistoryView(APIView):
    # GET /api/history?userId=&limit=&offset=
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
        sessions, total = get_user_history(user, limit, offset)

        return ok(
            {
                "sessions": GameSessionSerializer(sessions, many=True).data,
                "total": total,
                "hasMore": offset + len(sessions) < total,
            }
        )
