# app/gameplay/services.py
import logging
from typing import Optional

from django.db import transaction
from django.db.models import Avg, Case, Count, FloatField, When
from django.utils import timezone

from app.common.exceptions import NotFound, ValidationFailed
from app.common.params import parse_uuid
from app.gameplay.grader import GradingResult
from app.gameplay.models import GameSession
from app.prompts.catalog import Prompt
from app.users.models import User

logger = logging.getLogger(__name__)


def get_user(user_id) -> User:
    user = User.objects.filter(id=parse_uuid(user_id, "userId")).first()
    if not user:
        raise NotFound("User not found", code="USER_NOT_FOUND")
    return user


def get_session(session_id) -> GameSession:
    session = GameSession.objects.filter(id=parse_uuid(session_id, "sessionId")).first()
    if not session:
        raise NotFound("Session not found", code="SESSION_NOT_FOUND")
    return session


def validate_submission(prompt: Prompt, position: str, user_response: str) -> None:
    if prompt.positions and position not in prompt.positions:
        raise ValidationFailed(f"position '{position}' is not offered for this prompt")
    if not user_response.strip():
        raise ValidationFailed("userResponse is required")
    if len(user_response) > prompt.char_limit:
        raise ValidationFailed(f"userResponse exceeds {prompt.char_limit} characters")


@transaction.atomic
def save_game_session(
    *,
    user: User,
    prompt: Prompt,
    position: str,
    user_response: str,
    grading: GradingResult,
    ip_address: Optional[str] = None,
    user_agent: str = "",
    duration_seconds: Optional[int] = None,
) -> GameSession:
    session = GameSession.objects.create(
        user=user,
        completed_at=timezone.now(),
        prompt_id=prompt.id,
        prompt_scenario=prompt.scenario,
        prompt_category=prompt.category,
        position_assigned=position,
        user_response=user_response,
        char_count=len(user_response),
        detected=grading.detected,
        score=grading.score,
        feedback=grading.feedback,
        rubric_understanding=grading.understanding,
        rubric_authenticity=grading.authenticity,
        rubric_execution=grading.execution,
        ai_comparison_response=grading.ai_response,
        ip_address=ip_address,
        user_agent=user_agent[:500],
        duration_seconds=duration_seconds,
    )
    update_user_stats(user)
    logger.info(
        "session saved id=%s user=%s prompt=%s score=%s",
        session.id,
        user.id,
        prompt.id,
        grading.score,
    )
    return session


def update_user_stats(user: User) -> None:
    agg = GameSession.objects.filter(user=user).aggregate(
        total=Count("id"),
        avg=Avg("score"),
    )
    user.total_games = agg["total"] or 0
    user.avg_score = float(agg["avg"]) if agg["avg"] is not None else None
    user.save(update_fields=["total_games", "avg_score"])


def _detection_rate():
    return Avg(
        Case(When(detected=True, then=1.0), default=0.0, output_field=FloatField())
    )


def get_user_stats(user: User) -> dict:
    scored = GameSession.objects.filter(user=user, score__isnull=False)

    basic = scored.aggregate(
        total_games=Count("id"),
        avg_score=Avg("score"),
        detection_rate=_detection_rate(),
    )

    position_performance = {}
    rows = (
        scored.values("position_assigned")
        .annotate(games=Count("id"), avg_score=Avg("score"), detection_rate=_detection_rate())
        .order_by("position_assigned")
    )
    for row in rows:
        position_performance[row["position_assigned"]] = {
            "games": row["games"],
            "avgScore": round(float(row["avg_score"] or 0), 2),
            "detectionRate": round(float(row["detection_rate"] or 0) * 100, 2),
        }

    return {
        "totalGames": basic["total_games"] or 0,
        "avgScore": round(float(basic["avg_score"] or 0), 2),
        "detectionRate": round(float(basic["detection_rate"] or 0) * 100, 2),
        "positionPerformance": position_performance,
    }


def get_user_history(user: User, limit: int, offset: int):
    qs = GameSession.objects.filter(user=user).order_by("-created_at")
    total = qs.count()
    return list(qs[offset : offset + limit]), total
