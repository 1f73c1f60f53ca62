# app/gameplay/models.py
import uuid

from django.db import models

from app.users.models import User


class GameSession(models.Model):
    """
    솔로 플레이 1회분 (시나리오 + 배정 포지션 + 답변 + 채점 결과).
    채점이 끝난 뒤에는 수정하지 않는다.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(User, related_name="sessions", on_delete=models.CASCADE)
    created_at = models.DateTimeField(auto_now_add=True)
    completed_at = models.DateTimeField(null=True, blank=True)

    # 시나리오는 카탈로그가 바뀌어도 남도록 스냅샷 저장
    prompt_id = models.CharField(max_length=64)
    prompt_scenario = models.TextField()
    prompt_category = models.CharField(max_length=50)
    position_assigned = models.CharField(max_length=30)
    user_response = models.TextField()
    char_count = models.IntegerField(null=True, blank=True)

    # 채점 결과
    detected = models.BooleanField(null=True, blank=True)
    score = models.IntegerField(null=True, blank=True)
    feedback = models.TextField(blank=True, default="")
    rubric_understanding = models.IntegerField(null=True, blank=True)
    rubric_authenticity = models.IntegerField(null=True, blank=True)
    rubric_execution = models.IntegerField(null=True, blank=True)
    ai_comparison_response = models.TextField(blank=True, default="")

    ip_address = models.GenericIPAddressField(null=True, blank=True)
    user_agent = models.TextField(blank=True, default="")
    duration_seconds = models.IntegerField(null=True, blank=True)

    class Meta:
        db_table = "game_sessions"
        indexes = [
            models.Index(fields=["user", "-created_at"], name="idx_user_sessions"),
            models.Index(fields=["prompt_id", "score"], name="idx_prompt_performance"),
            models.Index(
                fields=["position_assigned", "detected"], name="idx_position_performance"
            ),
        ]

    @property
    def is_scored(self) -> bool:
        return self.score is not None

    def __str__(self):
        return f"{self.id} {self.prompt_id}/{self.position_assigned}"
