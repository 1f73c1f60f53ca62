# app/matches/models.py
import uuid
from datetime import timedelta

from django.conf import settings
from django.db import models
from django.utils import timezone

from app.gameplay.models import GameSession
from app.users.models import User


# 헷갈리는 문자(0/O, 1/I/L) 제외
MATCH_CODE_ALPHABET = "ABCDEFGHJKMNPQRSTUVWXYZ23456789"
MATCH_CODE_LENGTH = 8


def default_expires_at():
    return timezone.now() + timedelta(hours=settings.MATCH_TTL_HOURS)


class Match(models.Model):
    STATUS_PENDING = "pending"
    STATUS_COMPLETED = "completed"
    STATUS_EXPIRED = "expired"
    STATUS_CHOICES = (
        (STATUS_PENDING, "pending"),
        (STATUS_COMPLETED, "completed"),
        (STATUS_EXPIRED, "expired"),
    )

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    match_code = models.CharField(max_length=MATCH_CODE_LENGTH, unique=True)
    prompt_id = models.CharField(max_length=64)
    status = models.CharField(
        max_length=10, choices=STATUS_CHOICES, default=STATUS_PENDING, db_index=True
    )

    created_at = models.DateTimeField(default=timezone.now)
    expires_at = models.DateTimeField(default=default_expires_at)
    completed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "matches"
        indexes = [
            models.Index(fields=["status", "expires_at"], name="idx_match_status_expiry"),
        ]

    def is_overdue(self, now=None) -> bool:
        return self.expires_at < (now or timezone.now())

    def __str__(self):
        return f"{self.match_code} ({self.status})"


class MatchParticipant(models.Model):
    ROLE_CREATOR = "creator"
    ROLE_OPPONENT = "opponent"
    ROLE_CHOICES = (
        (ROLE_CREATOR, "creator"),
        (ROLE_OPPONENT, "opponent"),
    )

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    match = models.ForeignKey(
        Match, related_name="participants", on_delete=models.CASCADE
    )
    user = models.ForeignKey(
        User, related_name="match_participations", on_delete=models.CASCADE
    )
    role = models.CharField(max_length=10, choices=ROLE_CHOICES)

    # 플레이를 끝내야 채워짐 (생성자는 원본 세션으로 시작).
    # 세션 하나가 두 매치에 연결되는 건 link 단계에서 막는다
    session = models.ForeignKey(
        GameSession,
        related_name="match_participations",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
    )
    joined_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "match_participants"
        constraints = [
            # 상대 자리는 INSERT 한 번으로만 차지 (동시 참가 경쟁은 여기서 갈림)
            models.UniqueConstraint(fields=["match", "role"], name="uq_match_role"),
            models.UniqueConstraint(fields=["match", "user"], name="uq_match_user"),
        ]
        ordering = ["joined_at"]

    def __str__(self):
        return f"{self.match_id} {self.role} {self.user_id}"
