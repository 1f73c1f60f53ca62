# app/users/models.py
import uuid

from django.db import models


class UserManager(models.Manager):
    def create_player(self, political_alignment=None, age_range="", country=None):
        if political_alignment is not None:
            political_alignment = int(political_alignment)
            if not 0 <= political_alignment <= 10:
                raise ValueError("politicalAlignment must be between 0 and 10")

        return self.create(
            political_alignment=political_alignment,
            age_range=(age_range or "").strip(),
            country=(country or "UK").strip() or "UK",
        )


class User(models.Model):
    # 로그인 없는 익명 플레이어. 프론트가 userId를 로컬에 보관
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    created_at = models.DateTimeField(auto_now_add=True)

    # 온보딩 설문 (선택)
    political_alignment = models.IntegerField(null=True, blank=True)  # 0(좌) ~ 10(우)
    age_range = models.CharField(max_length=20, blank=True, default="")
    country = models.CharField(max_length=50, default="UK")

    # 게임 저장 시마다 갱신되는 집계
    total_games = models.IntegerField(default=0)
    avg_score = models.FloatField(null=True, blank=True)

    objects = UserManager()

    class Meta:
        db_table = "users"

    def __str__(self):
        return str(self.id)
