# app/gameplay/serializers.py
from rest_framework import serializers

from .models import GameSession


class GameSessionSerializer(serializers.ModelSerializer):
    sessionId = serializers.UUIDField(source="id", read_only=True)
    userId = serializers.UUIDField(source="user_id", read_only=True)
    promptId = serializers.CharField(source="prompt_id", read_only=True)
    promptScenario = serializers.CharField(source="prompt_scenario", read_only=True)
    promptCategory = serializers.CharField(source="prompt_category", read_only=True)
    positionAssigned = serializers.CharField(source="position_assigned", read_only=True)
    userResponse = serializers.CharField(source="user_response", read_only=True)
    rubricScores = serializers.SerializerMethodField()
    aiComparisonResponse = serializers.CharField(
        source="ai_comparison_response", read_only=True
    )
    durationSeconds = serializers.IntegerField(source="duration_seconds", read_only=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)
    completedAt = serializers.DateTimeField(source="completed_at", read_only=True)

    class Meta:
        model = GameSession
        fields = [
            "sessionId",
            "userId",
            "promptId",
            "promptScenario",
            "promptCategory",
            "positionAssigned",
            "userResponse",
            "score",
            "detected",
            "feedback",
            "rubricScores",
            "aiComparisonResponse",
            "durationSeconds",
            "createdAt",
            "completedAt",
        ]

    def get_rubricScores(self, obj: GameSession):
        # 세 항목이 다 있어야 의미가 있음
        if None in (obj.rubric_understanding, obj.rubric_authenticity, obj.rubric_execution):
            return None
        return {
            "understanding": obj.rubric_understanding,
            "authenticity": obj.rubric_authenticity,
            "execution": obj.rubric_execution,
        }
