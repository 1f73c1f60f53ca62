# app/matches/serializers.py
from rest_framework import serializers

from app.gameplay.serializers import GameSessionSerializer
from .models import Match, MatchParticipant


class MatchSerializer(serializers.ModelSerializer):
    matchCode = serializers.CharField(source="match_code", read_only=True)
    promptId = serializers.CharField(source="prompt_id", read_only=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)
    expiresAt = serializers.DateTimeField(source="expires_at", read_only=True)
    completedAt = serializers.DateTimeField(source="completed_at", read_only=True)

    class Meta:
        model = Match
        fields = [
            "id",
            "matchCode",
            "status",
            "promptId",
            "createdAt",
            "expiresAt",
            "completedAt",
        ]


class ParticipantSerializer(serializers.ModelSerializer):
    matchId = serializers.UUIDField(source="match_id", read_only=True)
    userId = serializers.UUIDField(source="user_id", read_only=True)
    sessionId = serializers.UUIDField(source="session_id", read_only=True)
    joinedAt = serializers.DateTimeField(source="joined_at", read_only=True)

    class Meta:
        model = MatchParticipant
        fields = ["id", "matchId", "userId", "sessionId", "role", "joinedAt"]


class ParticipantWithSessionSerializer(ParticipantSerializer):
    session = GameSessionSerializer(read_only=True)

    class Meta(ParticipantSerializer.Meta):
        fields = ParticipantSerializer.Meta.fields + ["session"]
