# app/users/serializers.py
from rest_framework import serializers

from .models import User


class UserSerializer(serializers.ModelSerializer):
    userId = serializers.UUIDField(source="id", read_only=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)
    politicalAlignment = serializers.IntegerField(
        source="political_alignment", read_only=True
    )
    ageRange = serializers.CharField(source="age_range", read_only=True)
    totalGames = serializers.IntegerField(source="total_games", read_only=True)
    avgScore = serializers.FloatField(source="avg_score", read_only=True)

    class Meta:
        model = User
        fields = [
            "userId",
            "createdAt",
            "politicalAlignment",
            "ageRange",
            "country",
            "totalGames",
            "avgScore",
        ]


class UserInputSerializer(serializers.Serializer):
    politicalAlignment = serializers.IntegerField(
        required=False, allow_null=True, min_value=0, max_value=10
    )
    ageRange = serializers.CharField(
        required=False, allow_blank=True, max_length=20
    )
    country = serializers.CharField(required=False, allow_blank=True, max_length=50)
