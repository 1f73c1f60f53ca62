# app/users/views.py
import logging

from rest_framework.views import APIView

from app.common.exceptions import ValidationFailed
from app.common.responses import ok
from app.gameplay.services import get_user, get_user_stats
from app.users.models import User
from app.users.serializers import UserInputSerializer, UserSerializer

logger = logging.getLogger(__name__)


class UserView(APIView):
    """
    POST  /api/user              익명 플레이어 생성
    GET   /api/user?userId=      플레이어 + 통계
    PATCH /api/user              온보딩 설문 수정 (body: userId, ...)
    """

    def post(self, request):
        s = UserInputSerializer(data=request.data)
        s.is_valid(raise_exception=True)

        user = User.objects.create_player(
            political_alignment=s.validated_data.get("politicalAlignment"),
            age_range=s.validated_data.get("ageRange", ""),
            country=s.validated_data.get("country"),
        )
        logger.info("user created id=%s", user.id)
        return ok({"userId": str(user.id)}, http_status=201)

    def get(self, request):
        user_id = request.query_params.get("userId")
        if not user_id:
            raise ValidationFailed("userId is required")

        user = get_user(user_id)
        return ok({"user": UserSerializer(user).data, "stats": get_user_stats(user)})

    def patch(self, request):
        user_id = request.data.get("userId")
        if not user_id:
            raise ValidationFailed("userId is required")
        user = get_user(user_id)

        s = UserInputSerializer(data=request.data, partial=True)
        s.is_valid(raise_exception=True)

        fields = []
        if "politicalAlignment" in s.validated_data:
            user.political_alignment = s.validated_data["politicalAlignment"]
            fields.append("political_alignment")
        if "ageRange" in s.validated_data:
            user.age_range = s.validated_data["ageRange"]
            fields.append("age_range")
        if s.validated_data.get("country"):
            user.country = s.validated_data["country"]
            fields.append("country")

        if fields:
            user.save(update_fields=fields)
        return ok({"user": UserSerializer(user).data})
