# app/adminpanel/auth.py
from rest_framework.authentication import BaseAuthentication, get_authorization_header
from rest_framework.permissions import BasePermission
from rest_framework_simplejwt.exceptions import InvalidToken, TokenError
from rest_framework_simplejwt.tokens import AccessToken

ADMIN_CLAIM = "admin"


def issue_admin_token() -> str:
    token = AccessToken()
    token[ADMIN_CLAIM] = True
    return str(token)


class AdminTokenAuthentication(BaseAuthentication):
    """
    Authorization: Bearer <token>
    /api/admin/auth 에서 받은 토큰만 통과. 유저 모델과는 무관.
    """

    keyword = b"bearer"

    def authenticate(self, request):
        parts = get_authorization_header(request).split()
        if not parts or parts[0].lower() != self.keyword:
            return None
        if len(parts) != 2:
            raise InvalidToken("Invalid token")

        try:
            token = AccessToken(parts[1].decode())
        except (TokenError, UnicodeError) as e:
            raise InvalidToken(str(e))

        if not token.get(ADMIN_CLAIM):
            raise InvalidToken("Not an admin token")
        return ("admin", token)

    def authenticate_header(self, request):
        # 401 로 내려가게
        return 'Bearer realm="admin"'


class IsDashboardAdmin(BasePermission):
    def has_permission(self, request, view):
        return request.auth is not None
