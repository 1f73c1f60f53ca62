# app/adminpanel/views.py
import hmac
import logging

from django.conf import settings
from rest_framework.views import APIView

from app.common.exceptions import Internal, Unauthorized
from app.common.params import require
from app.common.ratelimit import check_rate_limit, client_ip
from app.common.responses import ok

from .analytics import match_analytics
from .auth import AdminTokenAuthentication, IsDashboardAdmin, issue_admin_token

logger = logging.getLogger(__name__)


class AdminAuthView(APIView):
    """
    POST /api/admin/auth
    body: { "password": "..." }
    res:  { "token": "<bearer token>" }
    """

    def post(self, request):
        check_rate_limit(request, "admin:auth")

        password = require(request.data, "password")
        expected = settings.ADMIN_DASHBOARD_PASSWORD
        if not expected:
            raise Internal("Admin password is not configured", code="ADMIN_NOT_CONFIGURED")

        if not hmac.compare_digest(password.encode(), expected.encode()):
            logger.warning("failed admin login from %s", client_ip(request))
            raise Unauthorized("Invalid password")

        logger.info("admin login from %s", client_ip(request))
        return ok({"token": issue_admin_token()})


class MatchAnalyticsView(APIView):
    # GET /api/admin/matches/analytics  (Authorization: Bearer <token>)
    authentication_classes = [AdminTokenAuthentication]
    permission_classes = [IsDashboardAdmin]

    def get(self, request):
        return ok(match_analytics())
