# app/common/responses.py
from rest_framework.response import Response


def ok(data=None, http_status: int = 200):
    # 실패 응답은 exceptions.custom_exception_handler 가 같은 봉투로 만든다
    return Response({"success": True, "data": data, "error": None}, status=http_status)
