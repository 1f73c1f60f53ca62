# app/common/params.py
import uuid

from app.common.exceptions import ValidationFailed


def require(data, *names: str):
    """
    body에서 문자열 필드 꺼내기. camelCase 우선, snake_case도 허용.
    """
    value = None
    for name in names:
        value = data.get(name)
        if value not in (None, ""):
            break
    if value in (None, "") or not isinstance(value, str):
        raise ValidationFailed(f"{names[0]} is required")
    return value.strip()


def parse_uuid(value, field: str) -> uuid.UUID:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (ValueError, TypeError, AttributeError):
        raise ValidationFailed(f"{field} must be a valid id")


def parse_page(query_params, *, default_limit: int, max_limit: int):
    # 잘못된 값은 에러 대신 기본값으로
    try:
        limit = int(query_params.get("limit", default_limit))
    except (TypeError, ValueError):
        limit = default_limit

    try:
        offset = int(query_params.get("offset", 0))
    except (TypeError, ValueError):
        offset = 0

    if limit < 1:
        limit = default_limit
    if limit > max_limit:
        limit = max_limit
    if offset < 0:
        offset = 0

    return limit, offset
