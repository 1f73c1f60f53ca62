# app/matches/repository.py
"""
매치 영속성 계층.

상태(status)는 여기서만 바뀐다. 동시성이 걸린 연산은 전부
DB 한 번의 조건부 쓰기(유니크 제약 / 조건부 UPDATE / 행 잠금)로 처리하고,
앱 메모리 락에는 의존하지 않는다.
"""
import logging
import secrets
from dataclasses import dataclass
from datetime import timedelta
from typing import List, Optional, Tuple

from django.conf import settings
from django.db import IntegrityError, transaction
from django.utils import timezone

from app.common.exceptions import Conflict, Forbidden, Gone, Internal, ValidationFailed
from app.gameplay.models import GameSession
from app.matches.models import (
    MATCH_CODE_ALPHABET,
    MATCH_CODE_LENGTH,
    Match,
    MatchParticipant,
)
from app.users.models import User

logger = logging.getLogger(__name__)

# insert_opponent 결과
ADMITTED = "admitted"
SEAT_TAKEN = "seat_taken"
CLOSED = "closed"


@dataclass
class LinkOutcome:
    match: Match
    completed: bool
    completed_now: bool = False
    expired_now: bool = False


# ---- code ----


def normalize_code(code: str) -> str:
    return (code or "").strip().upper()


def generate_match_code() -> str:
    return "".join(secrets.choice(MATCH_CODE_ALPHABET) for _ in range(MATCH_CODE_LENGTH))


# ---- create ----


def _insert_match(*, code: str, creator: User, session: GameSession, prompt_id: str, now) -> Match:
    try:
        with transaction.atomic():
            match = Match.objects.create(
                match_code=code,
                prompt_id=prompt_id,
                status=Match.STATUS_PENDING,
                created_at=now,
                expires_at=now + timedelta(hours=settings.MATCH_TTL_HOURS),
            )
            MatchParticipant.objects.create(
                match=match,
                user=creator,
                role=MatchParticipant.ROLE_CREATOR,
                session=session,
            )
    except IntegrityError as e:
        raise Conflict(f"match code collision: {code}") from e
    return match


def create_match(*, creator: User, session: GameSession, prompt_id: str, now=None) -> Match:
    """
    매치 + 생성자 참가 행을 한 트랜잭션으로 INSERT.
    코드가 겹치면 새 코드로 재시도하고, 횟수를 다 쓰면 Internal.
    """
    now = now or timezone.now()
    max_retries = settings.MATCH_CODE_MAX_RETRIES

    last_error = None
    for attempt in range(max_retries):
        code = generate_match_code()
        try:
            return _insert_match(
                code=code, creator=creator, session=session, prompt_id=prompt_id, now=now
            )
        except Conflict as e:
            logger.warning("match code collision (attempt %d/%d)", attempt + 1, max_retries)
            last_error = e

    logger.error("could not allocate a match code after %d attempts", max_retries)
    raise Internal(
        "Failed to generate unique match code after max retries",
        code="MATCH_CODE_EXHAUSTED",
    ) from last_error


# ---- read ----


def get_match_by_code(code: str) -> Optional[Match]:
    code = normalize_code(code)
    if not code:
        return None
    return Match.objects.filter(match_code=code).first()


def get_match_by_id(match_id) -> Optional[Match]:
    return Match.objects.filter(id=match_id).first()


def get_participant(match: Match, role: str) -> Optional[MatchParticipant]:
    return (
        MatchParticipant.objects.select_related("session")
        .filter(match=match, role=role)
        .first()
    )


def get_participants(match: Match) -> List[MatchParticipant]:
    return list(
        MatchParticipant.objects.select_related("session")
        .filter(match=match)
        .order_by("joined_at")
    )


def find_pending_match_for_session(session: GameSession) -> Optional[Match]:
    # 여러 개면 가장 최근 것 (정상 흐름에서는 하나)
    return (
        Match.objects.filter(
            status=Match.STATUS_PENDING,
            participants__role=MatchParticipant.ROLE_CREATOR,
            participants__session=session,
        )
        .order_by("-created_at")
        .first()
    )


def list_participations_for_user(user: User, limit: int, offset: int) -> Tuple[List[MatchParticipant], int]:
    qs = (
        MatchParticipant.objects.select_related("match")
        .filter(user=user)
        .order_by("-match__created_at")
    )
    total = qs.count()
    return list(qs[offset : offset + limit]), total


def participants_for_matches(match_ids) -> List[MatchParticipant]:
    return list(
        MatchParticipant.objects.select_related("session").filter(match_id__in=match_ids)
    )


def holds_session(match: Match, user: User, session: GameSession) -> bool:
    return MatchParticipant.objects.filter(match=match, user=user, session=session).exists()


# ---- expiry ----


def expire_if_overdue(match_id, now=None) -> bool:
    """
    pending 이고 기한이 지났으면 expired 로 바꾸고 True.
    조건부 UPDATE 한 번이라 동시에 불려도 한쪽만 True.
    """
    now = now or timezone.now()
    updated = Match.objects.filter(
        id=match_id,
        status=Match.STATUS_PENDING,
        expires_at__lt=now,
    ).update(status=Match.STATUS_EXPIRED)
    return updated > 0


def expire_overdue_matches(now=None) -> int:
    now = now or timezone.now()
    return Match.objects.filter(
        status=Match.STATUS_PENDING,
        expires_at__lt=now,
    ).update(status=Match.STATUS_EXPIRED)


# ---- join ----


def insert_opponent(match: Match, user: User, now=None) -> str:
    """
    상대 자리 INSERT. (match, role) 유니크 제약이 동시 참가를 가른다.
      ADMITTED   -> 이번 호출이 자리를 차지함
      SEAT_TAKEN -> 이미 누가 차지함 (본인일 수도 있음)
      CLOSED     -> 그 사이 매치가 pending 이 아니게 됨
    """
    now = now or timezone.now()
    try:
        with transaction.atomic():
            still_open = (
                Match.objects.select_for_update()
                .filter(id=match.id, status=Match.STATUS_PENDING, expires_at__gte=now)
                .exists()
            )
            if not still_open:
                return CLOSED
            MatchParticipant.objects.create(
                match=match,
                user=user,
                role=MatchParticipant.ROLE_OPPONENT,
            )
    except IntegrityError:
        return SEAT_TAKEN
    return ADMITTED


# ---- link ----


def link_session(match_id, user: User, session: GameSession, now=None) -> LinkOutcome:
    """
    참가자 세션 연결 + 완료 전이를 한 트랜잭션으로.
    매치 행을 잠그므로 양쪽이 동시에 link 해도 순서대로 처리되고,
    두 번째 쪽이 완료 전이를 본다.
    """
    now = now or timezone.now()

    with transaction.atomic():
        match = Match.objects.select_for_update().get(id=match_id)

        if match.status == Match.STATUS_PENDING and match.is_overdue(now):
            match.status = Match.STATUS_EXPIRED
            match.save(update_fields=["status"])
            outcome = LinkOutcome(match=match, completed=False, expired_now=True)
        else:
            outcome = _link_locked(match, user, session, now)

    if outcome.expired_now:
        raise Gone("Match has expired", code="MATCH_EXPIRED")
    return outcome


def _link_locked(match: Match, user: User, session: GameSession, now) -> LinkOutcome:
    if match.status == Match.STATUS_EXPIRED:
        raise Gone("Match has expired", code="MATCH_EXPIRED")
    if match.status == Match.STATUS_COMPLETED:
        # 먼저 끝난 쪽과 경합한 같은 세션 재연결
        if holds_session(match, user, session):
            return LinkOutcome(match=match, completed=True)
        raise Gone("Match is already completed", code="MATCH_COMPLETED")

    participant = MatchParticipant.objects.filter(match=match, user=user).first()
    if not participant:
        raise Forbidden("Participant not found in match", code="NOT_A_PARTICIPANT")

    if participant.session_id == session.id:
        # 같은 세션 재연결은 그대로 성공
        pass
    elif participant.session_id is not None:
        raise ValidationFailed(
            "A session is already linked for this participant", code="ALREADY_LINKED"
        )
    else:
        linked_elsewhere = (
            MatchParticipant.objects.filter(session=session)
            .exclude(pk=participant.pk)
            .exists()
        )
        if linked_elsewhere:
            raise ValidationFailed(
                "Session is already linked to another match", code="SESSION_ALREADY_LINKED"
            )
        participant.session = session
        participant.save(update_fields=["session"])

    linked_roles = set(
        MatchParticipant.objects.filter(match=match, session__isnull=False).values_list(
            "role", flat=True
        )
    )
    both_linked = {MatchParticipant.ROLE_CREATOR, MatchParticipant.ROLE_OPPONENT} <= linked_roles
    if not both_linked:
        return LinkOutcome(match=match, completed=False)

    match.status = Match.STATUS_COMPLETED
    match.completed_at = now
    match.save(update_fields=["status", "completed_at"])
    return LinkOutcome(match=match, completed=True, completed_now=True)
