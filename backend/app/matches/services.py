# app/matches/services.py
"""
매치 상태 머신: pending -> completed / pending -> expired.

모든 진입점은 pending 을 믿기 전에 만료 검사부터 한다.
실패는 app.common.exceptions 의 타입 있는 예외로 올라가고
HTTP 상태 코드 매핑은 예외 핸들러가 한다.
"""
import logging
from dataclasses import dataclass

from app.common.exceptions import DomainError, Forbidden, Gone, NotFound, ValidationFailed
from app.common.params import parse_uuid
from app.gameplay.models import GameSession
from app.gameplay.services import get_session, get_user
from app.matches import events, repository
from app.matches.models import Match, MatchParticipant
from app.users.models import User

logger = logging.getLogger(__name__)


class ChallengeAlreadyAccepted(DomainError):
    # 만료/완료(Gone)와 구분되는 "이미 다른 사람이 받은 도전"
    code = "CHALLENGE_ALREADY_ACCEPTED"
    status_code = 400
    default_message = "Match already has an opponent"


@dataclass
class CreateResult:
    match: Match
    existing: bool

    def to_dict(self):
        return {
            "matchId": str(self.match.id),
            "matchCode": self.match.match_code,
            "existingMatch": self.existing,
            "expiresAt": self.match.expires_at.isoformat(),
        }


@dataclass
class JoinResult:
    match: Match
    position: str
    already_joined: bool

    def to_dict(self):
        return {
            "matchId": str(self.match.id),
            "matchCode": self.match.match_code,
            "promptId": self.match.prompt_id,
            "position": self.position,
            "alreadyJoined": self.already_joined,
        }


# ---- lookup / expiry ----


def get_match_by_code(code: str) -> Match:
    match = repository.get_match_by_code(code)
    if not match:
        raise NotFound("Match not found", code="MATCH_NOT_FOUND")
    return match


def get_match(match_id) -> Match:
    match = repository.get_match_by_id(parse_uuid(match_id, "matchId"))
    if not match:
        raise NotFound("Match not found", code="MATCH_NOT_FOUND")
    return match


def check_and_update_expiry(match: Match, now=None) -> bool:
    """
    만료됐으면 DB 를 expired 로 바꾸고 넘겨받은 객체도 맞춰 준다.
    이번 호출이 바꾼 경우에만 True.
    """
    was_expired = repository.expire_if_overdue(match.id, now=now)
    if was_expired:
        match.status = Match.STATUS_EXPIRED
        logger.info("match expired code=%s", match.match_code)
        events.broadcast(match, "match-expired")
    return was_expired


def refresh_status(match: Match, now=None) -> Match:
    check_and_update_expiry(match, now=now)
    if match.status == Match.STATUS_PENDING:
        return match
    # 다른 요청이 먼저 바꿨을 수 있음
    match.refresh_from_db(fields=["status", "completed_at"])
    return match


def _ensure_pending(match: Match) -> None:
    if match.status == Match.STATUS_EXPIRED:
        raise Gone("Match has expired", code="MATCH_EXPIRED")
    if match.status == Match.STATUS_COMPLETED:
        raise Gone("Match is already completed", code="MATCH_COMPLETED")


def _creator_position(match: Match) -> str:
    creator = repository.get_participant(match, MatchParticipant.ROLE_CREATOR)
    if not creator or not creator.session:
        raise NotFound("Creator session not found", code="SESSION_NOT_FOUND")
    return creator.session.position_assigned


# ---- create ----


def create_match(*, user_id, session_id, force_new: bool = False, now=None) -> CreateResult:
    session = get_session(session_id)
    user = get_user(user_id)

    if session.user_id != user.id:
        raise Forbidden("Session does not belong to this user")
    if not session.is_scored:
        raise ValidationFailed("Session has not been graded yet", code="SESSION_NOT_COMPLETED")

    if not force_new:
        existing = repository.find_pending_match_for_session(session)
        if existing and not check_and_update_expiry(existing, now=now):
            logger.info("reusing pending match code=%s session=%s", existing.match_code, session.id)
            return CreateResult(match=existing, existing=True)

    match = repository.create_match(
        creator=user, session=session, prompt_id=session.prompt_id, now=now
    )
    logger.info("match created code=%s creator=%s prompt=%s", match.match_code, user.id, match.prompt_id)
    return CreateResult(match=match, existing=False)


# ---- join ----


def join_match(*, match_code: str, user_id, now=None) -> JoinResult:
    """
    실패 우선순위: 없음(404) -> 만료(410) -> 완료(410) -> 본인 매치(403).
    같은 사람이 다시 부르면 alreadyJoined=True 로 성공.
    """
    match = get_match_by_code(match_code)
    check_and_update_expiry(match, now=now)
    _ensure_pending(match)

    user = get_user(user_id)

    creator = repository.get_participant(match, MatchParticipant.ROLE_CREATOR)
    if creator and creator.user_id == user.id:
        raise Forbidden("You cannot join your own match as opponent", code="SELF_JOIN")

    opponent = repository.get_participant(match, MatchParticipant.ROLE_OPPONENT)
    if opponent:
        if opponent.user_id == user.id:
            return JoinResult(match=match, position=_creator_position(match), already_joined=True)
        raise ChallengeAlreadyAccepted()

    outcome = repository.insert_opponent(match, user, now=now)

    if outcome == repository.SEAT_TAKEN:
        # 동시에 들어온 다른 요청이 먼저 INSERT
        opponent = repository.get_participant(match, MatchParticipant.ROLE_OPPONENT)
        if opponent and opponent.user_id == user.id:
            return JoinResult(match=match, position=_creator_position(match), already_joined=True)
        logger.info("join lost race code=%s user=%s", match.match_code, user.id)
        raise ChallengeAlreadyAccepted()

    if outcome == repository.CLOSED:
        refresh_status(match, now=now)
        _ensure_pending(match)
        # 여기까지 오면 기한만 지났고 아직 pending 으로 남아 있는 경우
        raise Gone("Match has expired", code="MATCH_EXPIRED")

    logger.info("opponent joined code=%s user=%s", match.match_code, user.id)
    events.broadcast(match, "opponent-joined", {"userId": str(user.id)})
    return JoinResult(match=match, position=_creator_position(match), already_joined=False)


# ---- link ----


def _validate_session_for_match(match: Match, session: GameSession, user: User) -> None:
    if session.user_id != user.id:
        raise Forbidden("Session does not belong to this user")
    if not session.is_scored:
        raise ValidationFailed("Session has not been graded yet", code="SESSION_NOT_COMPLETED")
    if session.prompt_id != match.prompt_id:
        raise ValidationFailed(
            f"Session prompt ({session.prompt_id}) does not match match prompt ({match.prompt_id})",
            code="PROMPT_MISMATCH",
        )

    expected = _creator_position(match)
    if session.position_assigned != expected:
        raise ValidationFailed(
            f"Session position ({session.position_assigned}) does not match expected position ({expected})",
            code="POSITION_MISMATCH",
        )


def link_session(*, match_id, session_id, user_id, now=None) -> dict:
    """
    완료된 매치라도 본인 자리에 이미 같은 세션이 있으면 matchCompleted=True 로 성공.
    양쪽이 거의 동시에 link 할 때 두 번째 요청이 에러가 나지 않게.
    """
    match = get_match(match_id)
    check_and_update_expiry(match, now=now)
    if match.status == Match.STATUS_EXPIRED:
        raise Gone("Match has expired", code="MATCH_EXPIRED")

    session = get_session(session_id)
    user = get_user(user_id)

    if match.status == Match.STATUS_COMPLETED:
        if not repository.holds_session(match, user, session):
            raise Gone("Match is already completed", code="MATCH_COMPLETED")
        return {"matchCompleted": True, "matchCode": match.match_code}

    _validate_session_for_match(match, session, user)

    outcome = repository.link_session(match.id, user, session, now=now)

    if outcome.completed_now:
        logger.info("match completed code=%s", outcome.match.match_code)
        events.broadcast(outcome.match, "match-completed")
    else:
        logger.info("session linked code=%s user=%s", outcome.match.match_code, user.id)

    return {
        "matchCompleted": outcome.completed,
        "matchCode": outcome.match.match_code,
    }
