# app/matches/results.py
"""
완료된 매치의 맞대결 결과 / 로비 정보 / 유저별 매치 기록 조합.
"""
from collections import defaultdict
from typing import Optional

from django.utils import timezone

from app.common.exceptions import ValidationFailed
from app.matches import repository, services
from app.matches.models import Match, MatchParticipant
from app.matches.serializers import (
    MatchSerializer,
    ParticipantSerializer,
    ParticipantWithSessionSerializer,
)
from app.prompts.catalog import get_prompt_by_id
from app.users.models import User

WINNER_CREATOR = "creator"
WINNER_OPPONENT = "opponent"
WINNER_TIE = "tie"


def determine_winner(creator_score: Optional[int], opponent_score: Optional[int]) -> str:
    # 점수 없는 쪽은 0점 취급
    creator_score = creator_score or 0
    opponent_score = opponent_score or 0
    if creator_score > opponent_score:
        return WINNER_CREATOR
    if opponent_score > creator_score:
        return WINNER_OPPONENT
    return WINNER_TIE


def _score_of(participant: Optional[MatchParticipant]) -> Optional[int]:
    if participant is None or participant.session is None:
        return None
    return participant.session.score


def _prompt_payload(match: Match, participants) -> dict:
    prompt = get_prompt_by_id(match.prompt_id)
    if prompt:
        return prompt.to_dict()

    # 카탈로그에서 빠졌으면 생성자 세션 스냅샷으로
    source = next((p.session for p in participants if p.session is not None), None)
    return {
        "id": match.prompt_id,
        "category": source.prompt_category if source else "",
        "scenario": source.prompt_scenario if source else "",
        "positions": [],
        "charLimit": 500,
    }


def get_match_results(match: Match) -> dict:
    if match.status != Match.STATUS_COMPLETED:
        raise ValidationFailed("Match is not completed yet", code="MATCH_NOT_COMPLETED")

    participants = repository.get_participants(match)
    by_role = {p.role: p for p in participants}

    return {
        "match": MatchSerializer(match).data,
        "prompt": _prompt_payload(match, participants),
        "participants": ParticipantWithSessionSerializer(participants, many=True).data,
        "winner": determine_winner(
            _score_of(by_role.get(MatchParticipant.ROLE_CREATOR)),
            _score_of(by_role.get(MatchParticipant.ROLE_OPPONENT)),
        ),
    }


def get_match_overview(match: Match) -> dict:
    """
    pending/expired 매치의 로비용 정보. 세션 내용은 노출하지 않는다.
    """
    participants = repository.get_participants(match)
    data = MatchSerializer(match).data
    data["participants"] = ParticipantSerializer(participants, many=True).data

    creator = next((p for p in participants if p.role == MatchParticipant.ROLE_CREATOR), None)
    data["position"] = creator.session.position_assigned if creator and creator.session else None
    return data


def get_match_history(user: User, limit: int, offset: int) -> dict:
    rows, total = repository.list_participations_for_user(user, limit, offset)

    now = timezone.now()
    for row in rows:
        # 기록 화면도 읽기 경로라 만료 반영
        if row.match.status == Match.STATUS_PENDING and row.match.is_overdue(now):
            services.check_and_update_expiry(row.match, now=now)

    sessions_by_match = defaultdict(dict)
    participant_count = defaultdict(int)
    for p in repository.participants_for_matches([row.match_id for row in rows]):
        participant_count[p.match_id] += 1
        sessions_by_match[p.match_id][p.role] = p

    matches = []
    for row in rows:
        match = row.match
        sides = sessions_by_match[match.id]
        creator = sides.get(MatchParticipant.ROLE_CREATOR)
        opponent = sides.get(MatchParticipant.ROLE_OPPONENT)

        scenario = ""
        if creator and creator.session:
            scenario = creator.session.prompt_scenario

        matches.append(
            {
                "id": str(match.id),
                "matchCode": match.match_code,
                "status": match.status,
                "promptId": match.prompt_id,
                "promptScenario": scenario,
                "createdAt": match.created_at.isoformat(),
                "completedAt": match.completed_at.isoformat() if match.completed_at else None,
                "role": row.role,
                "creatorScore": _score_of(creator),
                "opponentScore": _score_of(opponent),
                "participantCount": participant_count[match.id],
            }
        )

    return {
        "matches": matches,
        "total": total,
        "hasMore": offset + len(matches) < total,
    }
