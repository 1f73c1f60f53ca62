# app/adminpanel/analytics.py
from collections import defaultdict

from django.db.models import Count

from app.matches.models import Match, MatchParticipant
from app.matches.repository import expire_overdue_matches
from app.users.models import User


def _pct(part: int, whole: int) -> float:
    return round(part * 100.0 / whole, 2) if whole else 0.0


def match_analytics() -> dict:
    # 통계 전에 밀린 만료부터 반영
    expire_overdue_matches()

    by_status = {status: 0 for status, _ in Match.STATUS_CHOICES}
    for row in Match.objects.values("status").annotate(n=Count("id")):
        by_status[row["status"]] = row["n"]
    total = sum(by_status.values())

    scores = defaultdict(dict)
    rows = MatchParticipant.objects.filter(
        match__status=Match.STATUS_COMPLETED, session__isnull=False
    ).values_list("match_id", "role", "session__score")
    for match_id, role, score in rows:
        scores[match_id][role] = score or 0

    gaps = [
        abs(s[MatchParticipant.ROLE_CREATOR] - s[MatchParticipant.ROLE_OPPONENT])
        for s in scores.values()
        if len(s) == 2
    ]
    ties = sum(1 for g in gaps if g == 0)

    total_users = User.objects.count()
    players_in_matches = MatchParticipant.objects.order_by().values("user_id").distinct().count()

    return {
        "totalMatches": total,
        "byStatus": by_status,
        "completionRate": _pct(by_status[Match.STATUS_COMPLETED], total),
        "avgScoreGap": round(sum(gaps) / len(gaps), 2) if gaps else 0.0,
        "tieRate": _pct(ties, len(gaps)),
        "participationRate": _pct(players_in_matches, total_users),
    }
